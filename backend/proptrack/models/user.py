from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum
from proptrack.models.common import APIModel


class UserRole(str, Enum):
    ADMIN = "admin"  # agent
    USER = "user"


class UserRegistration(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.USER

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class UserLogin(APIModel):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class UserUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v


class User(APIModel):
    id: str
    name: str
    email: EmailStr
    role: UserRole
    is_verified: bool = False
    is_active: bool = True
    created_at: datetime
    last_login: Optional[datetime] = None

    @classmethod
    def from_db(cls, row) -> "User":
        return cls(
            id=str(row.id),
            name=row.name,
            email=row.email,
            role=row.role,
            is_verified=bool(row.is_verified),
            is_active=bool(row.is_active),
            created_at=row.created_at,
            last_login=row.last_login,
        )


class TokenResponse(APIModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: User
