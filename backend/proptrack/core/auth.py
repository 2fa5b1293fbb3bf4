"""
Authentication helpers.

Passwords are stored as bcrypt hashes and callers authenticate with an HS256
bearer token issued by ``POST /api/auth/login``.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import uuid

import bcrypt
import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from proptrack.core.config import settings
from proptrack.core.database import get_db
from proptrack.core.exceptions import AuthenticationError, PermissionDeniedError
from proptrack.db.models import User as DBUser
import logging

logger = logging.getLogger(__name__)

# Missing credentials are reported as 401 by get_current_user_id
security = HTTPBearer(auto_error=False)


class AuthService:
    """Password hashing and access token handling"""

    @staticmethod
    def get_password_hash(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode["exp"] = expire
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.debug(f"JWT decode error: {e}")
            raise AuthenticationError("Invalid token")

        if not payload.get("sub"):
            raise AuthenticationError("Invalid token: missing user ID")
        return payload


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Resolve the caller's user id from the bearer token"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    payload = AuthService.decode_access_token(credentials.credentials)
    return payload["sub"]


def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> DBUser:
    """Load the active user behind the bearer token"""
    try:
        key = uuid.UUID(user_id)
    except ValueError:
        raise AuthenticationError("Invalid token")

    user = db.get(DBUser, key)
    if user is None or not user.is_active:
        raise AuthenticationError("User no longer exists")
    return user


def require_admin(user: DBUser = Depends(get_current_user)) -> DBUser:
    if user.role != "admin":
        raise PermissionDeniedError("Agent access required")
    return user
