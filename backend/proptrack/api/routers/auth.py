from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from proptrack.api.responses import success
from proptrack.core.auth import AuthService, get_current_user
from proptrack.core.config import settings
from proptrack.core.database import get_db
from proptrack.core.exceptions import AuthenticationError, PropTrackError
from proptrack.db.models import User as DBUser
from proptrack.models.user import User, UserRegistration, UserLogin, TokenResponse
from proptrack.modules.users.service import UserService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def _issue_token(user: User) -> TokenResponse:
    access_token = AuthService.create_access_token(
        data={"sub": user.id, "email": user.email, "role": user.role.value}
    )
    return TokenResponse(
        token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserRegistration,
    user_service: UserService = Depends(get_user_service)
):
    """
    Register a new account.

    Returns the profile together with an access token so the caller is
    signed in straight away.
    """
    try:
        user = await user_service.create_user(user_data)
        return success(_issue_token(user), "User registered successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"User registration failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post("/login")
async def login_user(
    login_data: UserLogin,
    user_service: UserService = Depends(get_user_service)
):
    """Authenticate with email and password and return a bearer token."""
    try:
        user = await user_service.authenticate_user(login_data.email, login_data.password)

        if not user:
            raise AuthenticationError("Invalid email or password")

        return success(_issue_token(user), "Login successful")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )


@router.get("/me")
async def get_me(current_user: DBUser = Depends(get_current_user)):
    """Profile of the authenticated caller."""
    return success(User.from_db(current_user))
