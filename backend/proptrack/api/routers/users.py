from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from proptrack.api.responses import success
from proptrack.core.auth import get_current_user, require_admin
from proptrack.core.database import get_db
from proptrack.core.exceptions import PermissionDeniedError, PropTrackError
from proptrack.db.models import User as DBUser
from proptrack.models.user import UserUpdate, UserRole
from proptrack.modules.users.service import UserService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def _ensure_self_or_admin(current_user: DBUser, user_id: str) -> None:
    if current_user.role != UserRole.ADMIN.value and str(current_user.id) != user_id:
        logger.warning(f"User {current_user.id} attempted to modify account {user_id}")
        raise PermissionDeniedError("Not authorized to modify this user")


@router.get("")
async def list_users(
    current_user: DBUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service)
):
    try:
        return success(await user_service.list_users())

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve users"
        )


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current_user: DBUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    try:
        return success(await user_service.get_user(user_id))

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to get user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve user"
        )


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    current_user: DBUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """Update name or email; callers may edit themselves, admins anyone."""
    try:
        _ensure_self_or_admin(current_user, user_id)
        updated = await user_service.update_user(user_id, user_data)
        return success(updated, "User updated successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to update user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user"
        )


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: DBUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    try:
        _ensure_self_or_admin(current_user, user_id)
        await user_service.delete_user(user_id)
        return success(message="User deleted successfully")

    except PropTrackError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete user"
        )
