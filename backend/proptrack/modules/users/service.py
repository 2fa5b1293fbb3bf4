from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_
from proptrack.models.user import User, UserRegistration, UserUpdate
from proptrack.core.auth import AuthService
from proptrack.core.exceptions import InvalidInputError, NotFoundError
from proptrack.db.models import User as DBUser, Property as DBProperty, utcnow
from proptrack.modules.common.ids import parse_id
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Service for agent and user accounts"""

    def __init__(self, db: Session = None):
        self.db = db

    def _get_row(self, user_id) -> DBUser:
        db_user = self.db.query(DBUser).filter(
            and_(DBUser.id == parse_id(user_id), DBUser.is_active == True)
        ).first()
        if not db_user:
            raise NotFoundError("User")
        return db_user

    async def create_user(self, data: UserRegistration) -> User:
        """Create a new user with hashed password"""
        existing_user = self.db.query(DBUser).filter(DBUser.email == data.email).first()
        if existing_user:
            raise InvalidInputError("User with this email already exists")

        db_user = DBUser(
            email=data.email,
            hashed_password=AuthService.get_password_hash(data.password),
            name=data.name.strip(),
            role=data.role.value,
            is_active=True,
        )

        try:
            self.db.add(db_user)
            self.db.commit()
            self.db.refresh(db_user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise

        logger.info(f"Registered {db_user.role} account {db_user.id}")
        return User.from_db(db_user)

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        db_user = self.db.query(DBUser).filter(
            and_(DBUser.email == email, DBUser.is_active == True)
        ).first()

        if not db_user or not AuthService.verify_password(password, db_user.hashed_password):
            return None

        db_user.last_login = utcnow()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(db_user)
        return User.from_db(db_user)

    async def get_user(self, user_id: str) -> User:
        return User.from_db(self._get_row(user_id))

    async def list_users(self) -> List[User]:
        rows = self.db.query(DBUser).filter(DBUser.is_active == True).order_by(DBUser.created_at.desc()).all()
        return [User.from_db(row) for row in rows]

    async def update_user(self, user_id: str, data: UserUpdate) -> User:
        db_user = self._get_row(user_id)

        if data.email and data.email != db_user.email:
            taken = self.db.query(DBUser).filter(DBUser.email == data.email).first()
            if taken:
                raise InvalidInputError("User with this email already exists")
            db_user.email = data.email
        if data.name:
            db_user.name = data.name.strip()

        try:
            self.db.commit()
            self.db.refresh(db_user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {e}")
            raise
        return User.from_db(db_user)

    async def delete_user(self, user_id: str) -> None:
        """Remove an account; agents that still own listings are refused"""
        db_user = self._get_row(user_id)

        owns_listings = self.db.query(DBProperty.id).filter(DBProperty.agent_id == db_user.id).first()
        if owns_listings:
            raise InvalidInputError("User still owns properties and cannot be deleted")

        try:
            self.db.delete(db_user)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise
        logger.info(f"Deleted user {user_id}")
