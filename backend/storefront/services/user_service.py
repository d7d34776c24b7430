"""User service - credential store and account lifecycle persistence"""

from sqlalchemy import update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from storefront.config import settings
from storefront.models.user import Role, User
from storefront.models.security import ActivationToken, PasswordResetCode, UserSession
from storefront.schemas.user import RegisterRequest, UserUpdate
from storefront.core.security import get_password_hash
from storefront.core.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    EditConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
import logging

logger = logging.getLogger(__name__)

DEFAULT_ROLES = (
    (1, "admin", "Store administrator"),
    (2, "customer", "Storefront customer"),
)


class UserService:
    """Service for user records"""

    @staticmethod
    def ensure_roles(db: Session) -> None:
        """Seed the default roles if they are missing"""
        existing = {role_id for (role_id,) in db.query(Role.id).all()}
        for role_id, name, description in DEFAULT_ROLES:
            if role_id not in existing:
                db.add(Role(id=role_id, name=name, description=description))
        db.commit()

    @staticmethod
    def create_user(
        db: Session,
        profile: RegisterRequest,
        role_id: int,
        activation_token: Optional[str] = None,
        is_activated: bool = False,
    ) -> User:
        """
        Persist a new user, hashing the password first

        Args:
            db: Database session
            profile: Validated registration payload
            role_id: Role to assign
            activation_token: Optional one-time activation token stored in the same transaction
            is_activated: Initial activation flag

        Returns:
            Created user

        Raises:
            DuplicateEmailError: If the email is already registered
            HashingError: If bcrypt fails
        """
        if db.get(Role, role_id) is None:
            raise ValidationFailedError({"role_id": "must reference an existing role"})

        user = User(
            firstname=profile.firstname,
            lastname=profile.lastname,
            phone_number=profile.phone_number,
            email=profile.email,
            password_hash=get_password_hash(profile.password),
            role_id=role_id,
            is_activated=is_activated,
        )
        db.add(user)

        try:
            db.flush()
            if activation_token:
                db.add(ActivationToken(user_id=user.id, token=activation_token))
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if UserService.get_user_by_email(db, profile.email) is not None:
                raise DuplicateEmailError() from exc
            logger.error(f"Failed to insert user: {exc}")
            raise DatabaseError() from exc

        db.refresh(user)
        logger.info(f"Created user {user.id} (role_id: {user.role_id})")
        return user

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def update_user(db: Session, user_id: int, changes: UserUpdate) -> User:
        """
        Apply a partial update with optimistic locking

        The row is only written when its version still matches the one the
        client read (or the current one when no version was sent).

        Raises:
            ResourceNotFoundError: Unknown user
            EditConflictError: Version moved on since the client read it
            DuplicateEmailError: New email already taken
        """
        user = UserService.get_user_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User")

        expected_version = changes.version if changes.version is not None else user.version
        values = changes.model_dump(exclude_none=True, exclude={"version", "password"})
        if changes.password is not None:
            values["password_hash"] = get_password_hash(changes.password)
        if "role_id" in values and db.get(Role, values["role_id"]) is None:
            raise ValidationFailedError({"role_id": "must reference an existing role"})

        try:
            result = db.execute(
                update(User)
                .where(User.id == user_id, User.version == expected_version)
                .values(version=User.version + 1, **values)
            )
            if result.rowcount == 0:
                db.rollback()
                raise EditConflictError()
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if "email" in values:
                raise DuplicateEmailError() from exc
            logger.error(f"Failed to update user {user_id}: {exc}")
            raise DatabaseError() from exc

        db.refresh(user)
        logger.info(f"Updated user {user_id} (version {user.version})")
        return user

    @staticmethod
    def delete_user(db: Session, user_id: int) -> None:
        """
        Delete a user; their session and one-time codes go with them, their
        orders are kept with ``user_id`` cleared.
        """
        user = UserService.get_user_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User")

        db.delete(user)
        db.commit()
        logger.info(f"Deleted user {user_id}")

    @staticmethod
    def activate_user(db: Session, token: str) -> User:
        record = db.query(ActivationToken).filter(ActivationToken.token == token).first()
        if not record:
            raise ResourceNotFoundError("Activation token")

        user = UserService.get_user_by_id(db, record.user_id)
        user.is_activated = True
        db.execute(delete(ActivationToken).where(ActivationToken.user_id == user.id))
        db.commit()
        db.refresh(user)
        logger.info(f"Activated user {user.id}")
        return user

    @staticmethod
    def create_reset_code(db: Session, user_id: int, code: str, expires_at: datetime) -> PasswordResetCode:
        record = PasswordResetCode(user_id=user_id, code=code, expires_at=expires_at)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def get_reset_code(db: Session, code: str) -> Optional[PasswordResetCode]:
        return db.query(PasswordResetCode).filter(PasswordResetCode.code == code).first()

    @staticmethod
    def reset_password(db: Session, user_id: int, password: str) -> None:
        """
        Replace the password hash, burn every reset code of the user and drop
        their session so all devices have to log in again.
        """
        password_hash = get_password_hash(password)
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash, version=User.version + 1)
        )
        db.execute(delete(PasswordResetCode).where(PasswordResetCode.user_id == user_id))
        db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        db.commit()
        logger.info(f"Password reset for user {user_id}")

    @staticmethod
    def seed_admin(db: Session) -> Optional[User]:
        """Create the configured admin account on first start"""
        if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
            return None
        existing = UserService.get_user_by_email(db, settings.ADMIN_EMAIL)
        if existing:
            return existing
        profile = RegisterRequest(email=settings.ADMIN_EMAIL, password=settings.ADMIN_PASSWORD)
        return UserService.create_user(db, profile, settings.ADMIN_ROLE_ID, is_activated=True)

    @staticmethod
    def get_all_users(db: Session, role_id: Optional[int] = None) -> List[User]:
        query = db.query(User)
        if role_id is not None:
            query = query.filter(User.role_id == role_id)
        return query.order_by(User.id).all()


# Singleton instance
user_service = UserService()
