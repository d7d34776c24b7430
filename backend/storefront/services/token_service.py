"""Session store - the single live refresh token of each user."""

from __future__ import annotations

from sqlalchemy import delete, func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from storefront.core.exceptions import DatabaseError, ResourceNotFoundError
from storefront.models.security import UserSession
import logging

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class TokenService:
    """Persist, look up and revoke refresh-token sessions.

    A user owns at most one session row. Every write is a single statement so
    two concurrent logins for the same account cannot produce two rows or lose
    an update between a read and a write.
    """

    @staticmethod
    def save(db: Session, user_id: int, refresh_token: str) -> None:
        """Insert the session or overwrite the token of the existing one."""
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise DatabaseError(f"Sessions cannot be stored on the {dialect} dialect")

        stmt = insert(UserSession).values(user_id=user_id, refresh_token=refresh_token)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserSession.user_id],
            set_={"refresh_token": stmt.excluded.refresh_token, "updated_at": func.now()},
        )
        db.execute(stmt)
        db.commit()

    @staticmethod
    def find(db: Session, user_id: int) -> UserSession:
        session = db.query(UserSession).filter(UserSession.user_id == user_id).first()
        if session is None:
            raise ResourceNotFoundError("Session")
        return session

    @staticmethod
    def remove(db: Session, refresh_token: str) -> None:
        """Delete the session holding ``refresh_token``."""
        if not refresh_token:
            raise ResourceNotFoundError("Session")
        result = db.execute(delete(UserSession).where(UserSession.refresh_token == refresh_token))
        if result.rowcount == 0:
            db.rollback()
            raise ResourceNotFoundError("Session")
        db.commit()

    @staticmethod
    def replace(db: Session, user_id: int, expected: str, refresh_token: str) -> bool:
        """
        Compare-and-swap the stored token.

        Returns:
            bool: False if the stored token is no longer ``expected``
        """
        result = db.execute(
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.refresh_token == expected)
            .values(refresh_token=refresh_token)
        )
        if result.rowcount != 1:
            db.rollback()
            return False
        db.commit()
        return True


token_service = TokenService()
