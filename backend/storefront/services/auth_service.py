"""Auth manager - registration, login, refresh, logout and identity resolution"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.core.exceptions import (
    AuthenticationError,
    InactiveAccountError,
    InvalidCredentialsError,
    ResourceNotFoundError,
    TokenExpiredOrInvalidError,
    ValidationFailedError,
)
from storefront.core.security import (
    TokenCodec,
    TokenError,
    build_access_codec,
    build_refresh_codec,
    generate_activation_token,
    generate_reset_code,
    get_password_hash,
    verify_password,
)
from storefront.models.security import PasswordResetCode
from storefront.models.user import User
from storefront.schemas.user import RegisterRequest
from storefront.services.mail_service import Mailer, mailer as default_mailer
from storefront.services.token_service import token_service
from storefront.services.user_service import user_service
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller attached to a request"""
    user_id: int
    role_id: int


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: Optional[str] = None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _same_token(stored: str, presented: str) -> bool:
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


class AuthService:
    """
    Session lifecycle on top of the credential and session stores.

    A user moves from anonymous to authenticated on login and back when the
    refresh token expires, is superseded by a newer login, or is revoked by
    logout. Access tokens are never stored and stay valid until they expire.
    """

    def __init__(
        self,
        access_codec: TokenCodec,
        refresh_codec: TokenCodec,
        access_lifetime: timedelta,
        refresh_lifetime: timedelta,
        rotate_refresh_tokens: bool = True,
        require_activation: bool = False,
        mailer: Optional[Mailer] = None,
    ):
        self.access_codec = access_codec
        self.refresh_codec = refresh_codec
        self.access_lifetime = access_lifetime
        self.refresh_lifetime = refresh_lifetime
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self.require_activation = require_activation
        self.mailer = mailer
        # verified against when the email is unknown
        self._dummy_hash = get_password_hash("not-a-real-password")

    @classmethod
    def from_settings(cls) -> "AuthService":
        return cls(
            access_codec=build_access_codec(),
            refresh_codec=build_refresh_codec(),
            access_lifetime=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_lifetime=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            rotate_refresh_tokens=settings.ROTATE_REFRESH_TOKENS,
            require_activation=settings.REQUIRE_ACTIVATION,
            mailer=default_mailer,
        )

    def _burn_password_check(self, password: str) -> None:
        """Spend one bcrypt verification so unknown emails take as long as wrong passwords."""
        verify_password(password, self._dummy_hash)

    def _issue_pair(self, user: User) -> TokenPair:
        access_token, _ = self.access_codec.issue(user.id, user.role_id, self.access_lifetime)
        refresh_token, _ = self.refresh_codec.issue(user.id, user.role_id, self.refresh_lifetime)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def _send(self, background_tasks, recipient: str, template: str, data: dict) -> None:
        if self.mailer is not None:
            self.mailer.dispatch(background_tasks, recipient, template, data)

    def register(
        self,
        db: Session,
        profile: RegisterRequest,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> User:
        """
        Create a customer account and queue its activation email

        Raises:
            ValidationFailedError: Admin role requested
            DuplicateEmailError: Email already registered
            HashingError: bcrypt failure
        """
        role_id = profile.role_id if profile.role_id is not None else settings.CUSTOMER_ROLE_ID
        if role_id == settings.ADMIN_ROLE_ID:
            raise ValidationFailedError({"role_id": "cannot register with the admin role"})

        activation_token = generate_activation_token()
        user = user_service.create_user(db, profile, role_id, activation_token=activation_token)

        self._send(
            background_tasks,
            user.email,
            "user_welcome",
            {
                "firstname": user.firstname or user.email,
                "user_id": user.id,
                "activation_url": f"{settings.PUBLIC_BASE_URL}/v1/auth/activate/{activation_token}",
            },
        )
        return user

    def authenticate(self, db: Session, email: str, password: str) -> TokenPair:
        """
        Exchange credentials for a token pair; the refresh token replaces any
        previous session of the user.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            InactiveAccountError: Activation required and still pending
        """
        user = user_service.get_user_by_email(db, email)
        if user is None:
            self._burn_password_check(password)
            raise InvalidCredentialsError()

        if not verify_password(password, user.password_hash):
            logger.info(f"Failed login for user {user.id}")
            raise InvalidCredentialsError()

        if self.require_activation and not user.is_activated:
            raise InactiveAccountError()

        pair = self._issue_pair(user)
        token_service.save(db, user.id, pair.refresh_token)
        logger.info(f"User {user.id} logged in")
        return pair

    def refresh(self, db: Session, presented: str) -> TokenPair:
        """
        Mint a new access token from the live refresh token.

        With rotation enabled the refresh token is swapped for a new one in
        the same step and the presented one stops working.

        Raises:
            TokenExpiredOrInvalidError: Expired, forged, superseded or revoked token
        """
        try:
            claims = self.refresh_codec.decode(presented)
        except TokenError as exc:
            logger.info(f"Rejected refresh token: {type(exc).__name__}")
            raise TokenExpiredOrInvalidError() from exc

        try:
            session = token_service.find(db, claims.user_id)
        except ResourceNotFoundError as exc:
            raise TokenExpiredOrInvalidError() from exc

        if not _same_token(session.refresh_token, presented):
            logger.info(f"Superseded refresh token presented for user {claims.user_id}")
            raise TokenExpiredOrInvalidError()

        user = user_service.get_user_by_id(db, claims.user_id)
        if user is None:
            raise TokenExpiredOrInvalidError()

        access_token, _ = self.access_codec.issue(user.id, user.role_id, self.access_lifetime)
        if not self.rotate_refresh_tokens:
            return TokenPair(access_token=access_token)

        refresh_token, _ = self.refresh_codec.issue(user.id, user.role_id, self.refresh_lifetime)
        if not token_service.replace(db, user.id, presented, refresh_token):
            # another refresh or login won the race
            raise TokenExpiredOrInvalidError()

        logger.info(f"Rotated refresh token for user {user.id}")
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def logout(self, db: Session, user_id: int, presented: Optional[str]) -> None:
        """
        Revoke the caller's session

        Raises:
            AuthenticationError: No live session or the token does not match it
        """
        if not presented:
            raise AuthenticationError("Refresh token is required to log out")

        try:
            session = token_service.find(db, user_id)
        except ResourceNotFoundError as exc:
            raise AuthenticationError("No active session") from exc

        if not _same_token(session.refresh_token, presented):
            raise AuthenticationError("Refresh token does not match the active session")

        try:
            token_service.remove(db, presented)
        except ResourceNotFoundError as exc:
            raise AuthenticationError("No active session") from exc

        logger.info(f"User {user_id} logged out")

    def resolve_identity(self, db: Session, access_token: str) -> Identity:
        """
        Turn a bearer access token into the caller's identity.

        The role comes from the user row, so a demoted admin loses admin
        rights without waiting for the token to expire.
        """
        try:
            claims = self.access_codec.decode(access_token)
        except TokenError as exc:
            raise AuthenticationError("Invalid or expired access token") from exc

        user = user_service.get_user_by_id(db, claims.user_id)
        if user is None:
            raise AuthenticationError("Invalid or expired access token")
        return Identity(user_id=user.id, role_id=user.role_id)

    def activate(self, db: Session, token: str) -> User:
        return user_service.activate_user(db, token)

    def request_password_reset(
        self,
        db: Session,
        email: str,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> None:
        """Issue a reset code; unknown emails are accepted silently."""
        user = user_service.get_user_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for an unknown email")
            return

        minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES
        code = generate_reset_code()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=minutes)
        user_service.create_reset_code(db, user.id, code, expires_at)

        self._send(
            background_tasks,
            user.email,
            "password_reset",
            {"code": code, "expires_minutes": minutes},
        )

    def verify_reset_code(self, db: Session, code: str) -> PasswordResetCode:
        record = user_service.get_reset_code(db, code)
        if record is None or _as_utc(record.expires_at) <= datetime.now(timezone.utc):
            raise TokenExpiredOrInvalidError("Reset code expired or invalid")
        return record

    def reset_password(self, db: Session, code: str, password: str) -> None:
        """Set a new password; the user's session is revoked along with the code."""
        record = self.verify_reset_code(db, code)
        user_service.reset_password(db, record.user_id, password)


auth_service = AuthService.from_settings()
