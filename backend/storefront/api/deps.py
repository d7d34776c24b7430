"""API dependencies - authentication and authorization"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from storefront.config import settings
from storefront.core.database import get_db
from storefront.core.exceptions import AuthenticationError, AuthorizationError
from storefront.models.user import User
from storefront.services.auth_service import Identity, auth_service
from storefront.services.user_service import user_service

# Missing or non-Bearer headers fall through to our own 401
bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> Identity:
    """
    Resolve the bearer access token into the caller's identity

    Raises:
        AuthenticationError: Missing, malformed, expired or forged token, or the user is gone
    """
    if token is None:
        raise AuthenticationError()

    identity = auth_service.resolve_identity(db, token)
    request.state.identity = identity
    return identity


def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    user = user_service.get_user_by_id(db, identity.user_id)
    if not user:
        raise AuthenticationError()
    return user


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Admin-only gate

    Raises:
        AuthorizationError: Caller is not an admin
    """
    if identity.role_id != settings.ADMIN_ROLE_ID:
        raise AuthorizationError("Admin access required")
    return identity


def ensure_owner_or_admin(identity: Identity, owner_id: Optional[int]) -> None:
    if identity.role_id == settings.ADMIN_ROLE_ID:
        return
    if owner_id is None or owner_id != identity.user_id:
        raise AuthorizationError("You do not have access to this resource")


def get_refresh_token(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
) -> Optional[str]:
    """Refresh token from the Bearer header, falling back to the HTTP-only cookie"""
    return token or request.cookies.get(settings.REFRESH_COOKIE_NAME)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
