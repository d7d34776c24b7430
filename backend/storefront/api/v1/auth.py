"""Authentication routes"""

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from storefront.api.deps import client_ip, get_current_identity, get_refresh_token
from storefront.config import settings
from storefront.core.database import get_db
from storefront.core.exceptions import TokenExpiredOrInvalidError
from storefront.schemas.user import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserEnvelope,
    UserResponse,
)
from storefront.services.auth_service import Identity, auth_service
from storefront.services.rate_limiter import rate_limiter

router = APIRouter()


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_202_ACCEPTED)
def register(
    profile: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Create an account; the activation email goes out after the response

    Returns:
        The new user
    """
    user = auth_service.register(db, profile, background_tasks)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/authenticate", response_model=TokenResponse, response_model_exclude_none=True)
def authenticate(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Login endpoint - exchange email and password for a token pair

    The refresh token is also set as an HTTP-only cookie.
    """
    rate_limiter.check(
        "login",
        f"{client_ip(request)}:{credentials.email.lower()}",
        [(settings.LOGIN_RATE_LIMIT_PER_MINUTE, 60), (settings.LOGIN_RATE_LIMIT_PER_HOUR, 3600)],
    )

    pair = auth_service.authenticate(db, credentials.email, credentials.password)
    _set_refresh_cookie(response, pair.refresh_token)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.get("/refresh", response_model=TokenResponse, response_model_exclude_none=True)
def refresh(
    request: Request,
    response: Response,
    presented: Optional[str] = Depends(get_refresh_token),
    db: Session = Depends(get_db),
):
    """
    Mint a new access token from the refresh token

    The refresh token is read from the Bearer header or the cookie. When
    rotation is on the response carries the replacement refresh token too.
    """
    rate_limiter.check(
        "refresh",
        client_ip(request),
        [(settings.RATE_LIMIT_PER_MINUTE, 60), (settings.RATE_LIMIT_PER_HOUR, 3600)],
    )
    if not presented:
        raise TokenExpiredOrInvalidError("Refresh token is missing")

    pair = auth_service.refresh(db, presented)
    if pair.refresh_token:
        _set_refresh_cookie(response, pair.refresh_token)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.get("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    x_refresh_token: Optional[str] = Header(None, alias="X-Refresh-Token"),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Revoke the caller's session; the access token lives on until it expires"""
    presented = x_refresh_token or request.cookies.get(settings.REFRESH_COOKIE_NAME)
    auth_service.logout(db, identity.user_id, presented)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME)
    return MessageResponse(message="logged out successfully")


@router.get("/activate/{token}", response_model=UserEnvelope)
def activate(token: str, db: Session = Depends(get_db)):
    user = auth_service.activate(db, token)
    return UserEnvelope(user=UserResponse.model_validate(user))
