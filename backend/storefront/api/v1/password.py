"""Password reset routes"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.schemas.user import (
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    ResetCodeVerifyRequest,
)
from storefront.services.auth_service import auth_service

router = APIRouter()


@router.post("/request-password-reset", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(
    body: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Email a reset code

    The answer is the same whether or not the email is registered.
    """
    auth_service.request_password_reset(db, body.email, background_tasks)
    return MessageResponse(message="if the email is registered, a reset code has been sent")


@router.post("/verify-reset-code", response_model=MessageResponse)
def verify_reset_code(body: ResetCodeVerifyRequest, db: Session = Depends(get_db)):
    auth_service.verify_reset_code(db, body.code)
    return MessageResponse(message="reset code is valid")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: PasswordResetConfirm, db: Session = Depends(get_db)):
    auth_service.reset_password(db, body.code, body.password)
    return MessageResponse(message="password has been reset")
