"""User management routes"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.api.deps import ensure_owner_or_admin, get_current_identity, require_admin
from storefront.config import settings
from storefront.core.database import get_db
from storefront.core.exceptions import AuthorizationError, ResourceNotFoundError
from storefront.schemas.user import MessageResponse, UserEnvelope, UserResponse, UserUpdate
from storefront.services.auth_service import Identity
from storefront.services.user_service import user_service

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def get_all_users(
    role_id: Optional[int] = None,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Get all users (admin only)

    Args:
        role_id: Optional role filter
    """
    return user_service.get_all_users(db, role_id)


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    ensure_owner_or_admin(identity, user_id)
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise ResourceNotFoundError("User")
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.patch("/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: int,
    changes: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Partially update a user (self or admin)

    Send the ``version`` you read to avoid overwriting a concurrent change;
    a stale version answers 409.
    """
    ensure_owner_or_admin(identity, user_id)
    if changes.role_id is not None and identity.role_id != settings.ADMIN_ROLE_ID:
        raise AuthorizationError("Only admins can change roles")

    user = user_service.update_user(db, user_id, changes)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete user (admin only)

    The user's session goes with them; their orders stay, detached.
    """
    user_service.delete_user(db, user_id)
    return MessageResponse(message="user successfully deleted")
