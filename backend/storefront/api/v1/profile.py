"""Routes about the calling user"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.core.database import get_db
from storefront.models.user import User
from storefront.schemas.order import OrderListEnvelope, OrderResponse
from storefront.schemas.user import UserEnvelope, UserResponse
from storefront.services.order_service import order_service

router = APIRouter()


@router.get("/me", response_model=UserEnvelope)
def get_my_profile(current_user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.get("/orders", response_model=OrderListEnvelope)
def get_my_orders(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    orders = order_service.list_user_orders(db, current_user.id)
    return OrderListEnvelope(orders=[OrderResponse.model_validate(o) for o in orders])
