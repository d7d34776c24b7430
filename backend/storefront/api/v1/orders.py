"""Order routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.api.deps import ensure_owner_or_admin, get_current_identity, require_admin
from storefront.core.database import get_db
from storefront.schemas.order import (
    OrderCreate,
    OrderDetailEnvelope,
    OrderEnvelope,
    OrderLineDetail,
    OrderListEnvelope,
    OrderResponse,
    OrderUpdate,
)
from storefront.schemas.user import MessageResponse
from storefront.services.auth_service import Identity
from storefront.services.order_service import LineItem, order_service

router = APIRouter()


@router.post("", response_model=OrderEnvelope, status_code=status.HTTP_202_ACCEPTED)
def place_order(
    payload: OrderCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Place an order for the caller

    Args:
        payload: Delivery address and the requested products (id, price, amount)

    Returns:
        The order header with its server-computed total
    """
    line_items = [
        LineItem(product_id=p.id, unit_price=p.price, quantity=p.amount)
        for p in payload.products
    ]
    order = order_service.place_order(db, identity.user_id, payload.address, line_items)
    return OrderEnvelope(order=OrderResponse.model_validate(order))


@router.get("", response_model=OrderListEnvelope)
def list_orders(
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    orders = order_service.list_orders(db)
    return OrderListEnvelope(orders=[OrderResponse.model_validate(o) for o in orders])


@router.get("/{order_id}", response_model=OrderDetailEnvelope)
def get_order(
    order_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Order header plus its items joined with product data (owner or admin)"""
    order = order_service.get_order(db, order_id)
    ensure_owner_or_admin(identity, order.user_id)
    details = order_service.get_order_details(db, order_id)
    return OrderDetailEnvelope(
        order=OrderResponse.model_validate(order),
        order_items=[OrderLineDetail(**row) for row in details],
    )


@router.patch("/{order_id}", response_model=OrderEnvelope)
def update_order(
    order_id: int,
    changes: OrderUpdate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    order = order_service.update_order(db, order_id, changes)
    return OrderEnvelope(order=OrderResponse.model_validate(order))


@router.delete("/{order_id}", response_model=MessageResponse)
def delete_order(
    order_id: int,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    order_service.delete_order(db, order_id)
    return MessageResponse(message="order successfully deleted")
