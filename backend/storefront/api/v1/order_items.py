"""Order item routes"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import ensure_owner_or_admin, get_current_identity
from storefront.core.database import get_db
from storefront.schemas.order import OrderItemEnvelope, OrderItemResponse, OrderItemUpdate, OrderResponse
from storefront.services.auth_service import Identity
from storefront.services.order_service import order_service

router = APIRouter()


@router.patch("/{item_id}", response_model=OrderItemEnvelope)
def update_order_item(
    item_id: int,
    changes: OrderItemUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Change the quantity of an order line (owner or admin)

    A quantity of 0 removes the line; ``order_item`` is then null. The
    response carries the order with its adjusted total.
    """
    item = order_service.get_order_item(db, item_id)
    ensure_owner_or_admin(identity, order_service.get_order(db, item.order_id).user_id)

    item, order = order_service.update_line_item_quantity(db, item_id, changes.quantity)
    return OrderItemEnvelope(
        order_item=OrderItemResponse.model_validate(item) if item is not None else None,
        order=OrderResponse.model_validate(order),
    )
