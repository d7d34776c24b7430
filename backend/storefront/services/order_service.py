"""Order service - order placement and line-item maintenance"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.core.exceptions import ResourceNotFoundError, ValidationFailedError
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.schemas.order import MAX_AMOUNT, MAX_MINOR_UNITS, OrderUpdate
import logging

logger = logging.getLogger(__name__)

DEFAULT_STATUSES = (
    (1, "accepted", "Order received"),
    (2, "assembling", "Order is being picked"),
    (3, "delivering", "Courier is on the way"),
    (4, "delivered", "Order handed over"),
    (5, "cancelled", "Order cancelled"),
)


@dataclass(frozen=True)
class LineItem:
    """Requested product line: unit price in minor units times a fractional quantity"""
    product_id: int
    unit_price: int
    quantity: float


def line_total(unit_price: int, quantity: float) -> int:
    return math.floor(unit_price * quantity)


class OrderService:
    """Service for orders and their items"""

    @staticmethod
    def ensure_statuses(db: Session) -> None:
        """Seed the order statuses if they are missing"""
        existing = {status_id for (status_id,) in db.query(OrderStatus.id).all()}
        for status_id, name, description in DEFAULT_STATUSES:
            if status_id not in existing:
                db.add(OrderStatus(id=status_id, name=name, description=description))
        db.commit()

    @staticmethod
    def _validate(db: Session, address: str, line_items: Sequence[LineItem]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not address or not address.strip():
            errors["address"] = "must be provided"
        if not line_items:
            errors["products"] = "must contain at least one product"
            return errors

        ids = {item.product_id for item in line_items}
        known = {pid for (pid,) in db.query(Product.id).filter(Product.id.in_(ids)).all()}

        order_total = 0
        for i, item in enumerate(line_items):
            if item.product_id not in known:
                errors[f"products[{i}].id"] = "must reference an existing product"
            price_ok = 0 <= item.unit_price <= MAX_MINOR_UNITS
            amount_ok = math.isfinite(item.quantity) and 0 < item.quantity <= MAX_AMOUNT
            if item.unit_price < 0:
                errors[f"products[{i}].price"] = "can not be negative"
            elif not price_ok:
                errors[f"products[{i}].price"] = "is too large"
            if not amount_ok:
                errors[f"products[{i}].amount"] = f"must be greater than zero and at most {MAX_AMOUNT}"
            if price_ok and amount_ok:
                subtotal = line_total(item.unit_price, item.quantity)
                if subtotal > MAX_MINOR_UNITS:
                    errors[f"products[{i}].amount"] = "line total is too large"
                else:
                    order_total += subtotal

        if order_total > MAX_MINOR_UNITS and "products" not in errors:
            errors["products"] = "order total is too large"
        return errors

    @staticmethod
    def place_order(db: Session, user_id: int, address: str, line_items: Sequence[LineItem]) -> Order:
        """
        Create an order header and all of its items in one transaction

        Each item total is floor(price * amount) and the header total is
        their sum; whatever total the client may have computed is ignored.

        Raises:
            ValidationFailedError: Every failing field, collected across all items
        """
        errors = OrderService._validate(db, address, line_items)
        if errors:
            raise ValidationFailedError(errors)

        items = [
            OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                total=line_total(item.unit_price, item.quantity),
            )
            for item in line_items
        ]
        order = Order(
            user_id=user_id,
            address=address.strip(),
            status_id=settings.ACCEPTED_STATUS_ID,
            total=sum(item.total for item in items),
            items=items,
        )
        db.add(order)

        try:
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.error(f"Order placement for user {user_id} rolled back: {exc}")
            raise

        db.refresh(order)
        logger.info(f"Placed order {order.id} for user {user_id} ({len(items)} items, total {order.total})")
        return order

    @staticmethod
    def get_order(db: Session, order_id: int) -> Order:
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise ResourceNotFoundError("Order")
        return order

    @staticmethod
    def get_order_item(db: Session, item_id: int) -> OrderItem:
        item = db.query(OrderItem).filter(OrderItem.id == item_id).first()
        if not item:
            raise ResourceNotFoundError("Order item")
        return item

    @staticmethod
    def get_order_details(db: Session, order_id: int) -> List[dict]:
        """Items of an order joined with their products"""
        rows = (
            db.query(OrderItem, Product)
            .join(Product, Product.id == OrderItem.product_id)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
            .all()
        )
        return [
            {
                "id": item.id,
                "product_id": product.id,
                "name": product.name,
                "price": product.price,
                "description": product.description,
                "upc": product.upc,
                "image": product.image,
                "step": product.step,
                "amount": item.quantity,
                "subtotal": item.total,
            }
            for item, product in rows
        ]

    @staticmethod
    def list_orders(db: Session) -> List[Order]:
        return db.query(Order).order_by(Order.id).all()

    @staticmethod
    def list_user_orders(db: Session, user_id: int) -> List[Order]:
        return db.query(Order).filter(Order.user_id == user_id).order_by(Order.id).all()

    @staticmethod
    def update_line_item_quantity(
        db: Session, item_id: int, quantity: float
    ) -> Tuple[Optional[OrderItem], Order]:
        """
        Change the quantity of one item and move the order total by the same delta

        The unit price is recovered from the stored line (total / quantity,
        truncated). A quantity of zero removes the line. The item write and
        the header adjustment commit together.

        Returns:
            The updated item (None when removed) and its refreshed order

        Raises:
            ValidationFailedError: Negative, non-finite or oversized quantity
            ResourceNotFoundError: Unknown item
        """
        if not math.isfinite(quantity) or quantity < 0:
            raise ValidationFailedError({"quantity": "can not be negative"})
        if quantity > MAX_AMOUNT:
            raise ValidationFailedError({"quantity": f"must be at most {MAX_AMOUNT}"})

        item = db.query(OrderItem).filter(OrderItem.id == item_id).with_for_update().first()
        if not item:
            raise ResourceNotFoundError("Order item")

        order_id = item.order_id
        unit_price = int(item.total / item.quantity)
        new_total = line_total(unit_price, quantity) if quantity > 0 else 0
        delta = new_total - item.total
        if new_total > MAX_MINOR_UNITS or item.order.total + delta > MAX_MINOR_UNITS:
            db.rollback()
            raise ValidationFailedError({"quantity": "order total is too large"})

        try:
            if quantity == 0:
                db.delete(item)
                item = None
            else:
                item.quantity = quantity
                item.total = new_total
            db.flush()
            # relative update so concurrent edits of sibling items compose
            db.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(total=Order.total + delta)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.error(f"Quantity update of order item {item_id} rolled back: {exc}")
            raise

        order = OrderService.get_order(db, order_id)
        db.refresh(order)
        if item is not None:
            db.refresh(item)
        logger.info(f"Order {order_id} total moved by {delta} (item {item_id})")
        return item, order

    @staticmethod
    def update_order(db: Session, order_id: int, changes: OrderUpdate) -> Order:
        order = OrderService.get_order(db, order_id)
        values = changes.model_dump(exclude_unset=True)
        if values.get("status_id") is not None and db.get(OrderStatus, values["status_id"]) is None:
            raise ValidationFailedError({"status_id": "must reference an existing status"})

        for field, value in values.items():
            if field in ("address", "status_id") and value is None:
                continue
            setattr(order, field, value)
        db.commit()
        db.refresh(order)
        logger.info(f"Updated order {order_id}")
        return order

    @staticmethod
    def delete_order(db: Session, order_id: int) -> None:
        order = OrderService.get_order(db, order_id)
        db.delete(order)
        db.commit()
        logger.info(f"Deleted order {order_id}")


# Singleton instance
order_service = OrderService()
