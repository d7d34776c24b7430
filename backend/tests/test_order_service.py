import pytest
from sqlalchemy.exc import IntegrityError

from storefront.core.exceptions import ResourceNotFoundError, ValidationFailedError
from storefront.models.order import Order, OrderItem
from storefront.schemas.order import OrderUpdate
from storefront.services import order_service as order_module
from storefront.services.order_service import LineItem, line_total, order_service


@pytest.fixture
def customer(make_user):
    return make_user(email="carol@example.com")


def _items_total(db, order_id):
    return sum(item.total for item in db.query(OrderItem).filter(OrderItem.order_id == order_id))


def test_line_total_floors():
    assert line_total(100, 2) == 200
    assert line_total(199, 1.5) == 298
    assert line_total(333, 0.1) == 33


def test_place_order_derives_totals(db, customer, make_product):
    milk, bread = make_product(price=100), make_product(price=50)

    order = order_service.place_order(
        db, customer.id, "Abay ave 1",
        [LineItem(milk.id, 100, 2), LineItem(bread.id, 50, 3)],
    )

    assert order.total == 350
    assert [item.total for item in order.items] == [200, 150]
    assert order.status_id == 1
    assert order.user_id == customer.id
    assert _items_total(db, order.id) == order.total


def test_place_order_with_fractional_amount(db, customer, make_product):
    apples = make_product(price=199, step=0.5)
    order = order_service.place_order(db, customer.id, "Abay ave 1", [LineItem(apples.id, 199, 1.5)])
    assert order.total == 298


def test_place_order_collects_every_error(db, customer, make_product):
    milk = make_product(price=100)

    with pytest.raises(ValidationFailedError) as exc_info:
        order_service.place_order(
            db, customer.id, "   ",
            [LineItem(milk.id, 100, 0), LineItem(milk.id, -5, 1), LineItem(9999, 10, 1)],
        )

    errors = exc_info.value.errors
    assert set(errors) == {"address", "products[0].amount", "products[1].price", "products[2].id"}
    assert db.query(Order).count() == 0


def test_place_order_needs_products(db, customer):
    with pytest.raises(ValidationFailedError) as exc_info:
        order_service.place_order(db, customer.id, "Abay ave 1", [])
    assert "products" in exc_info.value.errors


def test_failed_insert_leaves_nothing_behind(db, customer, make_product, monkeypatch):
    milk = make_product(price=100)
    monkeypatch.setattr(order_module, "line_total", lambda price, quantity: -1)

    with pytest.raises(IntegrityError):
        order_service.place_order(db, customer.id, "Abay ave 1", [LineItem(milk.id, 100, 2)])

    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


@pytest.fixture
def placed(db, customer, make_product):
    milk, bread = make_product(price=100), make_product(price=50)
    return order_service.place_order(
        db, customer.id, "Abay ave 1",
        [LineItem(milk.id, 100, 2), LineItem(bread.id, 50, 3)],
    )


def test_quantity_change_moves_order_total(db, placed):
    milk_item = placed.items[0]

    item, order = order_service.update_line_item_quantity(db, milk_item.id, 5)

    assert item.quantity == 5
    assert item.total == 500
    assert order.total == 650
    assert _items_total(db, order.id) == order.total


def test_zero_quantity_removes_item(db, placed):
    milk_item_id = placed.items[0].id

    item, order = order_service.update_line_item_quantity(db, milk_item_id, 0)

    assert item is None
    assert order.total == 150
    assert db.query(OrderItem).filter(OrderItem.id == milk_item_id).first() is None
    assert _items_total(db, order.id) == order.total


def test_total_stays_consistent_over_several_edits(db, placed):
    milk_id, bread_id = placed.items[0].id, placed.items[1].id

    order_service.update_line_item_quantity(db, milk_id, 1)
    order_service.update_line_item_quantity(db, bread_id, 2.5)
    _, order = order_service.update_line_item_quantity(db, milk_id, 4)

    assert order.total == 400 + 125
    assert _items_total(db, order.id) == order.total


def test_unit_price_is_recovered_by_truncation(db, customer, make_product):
    apples = make_product(price=199)
    order = order_service.place_order(db, customer.id, "Abay ave 1", [LineItem(apples.id, 199, 1.5)])

    # 298 / 1.5 = 198.67 -> 198
    item, order = order_service.update_line_item_quantity(db, order.items[0].id, 2)
    assert item.total == 396
    assert order.total == 396


def test_negative_quantity_is_rejected(db, placed):
    with pytest.raises(ValidationFailedError):
        order_service.update_line_item_quantity(db, placed.items[0].id, -1)


def test_unknown_item(db):
    with pytest.raises(ResourceNotFoundError):
        order_service.update_line_item_quantity(db, 12345, 1)


def test_order_details_join_products(db, placed):
    rows = order_service.get_order_details(db, placed.id)
    assert [row["subtotal"] for row in rows] == [200, 150]
    assert rows[0]["amount"] == 2
    assert rows[0]["price"] == 100


def test_update_order_validates_status(db, placed):
    with pytest.raises(ValidationFailedError):
        order_service.update_order(db, placed.id, OrderUpdate(status_id=42))

    order = order_service.update_order(db, placed.id, OrderUpdate(status_id=3, address="Dostyk 5"))
    assert order.status_id == 3
    assert order.address == "Dostyk 5"


def test_delete_order_cascades_items(db, placed):
    order_service.delete_order(db, placed.id)
    assert db.query(OrderItem).count() == 0
    with pytest.raises(ResourceNotFoundError):
        order_service.get_order(db, placed.id)


def test_user_orders(db, placed, customer, make_user):
    other = make_user(email="dave@example.com")
    assert [o.id for o in order_service.list_user_orders(db, customer.id)] == [placed.id]
    assert order_service.list_user_orders(db, other.id) == []


def test_oversized_amount_is_a_field_error(db, customer, make_product):
    milk = make_product(price=100)

    with pytest.raises(ValidationFailedError) as exc_info:
        order_service.place_order(db, customer.id, "Abay ave 1", [LineItem(milk.id, 100, 1e20)])

    assert set(exc_info.value.errors) == {"products[0].amount"}
    assert db.query(Order).count() == 0


def test_order_total_must_fit_bigint(db, customer, make_product):
    milk, bread = make_product(price=100), make_product(price=50)

    with pytest.raises(ValidationFailedError) as exc_info:
        order_service.place_order(db, customer.id, "Abay ave 1", [LineItem(milk.id, 2**63 - 1, 2)])
    assert set(exc_info.value.errors) == {"products[0].amount"}

    with pytest.raises(ValidationFailedError) as exc_info:
        order_service.place_order(
            db, customer.id, "Abay ave 1",
            [LineItem(milk.id, 2**62, 1.5), LineItem(bread.id, 2**62, 1.5)],
        )
    assert set(exc_info.value.errors) == {"products"}
    assert db.query(Order).count() == 0


def test_quantity_change_that_overflows_total_is_rejected(db, customer, make_product):
    milk = make_product(price=100)
    order = order_service.place_order(db, customer.id, "Abay ave 1", [LineItem(milk.id, 2**62, 1)])
    item_id = order.items[0].id

    with pytest.raises(ValidationFailedError) as exc_info:
        order_service.update_line_item_quantity(db, item_id, 3)
    assert "quantity" in exc_info.value.errors

    with pytest.raises(ValidationFailedError):
        order_service.update_line_item_quantity(db, item_id, 1e20)

    item, order = order_service.update_line_item_quantity(db, item_id, 1.5)
    assert item.total == 3 * 2**61
    assert order.total == item.total
