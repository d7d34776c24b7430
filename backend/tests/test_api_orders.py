import pytest

from storefront.models.order import Order

ADMIN_ROLE = 1


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_token(make_user, login):
    make_user(email="frank@example.com")
    access, _ = login("frank@example.com")
    return access


@pytest.fixture
def admin_token(make_user, login):
    make_user(email="admin@example.com", role_id=ADMIN_ROLE)
    access, _ = login("admin@example.com")
    return access


@pytest.fixture
def products(make_product):
    return make_product(price=100), make_product(price=50)


def _place(client, token, products, address="Abay ave 1"):
    milk, bread = products
    return client.post(
        "/v1/orders",
        headers=_bearer(token),
        json={
            "address": address,
            "products": [
                {"id": milk.id, "price": 100, "amount": 2},
                {"id": bread.id, "price": 50, "amount": 3},
            ],
        },
    )


def test_place_order(client, customer_token, products):
    res = _place(client, customer_token, products)
    assert res.status_code == 202
    order = res.json()["order"]
    assert order["total"] == 350
    assert order["status_id"] == 1


def test_client_total_is_ignored(client, customer_token, products):
    milk, _ = products
    res = client.post(
        "/v1/orders",
        headers=_bearer(customer_token),
        json={"address": "Abay ave 1", "total": 1, "products": [{"id": milk.id, "price": 100, "amount": 2}]},
    )
    assert res.json()["order"]["total"] == 200


def test_place_order_requires_login(client, products):
    assert _place(client, "nope", products).status_code == 401


def test_invalid_order_lists_all_fields(client, customer_token, products):
    milk, _ = products
    res = client.post(
        "/v1/orders",
        headers=_bearer(customer_token),
        json={"address": "", "products": [{"id": milk.id, "price": -1, "amount": 0}]},
    )
    assert res.status_code == 422
    assert set(res.json()["details"]) == {"address", "products[0].price", "products[0].amount"}


def test_order_details_for_owner_only(client, customer_token, admin_token, products, make_user, login):
    order_id = _place(client, customer_token, products).json()["order"]["id"]

    res = client.get(f"/v1/orders/{order_id}", headers=_bearer(customer_token))
    assert res.status_code == 200
    body = res.json()
    assert [line["subtotal"] for line in body["order_items"]] == [200, 150]
    assert body["order_items"][0]["amount"] == 2

    make_user(email="grace@example.com")
    stranger, _ = login("grace@example.com")
    assert client.get(f"/v1/orders/{order_id}", headers=_bearer(stranger)).status_code == 403

    assert client.get(f"/v1/orders/{order_id}", headers=_bearer(admin_token)).status_code == 200
    assert client.get("/v1/orders/999", headers=_bearer(admin_token)).status_code == 404


def test_listing_all_orders_is_admin_only(client, customer_token, admin_token, products):
    _place(client, customer_token, products)
    assert client.get("/v1/orders", headers=_bearer(customer_token)).status_code == 403

    res = client.get("/v1/orders", headers=_bearer(admin_token))
    assert res.status_code == 200
    assert len(res.json()["orders"]) == 1


def test_profile_orders(client, customer_token, products):
    _place(client, customer_token, products)
    res = client.get("/v1/profile/orders", headers=_bearer(customer_token))
    assert res.status_code == 200
    assert [o["total"] for o in res.json()["orders"]] == [350]


def test_patch_order_item(client, customer_token, products, db):
    order_id = _place(client, customer_token, products).json()["order"]["id"]
    milk_item, bread_item = db.get(Order, order_id).items

    res = client.patch(f"/v1/order-items/{milk_item.id}", headers=_bearer(customer_token), json={"quantity": 5})
    assert res.status_code == 200
    body = res.json()
    assert body["order_item"]["total"] == 500
    assert body["order"]["total"] == 650

    res = client.patch(f"/v1/order-items/{bread_item.id}", headers=_bearer(customer_token), json={"quantity": 0})
    assert res.status_code == 200
    body = res.json()
    assert body["order_item"] is None
    assert body["order"]["total"] == 500


def test_patch_order_item_rejects_negative_and_strangers(client, customer_token, products, db, make_user, login):
    order_id = _place(client, customer_token, products).json()["order"]["id"]
    item_id = db.get(Order, order_id).items[0].id

    res = client.patch(f"/v1/order-items/{item_id}", headers=_bearer(customer_token), json={"quantity": -2})
    assert res.status_code == 422
    assert "quantity" in res.json()["details"]

    make_user(email="grace@example.com")
    stranger, _ = login("grace@example.com")
    res = client.patch(f"/v1/order-items/{item_id}", headers=_bearer(stranger), json={"quantity": 1})
    assert res.status_code == 403

    assert client.patch("/v1/order-items/999", headers=_bearer(customer_token), json={"quantity": 1}).status_code == 404


def test_admin_updates_and_deletes_order(client, customer_token, admin_token, products):
    order_id = _place(client, customer_token, products).json()["order"]["id"]

    assert client.patch(f"/v1/orders/{order_id}", headers=_bearer(customer_token), json={"status_id": 4}).status_code == 403

    res = client.patch(f"/v1/orders/{order_id}", headers=_bearer(admin_token), json={"status_id": 4})
    assert res.status_code == 200
    assert res.json()["order"]["status_id"] == 4

    assert client.delete(f"/v1/orders/{order_id}", headers=_bearer(admin_token)).status_code == 200
    assert client.get(f"/v1/orders/{order_id}", headers=_bearer(admin_token)).status_code == 404


def test_products(client, customer_token, admin_token):
    payload = {"name": "Kefir", "price": 450, "upc": "4870001", "step": 1}

    assert client.post("/v1/products", headers=_bearer(customer_token), json=payload).status_code == 403

    res = client.post("/v1/products", headers=_bearer(admin_token), json=payload)
    assert res.status_code == 201
    product_id = res.json()["product"]["id"]

    duplicate = client.post("/v1/products", headers=_bearer(admin_token), json=payload)
    assert duplicate.status_code == 422
    assert "upc" in duplicate.json()["details"]

    assert client.get(f"/v1/products/{product_id}").json()["product"]["name"] == "Kefir"
    assert len(client.get("/v1/products").json()["products"]) == 1


def test_user_update_uses_version(client, customer_token, db):
    me = client.get("/v1/profile/me", headers=_bearer(customer_token)).json()["user"]

    res = client.patch(
        f"/v1/users/{me['id']}",
        headers=_bearer(customer_token),
        json={"firstname": "Franky", "version": me["version"]},
    )
    assert res.status_code == 200
    assert res.json()["user"]["version"] == me["version"] + 1

    stale = client.patch(
        f"/v1/users/{me['id']}",
        headers=_bearer(customer_token),
        json={"firstname": "Frankie", "version": me["version"]},
    )
    assert stale.status_code == 409


def test_customer_cannot_promote_self(client, customer_token):
    me = client.get("/v1/profile/me", headers=_bearer(customer_token)).json()["user"]
    res = client.patch(f"/v1/users/{me['id']}", headers=_bearer(customer_token), json={"role_id": ADMIN_ROLE})
    assert res.status_code == 403


def test_deleting_user_orphans_orders(client, customer_token, admin_token, products, db):
    order_id = _place(client, customer_token, products).json()["order"]["id"]
    me = client.get("/v1/profile/me", headers=_bearer(customer_token)).json()["user"]

    assert client.delete(f"/v1/users/{me['id']}", headers=_bearer(customer_token)).status_code == 403
    assert client.delete(f"/v1/users/{me['id']}", headers=_bearer(admin_token)).status_code == 200

    db.expire_all()
    order = db.get(Order, order_id)
    assert order is not None
    assert order.user_id is None
    assert client.get("/v1/profile/me", headers=_bearer(customer_token)).status_code == 401


def test_oversized_amounts_are_rejected(client, customer_token, products, db):
    milk, _ = products
    res = client.post(
        "/v1/orders",
        headers=_bearer(customer_token),
        json={"address": "Abay ave 1", "products": [{"id": milk.id, "price": 100, "amount": 1e20}]},
    )
    assert res.status_code == 422
    assert "products.0.amount" in res.json()["details"]
    assert db.query(Order).count() == 0

    order_id = _place(client, customer_token, products).json()["order"]["id"]
    item_id = db.get(Order, order_id).items[0].id

    res = client.patch(f"/v1/order-items/{item_id}", headers=_bearer(customer_token), json={"quantity": 1e20})
    assert res.status_code == 422
    assert "quantity" in res.json()["details"]

    res = client.patch(f"/v1/order-items/{item_id}", headers=_bearer(customer_token), json={"quantity": 1})
    assert res.status_code == 200
    assert res.json()["order"]["total"] == 250
