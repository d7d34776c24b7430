from storefront.config import settings
from storefront.models.security import PasswordResetCode

PASSWORD = "pa55word-long"


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client, email="erin@example.com", password=PASSWORD, **extra):
    return client.post("/v1/auth/register", json={"email": email, "password": password, **extra})


def test_register_returns_accepted_user(client):
    res = _register(client, firstname="Erin", lastname="Doe", phone_number="+7700")
    assert res.status_code == 202
    user = res.json()["user"]
    assert user["email"] == "erin@example.com"
    assert user["role_id"] == 2
    assert user["is_activated"] is False
    assert "password" not in user and "password_hash" not in user


def test_register_duplicate_email(client):
    assert _register(client, firstname="First").status_code == 202

    res = _register(client, firstname="Second")
    assert res.status_code == 422
    body = res.json()
    assert body["success"] is False
    assert "email" in body["details"]


def test_register_reports_every_invalid_field(client):
    res = _register(client, email="not-an-email", password="short")
    assert res.status_code == 422
    details = res.json()["details"]
    assert details["email"] == "must be a valid email address"
    assert details["password"] == "must be at least 8 bytes long"


def test_password_over_72_bytes_is_rejected(client):
    res = _register(client, password="ж" * 37)
    assert res.status_code == 422
    assert "password" in res.json()["details"]


def test_authenticate_returns_tokens_and_cookie(client):
    _register(client)
    res = client.post("/v1/auth/authenticate", json={"email": "erin@example.com", "password": PASSWORD})

    assert res.status_code == 200
    body = res.json()
    assert set(body) == {"accessToken", "refreshToken"}
    assert res.cookies.get(settings.REFRESH_COOKIE_NAME) == body["refreshToken"]


def test_bad_credentials_are_indistinguishable(client):
    _register(client)
    wrong = client.post("/v1/auth/authenticate", json={"email": "erin@example.com", "password": "wrong-password"})
    unknown = client.post("/v1/auth/authenticate", json={"email": "nobody@example.com", "password": PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["error"] == unknown.json()["error"]


def test_protected_route_requires_bearer(client, login):
    _register(client)
    access, _ = login("erin@example.com")

    assert client.get("/v1/profile/me").status_code == 401
    assert client.get("/v1/profile/me", headers=_bearer("garbage")).status_code == 401
    assert client.get("/v1/profile/me", headers={"Authorization": f"Basic {access}"}).status_code == 401

    res = client.get("/v1/profile/me", headers=_bearer(access))
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "erin@example.com"


def test_refresh_token_is_not_an_access_token(client, login):
    _register(client)
    _, refresh = login("erin@example.com")
    assert client.get("/v1/profile/me", headers=_bearer(refresh)).status_code == 401


def test_refresh_with_bearer_rotates(client, login):
    _register(client)
    _, refresh = login("erin@example.com")

    res = client.get("/v1/auth/refresh", headers=_bearer(refresh))
    assert res.status_code == 200
    body = res.json()
    assert body["accessToken"]
    assert body["refreshToken"] != refresh

    stale = client.get("/v1/auth/refresh", headers=_bearer(refresh))
    assert stale.status_code == 401


def test_refresh_falls_back_to_cookie(client, login):
    _register(client)
    login("erin@example.com")

    res = client.get("/v1/auth/refresh")
    assert res.status_code == 200
    assert res.json()["accessToken"]


def test_second_login_invalidates_first_refresh_token(client, login):
    _register(client)
    _, first_refresh = login("erin@example.com")
    login("erin@example.com")

    res = client.get("/v1/auth/refresh", headers=_bearer(first_refresh))
    assert res.status_code == 401


def test_logout_then_refresh_fails(client, login):
    _register(client)
    access, refresh = login("erin@example.com")

    res = client.get("/v1/auth/logout", headers={**_bearer(access), "X-Refresh-Token": refresh})
    assert res.status_code == 200

    res = client.get("/v1/auth/refresh", headers=_bearer(refresh))
    assert res.status_code == 401


def test_logout_requires_access_token(client, login):
    _register(client)
    _, refresh = login("erin@example.com")
    res = client.get("/v1/auth/logout", headers={"X-Refresh-Token": refresh})
    assert res.status_code == 401


def test_activation_link(client, db):
    from storefront.models.security import ActivationToken

    user_id = _register(client).json()["user"]["id"]
    token = db.query(ActivationToken).filter(ActivationToken.user_id == user_id).one().token

    res = client.get(f"/v1/auth/activate/{token}")
    assert res.status_code == 200
    assert res.json()["user"]["is_activated"] is True
    assert client.get(f"/v1/auth/activate/{token}").status_code == 404


def test_login_is_rate_limited(client, monkeypatch):
    monkeypatch.setattr(settings, "LOGIN_RATE_LIMIT_PER_MINUTE", 2)
    payload = {"email": "nobody@example.com", "password": PASSWORD}

    assert client.post("/v1/auth/authenticate", json=payload).status_code == 401
    assert client.post("/v1/auth/authenticate", json=payload).status_code == 401
    assert client.post("/v1/auth/authenticate", json=payload).status_code == 429


def test_password_reset_endpoints(client, db, login):
    _register(client)
    login("erin@example.com")

    res = client.post("/v1/request-password-reset", json={"email": "erin@example.com"})
    assert res.status_code == 202
    ghost = client.post("/v1/request-password-reset", json={"email": "ghost@example.com"})
    assert ghost.status_code == 202
    assert ghost.json() == res.json()

    code = db.query(PasswordResetCode).one().code
    assert client.post("/v1/verify-reset-code", json={"code": code}).status_code == 200
    assert client.post("/v1/verify-reset-code", json={"code": "000000000000"}).status_code == 401

    res = client.post("/v1/reset-password", json={"code": code, "password": "brand-new-password"})
    assert res.status_code == 200

    login("erin@example.com", "brand-new-password")
    assert client.post(
        "/v1/auth/authenticate", json={"email": "erin@example.com", "password": PASSWORD}
    ).status_code == 401


def test_error_body_shape(client):
    res = client.get("/v1/auth/activate/nope")
    assert res.status_code == 404
    body = res.json()
    assert body["success"] is False
    assert body["path"] == "/v1/auth/activate/nope"
    assert body["error"] == "Activation token not found"
    assert "timestamp" in body


def test_health_and_metrics(client):
    assert client.get("/health").status_code == 200
    res = client.get("/v1/healthcheck")
    assert res.status_code == 200
    assert res.json()["status"] == "available"
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "yummy_http_requests_total" in res.text
