import pytest

from storefront.core.exceptions import DatabaseError, ResourceNotFoundError
from storefront.models.security import UserSession
from storefront.services import token_service as token_module
from storefront.services.token_service import token_service


def test_save_keeps_a_single_row_per_user(db, make_user):
    user = make_user()
    token_service.save(db, user.id, "first")
    token_service.save(db, user.id, "second")

    rows = db.query(UserSession).filter(UserSession.user_id == user.id).all()
    assert len(rows) == 1
    assert token_service.find(db, user.id).refresh_token == "second"


def test_find_without_session(db, make_user):
    user = make_user()
    with pytest.raises(ResourceNotFoundError):
        token_service.find(db, user.id)


def test_remove_deletes_matching_session(db, make_user):
    user = make_user()
    token_service.save(db, user.id, "live")
    token_service.remove(db, "live")
    with pytest.raises(ResourceNotFoundError):
        token_service.find(db, user.id)


def test_remove_unknown_token(db, make_user):
    user = make_user()
    token_service.save(db, user.id, "live")
    with pytest.raises(ResourceNotFoundError):
        token_service.remove(db, "stale")
    assert token_service.find(db, user.id).refresh_token == "live"


def test_replace_is_compare_and_swap(db, make_user):
    user = make_user()
    token_service.save(db, user.id, "current")

    assert token_service.replace(db, user.id, "stale", "next") is False
    assert token_service.find(db, user.id).refresh_token == "current"

    assert token_service.replace(db, user.id, "current", "next") is True
    assert token_service.find(db, user.id).refresh_token == "next"


def test_session_goes_with_the_user(db, make_user):
    user = make_user()
    token_service.save(db, user.id, "live")
    db.delete(user)
    db.commit()
    assert db.query(UserSession).count() == 0


def test_save_refuses_dialect_without_upsert(db, make_user, monkeypatch):
    user = make_user()
    monkeypatch.setattr(token_module, "_UPSERT_DIALECTS", {})

    with pytest.raises(DatabaseError):
        token_service.save(db, user.id, "live")
    assert db.query(UserSession).count() == 0
