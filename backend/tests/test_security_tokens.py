import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from storefront.core.security import (
    InvalidSignature,
    MalformedToken,
    TokenClaims,
    TokenCodec,
    TokenExpired,
    TokenError,
    generate_reset_code,
    get_password_hash,
    verify_password,
)

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"


def _future(seconds=600):
    return int((datetime.now(timezone.utc) + timedelta(seconds=seconds)).timestamp())


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


@pytest.fixture
def access_codec():
    return TokenCodec(ACCESS_SECRET)


@pytest.fixture
def refresh_codec():
    return TokenCodec(REFRESH_SECRET)


def test_round_trip_for_both_secrets(access_codec, refresh_codec):
    claims = TokenClaims(user_id=7, role_id=2, exp=_future(), jti="abc")
    assert access_codec.decode(access_codec.encode(claims)) == claims
    assert refresh_codec.decode(refresh_codec.encode(claims)) == claims


def test_cross_secret_decoding_fails(access_codec, refresh_codec):
    claims = TokenClaims(user_id=1, role_id=2, exp=_future())
    with pytest.raises(InvalidSignature):
        access_codec.decode(refresh_codec.encode(claims))
    with pytest.raises(InvalidSignature):
        refresh_codec.decode(access_codec.encode(claims))


def test_expired_token_is_distinct_from_bad_signature(access_codec):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token, _ = access_codec.issue(1, 2, timedelta(minutes=15), now=past)
    with pytest.raises(TokenExpired):
        access_codec.decode(token)


def test_none_algorithm_is_rejected(access_codec):
    token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64({'user_id': 1, 'role_id': 1, 'exp': _future()})}."
    with pytest.raises(InvalidSignature):
        access_codec.decode(token)


def test_other_hmac_algorithm_is_rejected(access_codec):
    token = jwt.encode({"user_id": 1, "role_id": 1, "exp": _future()}, ACCESS_SECRET, algorithm="HS256")
    with pytest.raises(InvalidSignature):
        access_codec.decode(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b"])
def test_garbage_is_malformed(access_codec, token):
    with pytest.raises(MalformedToken):
        access_codec.decode(token)


def test_missing_claim_is_malformed(access_codec):
    token = jwt.encode({"user_id": 1, "exp": _future()}, ACCESS_SECRET, algorithm="HS512")
    with pytest.raises(MalformedToken):
        access_codec.decode(token)


def test_string_user_id_is_malformed(access_codec):
    token = jwt.encode({"user_id": "1", "role_id": 2, "exp": _future()}, ACCESS_SECRET, algorithm="HS512")
    with pytest.raises(MalformedToken):
        access_codec.decode(token)


def test_all_failures_share_a_base_class():
    assert issubclass(InvalidSignature, TokenError)
    assert issubclass(TokenExpired, TokenError)
    assert issubclass(MalformedToken, TokenError)


def test_tokens_issued_in_the_same_second_differ(access_codec):
    now = datetime.now(timezone.utc)
    first, first_claims = access_codec.issue(3, 2, timedelta(minutes=15), now=now)
    second, second_claims = access_codec.issue(3, 2, timedelta(minutes=15), now=now)
    assert first != second
    assert first_claims.exp == second_claims.exp


def test_issue_sets_expiry_from_lifetime(access_codec):
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    _, claims = access_codec.issue(3, 2, timedelta(minutes=15), now=now)
    assert claims.exp == int(now.timestamp()) + 15 * 60


def test_codec_requires_secret_and_hmac():
    with pytest.raises(ValueError):
        TokenCodec("")
    with pytest.raises(ValueError):
        TokenCodec(ACCESS_SECRET, algorithm="RS256")


def test_password_hash_verifies_and_is_salted():
    first = get_password_hash("correct horse", rounds=4)
    second = get_password_hash("correct horse", rounds=4)
    assert first != second
    assert verify_password("correct horse", first)
    assert not verify_password("wrong horse", first)


def test_reset_code_is_twelve_hex_chars():
    code = generate_reset_code()
    assert len(code) == 12
    int(code, 16)
