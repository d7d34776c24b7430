"""Security utilities - JWT codec, password hashing, one-time codes"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from storefront.config import settings
from storefront.core.exceptions import HashingError

HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


# Passwords

def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password
        rounds: bcrypt cost factor, defaults to ``BCRYPT_ROUNDS``

    Returns:
        str: Hashed password

    Raises:
        HashingError: If the salt cannot be generated or hashing fails
    """
    try:
        salt = bcrypt.gensalt(rounds or settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
    except (ValueError, TypeError, OSError) as exc:
        raise HashingError() from exc


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash (constant time)

    Raises:
        HashingError: If the stored hash is corrupt
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError as exc:
        raise HashingError() from exc


def generate_activation_token() -> str:
    return uuid.uuid4().hex


def generate_reset_code() -> str:
    """Six random bytes, hex encoded."""
    return secrets.token_hex(6)


# Tokens

class TokenError(Exception):
    """Base class for token decoding failures"""


class InvalidSignature(TokenError):
    """Signature mismatch or unexpected signing algorithm"""


class TokenExpired(TokenError):
    """Signature is valid but ``exp`` is in the past"""


class MalformedToken(TokenError):
    """Token cannot be parsed or claims have the wrong shape"""


@dataclass(frozen=True)
class TokenClaims:
    """Typed session claims carried by access and refresh tokens."""

    user_id: int
    role_id: int
    exp: int
    jti: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        if payload["jti"] is None:
            del payload["jti"]
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TokenClaims":
        for field in ("user_id", "role_id", "exp"):
            value = payload.get(field)
            # bool is an int subclass, reject it explicitly
            if not isinstance(value, int) or isinstance(value, bool):
                raise MalformedToken(f"claim '{field}' must be an integer")
        jti = payload.get("jti")
        if jti is not None and not isinstance(jti, str):
            raise MalformedToken("claim 'jti' must be a string")
        return cls(
            user_id=payload["user_id"],
            role_id=payload["role_id"],
            exp=payload["exp"],
            jti=jti,
        )


class TokenCodec:
    """Sign and verify session claims with one HMAC secret."""

    def __init__(self, secret: str, algorithm: str = "HS512"):
        if not secret:
            raise ValueError("token secret must not be empty")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"unsupported signing algorithm: {algorithm}")
        self._secret = secret
        self.algorithm = algorithm

    def encode(self, claims: TokenClaims) -> str:
        return jwt.encode(claims.to_dict(), self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature, algorithm and expiry, then return typed claims.

        Raises:
            MalformedToken: Undecodable token or claims of the wrong shape
            InvalidSignature: Wrong secret or a different/``none`` algorithm
            TokenExpired: Valid signature but ``exp`` has passed
        """
        if not token or not isinstance(token, str):
            raise MalformedToken("empty token")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedToken(str(exc)) from exc

        if header.get("alg") != self.algorithm:
            raise InvalidSignature(f"unexpected signing algorithm: {header.get('alg')}")

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired(str(exc)) from exc
        except JWTClaimsError as exc:
            raise MalformedToken(str(exc)) from exc
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        if not isinstance(payload, dict):
            raise MalformedToken("payload is not an object")

        # jose only checks exp when present; from_payload makes it mandatory
        return TokenClaims.from_payload(payload)

    def issue(
        self,
        user_id: int,
        role_id: int,
        lifetime: timedelta,
        now: Optional[datetime] = None,
    ) -> Tuple[str, TokenClaims]:
        """Build fresh claims expiring after ``lifetime`` and sign them."""
        issued_at = now or datetime.now(timezone.utc)
        claims = TokenClaims(
            user_id=user_id,
            role_id=role_id,
            exp=int((issued_at + lifetime).timestamp()),
            jti=secrets.token_urlsafe(16),
        )
        return self.encode(claims), claims


def build_access_codec() -> TokenCodec:
    return TokenCodec(settings.ACCESS_TOKEN_SECRET, settings.ALGORITHM)


def build_refresh_codec() -> TokenCodec:
    return TokenCodec(settings.REFRESH_TOKEN_SECRET, settings.ALGORITHM)
