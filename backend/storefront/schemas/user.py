"""User and authentication schemas"""

import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+\/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

PASSWORD_MIN_BYTES = 8
PASSWORD_MAX_BYTES = 72  # bcrypt ignores anything beyond 72 bytes


def check_email(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must be provided")
    if not EMAIL_RX.match(value):
        raise ValueError("must be a valid email address")
    return value


def check_password(value: str) -> str:
    if not value:
        raise ValueError("must be provided")
    size = len(value.encode("utf-8"))
    if size < PASSWORD_MIN_BYTES:
        raise ValueError(f"must be at least {PASSWORD_MIN_BYTES} bytes long")
    if size > PASSWORD_MAX_BYTES:
        raise ValueError(f"must not be more than {PASSWORD_MAX_BYTES} bytes long")
    return value


class RegisterRequest(BaseModel):
    """Registration payload"""
    firstname: str = Field("", max_length=100)
    lastname: str = Field("", max_length=100)
    phone_number: str = Field("", max_length=32)
    email: str
    password: str
    role_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password(v)


class LoginRequest(BaseModel):
    """Login payload"""
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password(v)


class UserUpdate(BaseModel):
    """Partial profile update; ``version`` enables optimistic locking"""
    firstname: Optional[str] = Field(None, max_length=100)
    lastname: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=32)
    email: Optional[str] = None
    password: Optional[str] = None
    role_id: Optional[int] = None
    version: Optional[int] = Field(None, ge=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return v if v is None else check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return v if v is None else check_password(v)


class UserResponse(BaseModel):
    """User response schema"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    firstname: str
    lastname: str
    phone_number: str
    email: str
    role_id: int
    is_activated: bool
    version: int
    created_at: Optional[datetime]


class UserEnvelope(BaseModel):
    user: UserResponse


class TokenResponse(BaseModel):
    """Token pair returned on login and refresh"""
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return check_email(v)


class ResetCodeVerifyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)


class PasswordResetConfirm(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password(v)


class MessageResponse(BaseModel):
    message: str
