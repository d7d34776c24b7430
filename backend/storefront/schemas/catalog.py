"""Catalog reference schemas: categories, units, brands, countries, discounts and roles"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime, timezone

NAME_MAX_BYTES = 20


def check_name(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must be provided")
    if len(value.encode("utf-8")) > NAME_MAX_BYTES:
        raise ValueError(f"must not be more than {NAME_MAX_BYTES} bytes long")
    return value


def check_description(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must be provided")
    return value


def as_utc(value: datetime) -> datetime:
    # naive datetimes (SQLite, clients without an offset) are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class NamedCreate(BaseModel):
    """Name and description shared by every reference entry"""
    name: str
    description: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return check_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return check_description(v)


class NamedUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return v if v is None else check_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return v if v is None else check_description(v)


class CategoryCreate(NamedCreate):
    image: str = Field("", max_length=512)


class CategoryUpdate(NamedUpdate):
    image: Optional[str] = Field(None, max_length=512)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    image: str


class UnitCreate(NamedCreate):
    pass


class UnitUpdate(NamedUpdate):
    pass


class BrandCreate(NamedCreate):
    pass


class BrandUpdate(NamedUpdate):
    pass


class NamedResponse(BaseModel):
    """Units, brands and roles"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str


class CountryCreate(NamedCreate):
    alpha2: str = Field(..., min_length=2, max_length=2)
    alpha3: str = Field(..., min_length=3, max_length=3)


class CountryUpdate(NamedUpdate):
    alpha2: Optional[str] = Field(None, min_length=2, max_length=2)
    alpha3: Optional[str] = Field(None, min_length=3, max_length=3)


class CountryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    alpha2: str
    alpha3: str


class DiscountCreate(NamedCreate):
    """``ended_at`` must fall after ``started_at``"""
    discount_percent: float = Field(..., ge=0, le=100)
    started_at: datetime
    ended_at: datetime

    @field_validator("started_at", "ended_at")
    @classmethod
    def normalize(cls, v):
        return as_utc(v)

    @field_validator("ended_at")
    @classmethod
    def validate_window(cls, v, info):
        started_at = info.data.get("started_at")
        if started_at is not None and v <= started_at:
            raise ValueError("must be later than started_at")
        return v


class DiscountUpdate(NamedUpdate):
    discount_percent: Optional[float] = Field(None, ge=0, le=100)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @field_validator("started_at", "ended_at")
    @classmethod
    def normalize(cls, v):
        return v if v is None else as_utc(v)


class DiscountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    discount_percent: float
    created_at: Optional[datetime]
    started_at: datetime
    ended_at: datetime


class RoleCreate(NamedCreate):
    description: str = Field(..., max_length=255)


class RoleUpdate(NamedUpdate):
    description: Optional[str] = Field(None, max_length=255)
