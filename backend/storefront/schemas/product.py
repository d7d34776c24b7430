"""Product schemas"""

import math
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from storefront.schemas.order import MAX_MINOR_UNITS

SORT_SAFELIST = ("id", "name", "price", "-id", "-name", "-price")
MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0, le=MAX_MINOR_UNITS)
    description: str = Field("", max_length=5000)
    category_id: Optional[int] = None
    upc: str = Field(..., min_length=1, max_length=32)
    discount_id: Optional[int] = None
    quantity: int = Field(0, ge=0)
    unit_id: Optional[int] = None
    image: str = Field("", max_length=512)
    brand_id: Optional[int] = None
    country_id: Optional[int] = None
    step: float = Field(1.0, gt=0)


class ProductUpdate(BaseModel):
    """Partial update; a null reference id detaches the product from it"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[int] = Field(None, ge=0, le=MAX_MINOR_UNITS)
    description: Optional[str] = Field(None, max_length=5000)
    category_id: Optional[int] = None
    upc: Optional[str] = Field(None, min_length=1, max_length=32)
    discount_id: Optional[int] = None
    quantity: Optional[int] = Field(None, ge=0)
    unit_id: Optional[int] = None
    image: Optional[str] = Field(None, max_length=512)
    brand_id: Optional[int] = None
    country_id: Optional[int] = None
    step: Optional[float] = Field(None, gt=0)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: int
    description: str
    category_id: Optional[int] = None
    upc: str
    discount_id: Optional[int] = None
    quantity: int
    unit_id: Optional[int] = None
    image: str
    brand_id: Optional[int] = None
    country_id: Optional[int] = None
    step: float
    created_at: Optional[datetime]


class ProductFilters(BaseModel):
    """Listing query: zero or empty filters match everything"""
    name: str = ""
    category: int = 0
    brand: List[int] = []
    country: int = 0
    page: int = 1
    page_size: int = 20
    sort: str = "id"

    def validation_errors(self) -> dict:
        errors = {}
        if self.page <= 0:
            errors["page"] = "must be greater than zero"
        elif self.page > MAX_PAGE:
            errors["page"] = f"must be a maximum of {MAX_PAGE}"
        if self.page_size <= 0:
            errors["page_size"] = "must be greater than zero"
        elif self.page_size > MAX_PAGE_SIZE:
            errors["page_size"] = f"must be a maximum of {MAX_PAGE_SIZE}"
        if self.sort not in SORT_SAFELIST:
            errors["sort"] = "invalid sort value"
        return errors

    @property
    def sort_column(self) -> str:
        return self.sort.lstrip("-")

    @property
    def descending(self) -> bool:
        return self.sort.startswith("-")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    current_page: int
    page_size: int
    first_page: int
    last_page: int
    total_records: int

    @classmethod
    def calculate(cls, total_records: int, page: int, page_size: int) -> "Metadata":
        return cls(
            current_page=page,
            page_size=page_size,
            first_page=1,
            last_page=math.ceil(total_records / page_size),
            total_records=total_records,
        )


class ProductEnvelope(BaseModel):
    product: ProductResponse


class ProductListEnvelope(BaseModel):
    products: List[ProductResponse]
    metadata: Metadata
