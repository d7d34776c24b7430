"""Pydantic schemas for API validation"""

from storefront.schemas.user import (
    RegisterRequest,
    LoginRequest,
    UserUpdate,
    UserResponse,
    TokenResponse,
)
from storefront.schemas.order import (
    OrderCreate,
    OrderUpdate,
    OrderItemUpdate,
    OrderResponse,
    OrderItemResponse,
)
from storefront.schemas.product import ProductCreate, ProductUpdate, ProductFilters, ProductResponse
from storefront.schemas.catalog import (
    CategoryCreate,
    UnitCreate,
    BrandCreate,
    CountryCreate,
    DiscountCreate,
    RoleCreate,
)
from storefront.schemas.response import ErrorResponse

__all__ = [
    "RegisterRequest", "LoginRequest", "UserUpdate", "UserResponse", "TokenResponse",
    "OrderCreate", "OrderUpdate", "OrderItemUpdate", "OrderResponse", "OrderItemResponse",
    "ProductCreate", "ProductUpdate", "ProductFilters", "ProductResponse",
    "CategoryCreate", "UnitCreate", "BrandCreate", "CountryCreate", "DiscountCreate", "RoleCreate",
    "ErrorResponse",
]
