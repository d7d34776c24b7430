"""Database models"""

from storefront.models.user import Role, User
from storefront.models.security import UserSession, ActivationToken, PasswordResetCode
from storefront.models.catalog import Category, Unit, Brand, Country, Discount
from storefront.models.product import Product
from storefront.models.order import OrderStatus, Order, OrderItem

__all__ = [
    "Role", "User",
    "UserSession", "ActivationToken", "PasswordResetCode",
    "Category", "Unit", "Brand", "Country", "Discount",
    "Product",
    "OrderStatus", "Order", "OrderItem",
]
