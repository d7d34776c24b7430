"""Order schemas"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

# money columns are BIGINT
MAX_MINOR_UNITS = 2**63 - 1
MAX_AMOUNT = 1_000_000


class OrderProductIn(BaseModel):
    """One requested line: catalog product id, unit price and amount"""
    id: int
    price: int = Field(..., le=MAX_MINOR_UNITS)
    amount: float = Field(..., le=MAX_AMOUNT)


class OrderCreate(BaseModel):
    """Order placement payload; the total is derived server-side"""
    address: str = Field(..., max_length=500)
    products: List[OrderProductIn]


class OrderUpdate(BaseModel):
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    status_id: Optional[int] = None
    delivered_at: Optional[datetime] = None


class OrderItemUpdate(BaseModel):
    quantity: float = Field(..., le=MAX_AMOUNT)


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int]
    total: int
    address: str
    status_id: int
    created_at: Optional[datetime]
    delivered_at: Optional[datetime]


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    product_id: int
    quantity: float
    total: int


class OrderLineDetail(BaseModel):
    """Order item joined with its catalog product"""
    id: int
    product_id: int
    name: str
    price: int
    description: str
    upc: str
    image: str
    step: float
    amount: float
    subtotal: int


class OrderEnvelope(BaseModel):
    order: OrderResponse


class OrderListEnvelope(BaseModel):
    orders: List[OrderResponse]


class OrderDetailEnvelope(BaseModel):
    order: OrderResponse
    order_items: List[OrderLineDetail]


class OrderItemEnvelope(BaseModel):
    """``order_item`` is null when the quantity update removed the line"""
    order_item: Optional[OrderItemResponse]
    order: OrderResponse
