from datetime import datetime
from typing import List, Optional

from pydantic import Field

from services.restaurant_service.schemas import Address
from shared.schemas import CamelModel

from .lifecycle import OrderStatus, PaymentMethod, PaymentStatus


class OrderItemCreate(CamelModel):
    item_id: int
    quantity: int = Field(..., ge=1)
    # Display values sent by clients are accepted but ignored: the live menu wins
    name: Optional[str] = None
    unit_price: Optional[float] = Field(None, alias="price")


class OrderCreate(CamelModel):
    restaurant_id: int
    items: List[OrderItemCreate] = Field(..., min_length=1)
    total_amount: Optional[float] = Field(None, ge=0)
    delivery_address: Address
    payment_method: PaymentMethod = PaymentMethod.CASH


class OrderItemSnapshot(CamelModel):
    item_id: int
    name: str
    quantity: int
    unit_price: float


class OrderResponse(CamelModel):
    id: int
    user_id: int
    restaurant_id: int
    items: List[OrderItemSnapshot]
    subtotal: float
    delivery_fee: float
    total_amount: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    delivery_address: Address
    rating: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class StatusUpdate(CamelModel):
    status: OrderStatus


class RatingRequest(CamelModel):
    rating: int


class PaymentStatusUpdate(CamelModel):
    payment_status: PaymentStatus


class TickResponse(CamelModel):
    scanned: int
    advanced: int
    conflicted: int
    failed: int
    skipped: bool = False
