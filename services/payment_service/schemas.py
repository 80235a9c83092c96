from datetime import datetime
from typing import Optional

from pydantic import Field

from services.order_service.lifecycle import PaymentMethod
from shared.schemas import CamelModel

class PaymentCreate(CamelModel):
    order_id: int
    payment_method: PaymentMethod

class RefundRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=255)

class PaymentResponse(CamelModel):
    id: int
    order_id: int
    amount: float
    payment_method: PaymentMethod
    status: str
    transaction_id: Optional[str]
    refund_amount: Optional[float] = None
    refund_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
