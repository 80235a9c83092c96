from typing import List, Optional

from pydantic import Field

from services.order_service.lifecycle import PaymentMethod
from services.order_service.schemas import OrderResponse
from services.restaurant_service.schemas import Address
from shared.schemas import CamelModel


class CartItemAdd(CamelModel):
    item_id: int
    quantity: int = Field(1, ge=1)


class CartQuantityUpdate(CamelModel):
    # Anything below 1 removes the line
    quantity: int


class CartLineResponse(CamelModel):
    item_id: int
    name: str
    unit_price: float
    quantity: int
    restaurant_id: int
    image: Optional[str] = None
    line_total: float


class CartResponse(CamelModel):
    session_id: str
    restaurant_id: Optional[int] = None
    items: List[CartLineResponse] = []
    subtotal: float
    delivery_fee: float
    total: float
    item_count: int


class CheckoutRequest(CamelModel):
    delivery_address: Address
    payment_method: PaymentMethod = PaymentMethod.CASH


class CheckoutResponse(CamelModel):
    order: OrderResponse
    cart: CartResponse
