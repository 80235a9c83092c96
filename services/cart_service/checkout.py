from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderService
from shared.config.settings import DELIVERY_FEE
from shared.exceptions import NotFound

from .cart import Cart
from .repository import CartRepository
from .saga import SagaOrchestrator
from .schemas import CheckoutRequest

logger = structlog.get_logger(__name__)


@dataclass
class CheckoutContext:
    db: AsyncSession
    session_id: str
    user_id: int
    request: CheckoutRequest
    idempotency_key: Optional[str] = None
    cart: Optional[Cart] = None
    order: Optional[Order] = None
    order_created: bool = False


# --- ACTIONS ---

async def load_cart(ctx: CheckoutContext):
    cart = await CartRepository.load_cart(ctx.db, ctx.session_id)
    if cart is None:
        raise NotFound("Cart session not found")
    ctx.cart = cart

async def create_order(ctx: CheckoutContext):
    if ctx.idempotency_key:
        # A replayed checkout finds its cart already emptied by the first attempt
        existing = await OrderRepository.get_by_idempotency_key(ctx.db, ctx.user_id, ctx.idempotency_key)
        if existing:
            ctx.order, ctx.order_created = existing, False
            return
    checkout = ctx.cart.checkout_payload(DELIVERY_FEE)
    payload = OrderCreate(
        restaurant_id=ctx.cart.restaurant_id,
        items=checkout["items"],
        delivery_address=ctx.request.delivery_address,
        payment_method=ctx.request.payment_method,
    )
    ctx.order, ctx.order_created = await OrderService.create_order(
        ctx.db, ctx.user_id, payload, ctx.idempotency_key
    )
    if ctx.order.total_amount != checkout["total"]:
        # Cart lines keep the price seen when added; the order uses the live menu
        logger.info("checkout_repriced", cart_total=checkout["total"], order_total=ctx.order.total_amount)

async def clear_cart(ctx: CheckoutContext):
    ctx.cart.clear()
    await CartRepository.save_lines(ctx.db, ctx.session_id, [])


# --- COMPENSATIONS (Rollbacks) ---

async def rollback_order(ctx: CheckoutContext):
    # Never delete an order that an earlier idempotent request created
    if ctx.order is None or not ctx.order_created:
        return
    order_id = ctx.order.id
    # Rollback expires loaded objects, so re-read the order before deleting it
    await ctx.db.rollback()
    order = await OrderRepository.get_order(ctx.db, order_id)
    if order is not None:
        await OrderRepository.delete_order(ctx.db, order)


# --- BUILDER FACTORY ---

def build_checkout_saga() -> SagaOrchestrator[CheckoutContext]:
    saga: SagaOrchestrator[CheckoutContext] = SagaOrchestrator()
    saga.add_step("load_cart", load_cart) # Read-only, no rollback needed
    saga.add_step("create_order", create_order, rollback_order)
    saga.add_step("clear_cart", clear_cart)
    return saga
