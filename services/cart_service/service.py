import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.restaurant_service.repository import RestaurantRepository
from shared.config.settings import DELIVERY_FEE
from shared.exceptions import InvalidInput, NotFound
from shared.observability import food_active_carts, food_checkout_total

from .cart import Cart, CartLine
from .checkout import CheckoutContext, build_checkout_saga
from .models import CartSession
from .repository import CartRepository
from .schemas import CartItemAdd, CartResponse, CheckoutRequest

logger = structlog.get_logger(__name__)


class CartService:
    @staticmethod
    def to_response(session_id: str, cart: Cart) -> CartResponse:
        summary = cart.summary(DELIVERY_FEE)
        return CartResponse(
            session_id=session_id,
            restaurant_id=cart.restaurant_id,
            items=[
                {
                    "item_id": line.item_id,
                    "name": line.name,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                    "restaurant_id": line.restaurant_id,
                    "image": line.image,
                    "line_total": line.line_total,
                }
                for line in cart.lines
            ],
            subtotal=summary.subtotal,
            delivery_fee=summary.delivery_fee,
            total=summary.total,
            item_count=summary.item_count,
        )

    @staticmethod
    async def create_session(db: AsyncSession) -> CartResponse:
        session = await CartRepository.create_session(db, CartSession(session_id=str(uuid.uuid4())))
        return CartService.to_response(session.session_id, Cart())

    @staticmethod
    async def load(db: AsyncSession, session_id: str) -> Cart:
        cart = await CartRepository.load_cart(db, session_id)
        if cart is None:
            raise NotFound("Cart session not found")
        return cart

    @staticmethod
    async def _save(db: AsyncSession, session_id: str, cart: Cart) -> CartResponse:
        await CartRepository.save_lines(db, session_id, cart.lines)
        food_active_carts.set(await CartRepository.count_active_sessions(db))
        return CartService.to_response(session_id, cart)

    @staticmethod
    async def get_cart(db: AsyncSession, session_id: str) -> CartResponse:
        return CartService.to_response(session_id, await CartService.load(db, session_id))

    @staticmethod
    async def add_item(db: AsyncSession, session_id: str, data: CartItemAdd) -> CartResponse:
        cart = await CartService.load(db, session_id)

        menu_item = await RestaurantRepository.get_menu_item(db, data.item_id)
        if menu_item is None:
            raise NotFound("Menu item not found")
        if not menu_item.is_available:
            raise InvalidInput(f"Menu item '{menu_item.name}' is currently unavailable")

        cart.add(
            CartLine(
                item_id=menu_item.id,
                name=menu_item.name,
                unit_price=menu_item.price,
                quantity=data.quantity,
                restaurant_id=menu_item.restaurant_id,
                image=menu_item.image,
            ),
            quantity=data.quantity,
        )
        return await CartService._save(db, session_id, cart)

    @staticmethod
    async def update_quantity(db: AsyncSession, session_id: str, item_id: int, quantity: int) -> CartResponse:
        cart = await CartService.load(db, session_id)
        cart.update_quantity(item_id, quantity)
        return await CartService._save(db, session_id, cart)

    @staticmethod
    async def remove_item(db: AsyncSession, session_id: str, item_id: int) -> CartResponse:
        cart = await CartService.load(db, session_id)
        cart.remove(item_id)
        return await CartService._save(db, session_id, cart)

    @staticmethod
    async def clear(db: AsyncSession, session_id: str) -> CartResponse:
        cart = await CartService.load(db, session_id)
        return await CartService._save(db, session_id, cart.clear())

    @staticmethod
    async def checkout(
        db: AsyncSession,
        session_id: str,
        user_id: int,
        request: CheckoutRequest,
        idempotency_key: str | None = None,
    ):
        """Turn the cart into an order, then empty the cart. Returns ``(order, created, cart)``."""
        ctx = CheckoutContext(
            db=db,
            session_id=session_id,
            user_id=user_id,
            request=request,
            idempotency_key=idempotency_key,
        )
        try:
            await build_checkout_saga().execute(ctx)
        except Exception:
            food_checkout_total.labels(status="failed").inc()
            raise

        food_checkout_total.labels(status="success").inc()
        food_active_carts.set(await CartRepository.count_active_sessions(db))
        logger.info("checkout_completed", session_id=session_id, order_id=ctx.order.id)
        return ctx.order, ctx.order_created, CartService.to_response(session_id, ctx.cart)
