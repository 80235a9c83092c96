from typing import Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.restaurant_service.repository import RestaurantRepository
from shared.config.settings import DELIVERY_FEE
from shared.exceptions import Conflict, InvalidInput, NotFound, Unauthorized
from shared.observability import food_order_transitions_total, food_orders_created_total
from shared.security import CurrentUser

from .lifecycle import (
    OrderStatus,
    PaymentStatus,
    can_transition,
    can_transition_payment,
)
from .models import Order
from .repository import OrderRepository
from .schemas import OrderCreate

logger = structlog.get_logger(__name__)

RATING_RANGE = range(1, 6)


class OrderService:
    @staticmethod
    async def create_order(
        db: AsyncSession,
        user_id: int,
        data: OrderCreate,
        idempotency_key: str | None = None,
    ) -> tuple[Order, bool]:
        """
        Place an order. Returns ``(order, created)``; ``created`` is False when
        the idempotency key was already used by this user and the earlier
        order is returned instead.
        """
        if idempotency_key:
            existing = await OrderRepository.get_by_idempotency_key(db, user_id, idempotency_key)
            if existing:
                logger.info("order_replayed", order_id=existing.id, user_id=user_id)
                return existing, False

        if not data.items:
            raise InvalidInput("Order must contain at least one item")

        restaurant = await RestaurantRepository.get_restaurant(db, data.restaurant_id)
        if not restaurant:
            raise NotFound("Restaurant not found")

        # Merge repeated lines so each menu item appears once in the snapshot
        quantities: dict[int, int] = {}
        for line in data.items:
            if line.quantity < 1:
                raise InvalidInput(f"Quantity for item {line.item_id} must be at least 1")
            quantities[line.item_id] = quantities.get(line.item_id, 0) + line.quantity

        menu = await RestaurantRepository.get_menu_items(db, restaurant.id, list(quantities))
        snapshot = []
        for item_id, quantity in quantities.items():
            menu_item = menu.get(item_id)
            if menu_item is None:
                raise InvalidInput(f"Menu item {item_id} is not offered by this restaurant")
            if not menu_item.is_available:
                raise InvalidInput(f"Menu item '{menu_item.name}' is currently unavailable")
            snapshot.append({
                "itemId": menu_item.id,
                "name": menu_item.name,
                "quantity": quantity,
                "unitPrice": menu_item.price,
            })

        subtotal = round(sum(line["unitPrice"] * line["quantity"] for line in snapshot), 2)
        total = round(subtotal + DELIVERY_FEE, 2)
        if data.total_amount is not None and abs(data.total_amount - total) >= 0.01:
            raise InvalidInput(
                f"totalAmount {data.total_amount:.2f} does not match computed total {total:.2f}"
            )

        order = Order(
            user_id=user_id,
            restaurant_id=restaurant.id,
            items=snapshot,
            subtotal=subtotal,
            delivery_fee=DELIVERY_FEE,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=data.payment_method.value,
            delivery_address=data.delivery_address.model_dump(by_alias=True),
            idempotency_key=idempotency_key,
        )
        try:
            order = await OrderRepository.create_order(db, order)
        except IntegrityError:
            # A concurrent request with the same idempotency key won the insert
            await db.rollback()
            if idempotency_key:
                existing = await OrderRepository.get_by_idempotency_key(db, user_id, idempotency_key)
                if existing:
                    return existing, False
            raise

        food_orders_created_total.labels(payment_method=order.payment_method).inc()
        logger.info(
            "order_created",
            order_id=order.id,
            user_id=user_id,
            restaurant_id=restaurant.id,
            total_amount=order.total_amount,
        )
        return order, True

    @staticmethod
    async def list_orders(db: AsyncSession, user: CurrentUser):
        return await OrderRepository.list_user_orders(db, user.id)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int, user: CurrentUser) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFound("Order not found")
        if not user.can_access(order.user_id):
            raise Unauthorized("Not authorized to access this order")
        return order

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: int, user: CurrentUser) -> Order:
        order = await OrderService.get_order(db, order_id, user)
        if not can_transition(order.status, OrderStatus.CANCELLED):
            raise Conflict(f"Order cannot be cancelled once it is {order.status}")

        values = {"status": OrderStatus.CANCELLED.value}
        if order.payment_status == PaymentStatus.PAID:
            values["payment_status"] = PaymentStatus.REFUNDED.value

        # Guarded on the observed status: loses cleanly against a scheduler advance
        applied = await OrderRepository.conditional_update(
            db,
            order.id,
            expected={"status": order.status, "payment_status": order.payment_status},
            values=values,
            refund_reason="Order cancelled",
        )
        if not applied:
            raise Conflict("Order changed while cancelling; it can no longer be cancelled")

        food_order_transitions_total.labels(status=OrderStatus.CANCELLED.value, source="user").inc()
        logger.info("order_cancelled", order_id=order.id, user_id=user.id)
        return await OrderRepository.get_order(db, order.id)

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, user: CurrentUser, target: OrderStatus) -> Order:
        # Forward moves belong to the status scheduler; users may only cancel
        if target != OrderStatus.CANCELLED:
            raise Conflict(f"Status '{target.value}' cannot be set directly")
        return await OrderService.cancel_order(db, order_id, user)

    @staticmethod
    async def rate_order(db: AsyncSession, order_id: int, user: CurrentUser, rating: int) -> Order:
        if rating not in RATING_RANGE:
            raise InvalidInput("Rating must be an integer between 1 and 5")

        order = await OrderService.get_order(db, order_id, user)
        if order.status != OrderStatus.DELIVERED:
            raise Conflict("Can only rate delivered orders")
        if order.rating is not None:
            raise Conflict("Order already rated")

        applied = await OrderRepository.conditional_update(
            db,
            order.id,
            expected={"status": OrderStatus.DELIVERED.value, "rating": None},
            values={"rating": rating},
        )
        if not applied:
            raise Conflict("Order already rated")

        logger.info("order_rated", order_id=order.id, rating=rating)
        return await OrderRepository.get_order(db, order.id)

    @staticmethod
    async def update_payment_status(
        db: AsyncSession,
        order_id: int,
        user: CurrentUser,
        target: PaymentStatus,
        related: Sequence = (),
        reason: str | None = None,
    ) -> Order:
        """
        Move the payment status along its state machine. ``related`` rows (a
        captured payment) are written in the same commit as the status change;
        a move to refunded also settles the order's payment records.
        """
        order = await OrderService.get_order(db, order_id, user)
        if order.payment_status == target:
            return order
        if not can_transition_payment(order.payment_status, target):
            raise Conflict(
                f"Payment status cannot change from {order.payment_status} to {target.value}"
            )

        applied = await OrderRepository.conditional_update(
            db,
            order.id,
            expected={"payment_status": order.payment_status},
            values={"payment_status": target.value},
            related=related,
            refund_reason=reason,
        )
        if not applied:
            raise Conflict("Payment status changed concurrently")

        logger.info(
            "payment_status_updated",
            order_id=order.id,
            previous=order.payment_status,
            payment_status=target.value,
        )
        return await OrderRepository.get_order(db, order.id)

    @staticmethod
    async def delete_order(db: AsyncSession, order_id: int, user: CurrentUser) -> None:
        order = await OrderService.get_order(db, order_id, user)
        await OrderRepository.delete_order(db, order)
        logger.info("order_deleted", order_id=order_id, user_id=user.id)
