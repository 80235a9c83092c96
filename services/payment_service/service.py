import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.lifecycle import OrderStatus, PaymentStatus
from services.order_service.service import OrderService
from shared.exceptions import Conflict, NotFound, Unauthorized
from shared.security import CurrentUser

from .models import PAYMENT_COMPLETED, Payment
from .repository import PaymentRepository
from .schemas import PaymentCreate, RefundRequest

logger = structlog.get_logger(__name__)


class PaymentService:
    @staticmethod
    async def process_payment(db: AsyncSession, user: CurrentUser, data: PaymentCreate):
        # Simulated capture: always succeeds, no gateway involved
        order = await OrderService.get_order(db, data.order_id, user)
        if order.status == OrderStatus.CANCELLED:
            raise Conflict("Cannot pay for a cancelled order")
        if order.payment_status == PaymentStatus.PAID:
            raise Conflict("Order is already paid")

        payment = Payment(
            order_id=order.id,
            user_id=order.user_id,
            amount=order.total_amount,
            payment_method=data.payment_method.value,
            status=PAYMENT_COMPLETED,
            transaction_id=f"TXN-{uuid.uuid4().hex[:16].upper()}",
        )
        # The order's paid status and the payment record land in one commit
        await OrderService.update_payment_status(
            db, order.id, user, PaymentStatus.PAID, related=[payment]
        )
        await db.refresh(payment)
        logger.info("payment_captured", order_id=order.id, transaction_id=payment.transaction_id)
        return payment

    @staticmethod
    async def get_payment(db: AsyncSession, user: CurrentUser, order_id: int):
        await OrderService.get_order(db, order_id, user)
        payment = await PaymentRepository.get_latest_for_order(db, order_id)
        if not payment:
            raise NotFound("Payment not found")
        return payment

    @staticmethod
    async def refund_payment(db: AsyncSession, user: CurrentUser, payment_id: int, data: RefundRequest):
        payment = await PaymentRepository.get_payment(db, payment_id)
        if not payment:
            raise NotFound("Payment not found")
        if not user.can_access(payment.user_id):
            raise Unauthorized("Not authorized to refund this payment")
        if payment.status != PAYMENT_COMPLETED:
            raise Conflict("Can only refund completed payments")

        # Raises Conflict unless the order's payment status may move to refunded
        await OrderService.update_payment_status(
            db, payment.order_id, user, PaymentStatus.REFUNDED, reason=data.reason
        )
        logger.info("payment_refunded", payment_id=payment.id, order_id=payment.order_id)
        return await PaymentRepository.get_payment(db, payment.id)
