from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from .models import PAYMENT_COMPLETED, PAYMENT_REFUNDED, Payment

# Order-side writers call the helpers below inside their own transaction;
# none of them commit.

class PaymentRepository:
    @staticmethod
    async def get_payment(db: AsyncSession, payment_id: int) -> Optional[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_latest_for_order(db: AsyncSession, order_id: int) -> Optional[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.id.desc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def mark_refunded(db: AsyncSession, order_id: int, reason: Optional[str] = None):
        await db.execute(
            update(Payment)
            .where(Payment.order_id == order_id, Payment.status == PAYMENT_COMPLETED)
            .values(
                status=PAYMENT_REFUNDED,
                refund_amount=Payment.amount,
                refund_reason=reason,
                refunded_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def delete_for_order(db: AsyncSession, order_id: int):
        await db.execute(delete(Payment).where(Payment.order_id == order_id))
