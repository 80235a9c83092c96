from typing import Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.repository import UserRepository
from services.payment_service.repository import PaymentRepository

from .lifecycle import IN_FLIGHT_STATUSES, PaymentStatus
from .models import Order, utcnow


class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order):
        """Persist the order and the owner's history back-reference in one commit."""
        db.add(order)
        await db.flush()
        UserRepository.add_order_history(db, order.user_id, order.id)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_orders_by_ids(db: AsyncSession, order_ids: Sequence[int]) -> list[Order]:
        """Batch load, returned in the order of ``order_ids``; missing ids are skipped."""
        if not order_ids:
            return []
        result = await db.execute(select(Order).where(Order.id.in_(order_ids)))
        by_id = {order.id: order for order in result.scalars().all()}
        return [by_id[i] for i in order_ids if i in by_id]

    @staticmethod
    async def get_by_idempotency_key(db: AsyncSession, user_id: int, key: str) -> Optional[Order]:
        result = await db.execute(
            select(Order).where(Order.user_id == user_id, Order.idempotency_key == key)
        )
        return result.scalars().first()

    @staticmethod
    async def list_user_orders(db: AsyncSession, user_id: int) -> Sequence[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_in_flight(db: AsyncSession) -> Sequence[Order]:
        result = await db.execute(
            select(Order).where(Order.status.in_([s.value for s in IN_FLIGHT_STATUSES]))
        )
        return result.scalars().all()

    @staticmethod
    async def conditional_update(
        db: AsyncSession,
        order_id: int,
        expected: dict,
        values: dict,
        related: Sequence = (),
        refund_reason: Optional[str] = None,
    ) -> bool:
        """
        Apply ``values`` only if the row still matches ``expected``.

        ``expected`` maps column names to the values observed by the caller
        (None means IS NULL). Returns False when another writer got there first.
        When the update applies, ``related`` rows are inserted and a move to
        ``refunded`` settles the order's payment records, all in the same commit.
        """
        stmt = update(Order).where(Order.id == order_id)
        for column, value in expected.items():
            attr = getattr(Order, column)
            stmt = stmt.where(attr.is_(None) if value is None else attr == value)
        stmt = stmt.values(**values, updated_at=utcnow()).execution_options(synchronize_session=False)

        result = await db.execute(stmt)
        applied = result.rowcount == 1
        if applied:
            for row in related:
                db.add(row)
            if values.get("payment_status") == PaymentStatus.REFUNDED.value:
                await PaymentRepository.mark_refunded(db, order_id, refund_reason)
        await db.commit()
        return applied

    @staticmethod
    async def delete_order(db: AsyncSession, order: Order):
        await PaymentRepository.delete_for_order(db, order.id)
        await UserRepository.remove_order_history(db, order.user_id, order.id)
        await db.execute(delete(Order).where(Order.id == order.id))
        await db.commit()
