from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .cart import Cart, CartLine
from .models import CartSession, CartSessionItem


class CartRepository:
    @staticmethod
    async def create_session(db: AsyncSession, session: CartSession):
        db.add(session)
        await db.commit()
        await db.refresh(session)
        return session

    @staticmethod
    async def get_session(db: AsyncSession, session_id: str) -> Optional[CartSession]:
        result = await db.execute(
            select(CartSession)
            .where(CartSession.session_id == session_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def load_cart(db: AsyncSession, session_id: str) -> Optional[Cart]:
        session = await CartRepository.get_session(db, session_id)
        if session is None:
            return None
        return Cart.from_lines(
            CartLine(
                item_id=row.item_id,
                name=row.name,
                unit_price=row.unit_price,
                quantity=row.quantity,
                restaurant_id=row.restaurant_id,
                image=row.image,
            )
            for row in session.items
        )

    @staticmethod
    async def save_lines(db: AsyncSession, session_id: str, lines: list[CartLine]):
        """Replace the stored lines of a session with ``lines`` in one commit."""
        await db.execute(delete(CartSessionItem).where(CartSessionItem.session_id == session_id))
        for position, line in enumerate(lines):
            db.add(
                CartSessionItem(
                    session_id=session_id,
                    position=position,
                    item_id=line.item_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    restaurant_id=line.restaurant_id,
                    image=line.image,
                )
            )
        await db.commit()

    @staticmethod
    async def count_active_sessions(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(func.distinct(CartSessionItem.session_id))))
        return result.scalar_one()
