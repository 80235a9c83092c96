from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import FavoriteRestaurant, OrderHistoryEntry, User


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def update(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    # The two history helpers below do not commit: they join the caller's
    # transaction so an order and its back-reference are written together.
    @staticmethod
    def add_order_history(db: AsyncSession, user_id: int, order_id: int) -> None:
        db.add(OrderHistoryEntry(user_id=user_id, order_id=order_id))

    @staticmethod
    async def remove_order_history(db: AsyncSession, user_id: int, order_id: int) -> None:
        await db.execute(
            delete(OrderHistoryEntry).where(
                OrderHistoryEntry.user_id == user_id,
                OrderHistoryEntry.order_id == order_id,
            )
        )

    @staticmethod
    async def list_order_history(db: AsyncSession, user_id: int) -> list[int]:
        result = await db.execute(
            select(OrderHistoryEntry.order_id)
            .where(OrderHistoryEntry.user_id == user_id)
            .order_by(OrderHistoryEntry.id.desc())
        )
        return list(result.scalars().all())


class FavoriteRepository:

    @staticmethod
    async def get(db: AsyncSession, user_id: int, restaurant_id: int) -> Optional[FavoriteRestaurant]:
        result = await db.execute(
            select(FavoriteRestaurant).where(
                FavoriteRestaurant.user_id == user_id,
                FavoriteRestaurant.restaurant_id == restaurant_id,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def add(db: AsyncSession, favorite: FavoriteRestaurant) -> FavoriteRestaurant:
        db.add(favorite)
        await db.commit()
        return favorite

    @staticmethod
    async def remove(db: AsyncSession, user_id: int, restaurant_id: int) -> int:
        result = await db.execute(
            delete(FavoriteRestaurant).where(
                FavoriteRestaurant.user_id == user_id,
                FavoriteRestaurant.restaurant_id == restaurant_id,
            )
        )
        await db.commit()
        return result.rowcount

    @staticmethod
    async def list_restaurant_ids(db: AsyncSession, user_id: int) -> list[int]:
        result = await db.execute(
            select(FavoriteRestaurant.restaurant_id)
            .where(FavoriteRestaurant.user_id == user_id)
            .order_by(FavoriteRestaurant.id)
        )
        return list(result.scalars().all())
