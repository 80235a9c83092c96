from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import MenuItem, Restaurant, RestaurantReview


class RestaurantRepository:

    @staticmethod
    async def create_restaurant(db: AsyncSession, restaurant: Restaurant):
        db.add(restaurant)
        await db.commit()
        await db.refresh(restaurant)
        return restaurant

    @staticmethod
    async def get_all_restaurants(db: AsyncSession):
        result = await db.execute(
            select(Restaurant).where(Restaurant.is_active.is_(True)).order_by(Restaurant.id)
        )
        return result.scalars().all()

    @staticmethod
    async def get_restaurant(db: AsyncSession, restaurant_id: int) -> Optional[Restaurant]:
        result = await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
        return result.scalars().first()

    @staticmethod
    async def get_restaurants_by_ids(db: AsyncSession, restaurant_ids: Sequence[int]):
        if not restaurant_ids:
            return []
        result = await db.execute(select(Restaurant).where(Restaurant.id.in_(restaurant_ids)))
        by_id = {r.id: r for r in result.scalars().all()}
        return [by_id[i] for i in restaurant_ids if i in by_id]

    @staticmethod
    async def create_menu_item(db: AsyncSession, item: MenuItem):
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    @staticmethod
    async def get_menu(db: AsyncSession, restaurant_id: int):
        result = await db.execute(
            select(MenuItem).where(MenuItem.restaurant_id == restaurant_id).order_by(MenuItem.id)
        )
        return result.scalars().all()

    @staticmethod
    async def get_menu_item(db: AsyncSession, item_id: int) -> Optional[MenuItem]:
        result = await db.execute(select(MenuItem).where(MenuItem.id == item_id))
        return result.scalars().first()

    @staticmethod
    async def get_menu_items(db: AsyncSession, restaurant_id: int, item_ids: Sequence[int]) -> dict[int, MenuItem]:
        """Live menu lookup used when snapshotting prices into a new order."""
        result = await db.execute(
            select(MenuItem).where(
                MenuItem.restaurant_id == restaurant_id,
                MenuItem.id.in_(item_ids),
            )
        )
        return {item.id: item for item in result.scalars().all()}

    @staticmethod
    async def update_menu_item(db: AsyncSession, item: MenuItem):
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    @staticmethod
    async def add_review(db: AsyncSession, review: RestaurantReview) -> RestaurantReview:
        """Store the review and recompute the restaurant's average rating in one commit."""
        db.add(review)
        await db.flush()
        average = (
            select(func.round(func.avg(RestaurantReview.rating), 2))
            .where(RestaurantReview.restaurant_id == review.restaurant_id)
            .scalar_subquery()
        )
        await db.execute(
            update(Restaurant)
            .where(Restaurant.id == review.restaurant_id)
            .values(rating=average)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        await db.refresh(review)
        return review

    @staticmethod
    async def list_reviews(db: AsyncSession, restaurant_id: int) -> Sequence[RestaurantReview]:
        result = await db.execute(
            select(RestaurantReview)
            .where(RestaurantReview.restaurant_id == restaurant_id)
            .order_by(RestaurantReview.id.desc())
        )
        return result.scalars().all()
