from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.repository import UserRepository
from shared.exceptions import NotFound
from shared.security import CurrentUser

from .models import MenuItem, Restaurant, RestaurantReview
from .repository import RestaurantRepository
from .schemas import MenuItemCreate, MenuItemUpdate, RestaurantCreate, ReviewCreate


class RestaurantService:

    @staticmethod
    async def create_restaurant(db: AsyncSession, data: RestaurantCreate):
        restaurant = Restaurant(
            name=data.name,
            description=data.description,
            cuisine=data.cuisine,
            address=data.address.model_dump(by_alias=True),
            phone=data.phone,
            image=data.image,
        )
        return await RestaurantRepository.create_restaurant(db, restaurant)

    @staticmethod
    async def list_restaurants(db: AsyncSession, cuisine: str | None = None, query: str | None = None):
        restaurants = await RestaurantRepository.get_all_restaurants(db)

        if cuisine:
            wanted = cuisine.lower()
            restaurants = [r for r in restaurants if wanted in (c.lower() for c in r.cuisine or [])]

        if query:
            query_words = set(query.lower().split())
            filtered = []
            for r in restaurants:
                name_words = set(r.name.lower().split())
                if query_words & name_words:
                    filtered.append(r)
            restaurants = filtered

        return restaurants

    @staticmethod
    async def get_restaurant(db: AsyncSession, restaurant_id: int) -> Restaurant:
        restaurant = await RestaurantRepository.get_restaurant(db, restaurant_id)
        if not restaurant:
            raise NotFound("Restaurant not found")
        return restaurant

    @staticmethod
    async def add_menu_item(db: AsyncSession, restaurant_id: int, data: MenuItemCreate):
        await RestaurantService.get_restaurant(db, restaurant_id)
        item = MenuItem(restaurant_id=restaurant_id, **data.model_dump())
        return await RestaurantRepository.create_menu_item(db, item)

    @staticmethod
    async def get_menu(db: AsyncSession, restaurant_id: int):
        await RestaurantService.get_restaurant(db, restaurant_id)
        return await RestaurantRepository.get_menu(db, restaurant_id)

    @staticmethod
    async def update_menu_item(db: AsyncSession, restaurant_id: int, item_id: int, data: MenuItemUpdate):
        item = await RestaurantRepository.get_menu_item(db, item_id)
        if not item or item.restaurant_id != restaurant_id:
            raise NotFound("Menu item not found")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        return await RestaurantRepository.update_menu_item(db, item)

    @staticmethod
    async def add_review(db: AsyncSession, restaurant_id: int, user: CurrentUser, data: ReviewCreate):
        await RestaurantService.get_restaurant(db, restaurant_id)
        author = await UserRepository.get_by_id(db, user.id)
        if not author:
            raise NotFound("User not found")
        review = RestaurantReview(
            restaurant_id=restaurant_id,
            user_id=author.id,
            user_name=author.name,
            rating=data.rating,
            comment=data.comment,
        )
        return await RestaurantRepository.add_review(db, review)

    @staticmethod
    async def list_reviews(db: AsyncSession, restaurant_id: int):
        await RestaurantService.get_restaurant(db, restaurant_id)
        return await RestaurantRepository.list_reviews(db, restaurant_id)
