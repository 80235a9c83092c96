import structlog
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.settings import ADMIN_EMAILS
from shared.exceptions import Conflict, NotFound
from shared.security import ROLE_ADMIN, ROLE_CUSTOMER
from shared.security.jwt_handler import create_access_token

from services.order_service.repository import OrderRepository
from services.restaurant_service.models import Restaurant
from services.restaurant_service.repository import RestaurantRepository

from .models import FavoriteRestaurant, User
from .repository import FavoriteRepository, UserRepository
from .schemas import TokenResponse, UserCreate, UserLogin, UserUpdate

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> User:
        email = data.email.lower()
        existing = await UserRepository.get_by_email(db, email)
        if existing:
            raise Conflict("Email already registered")
        user = User(
            name=data.name,
            email=email,
            phone=data.phone,
            hashed_password=AuthService._hash_password(data.password),
            role=ROLE_ADMIN if email in ADMIN_EMAILS else ROLE_CUSTOMER,
        )
        return await UserRepository.create(db, user)

    @staticmethod
    async def login(db: AsyncSession, data: UserLogin) -> TokenResponse:
        user = await UserRepository.get_by_email(db, data.email.lower())
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled",
            )
        token = create_access_token(user.id, user.role)
        return TokenResponse(access_token=token)

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: int, data: UserUpdate) -> User:
        """Apply the fields the caller sent; email and role cannot be changed here."""
        user = await AuthService.get_user_by_id(db, user_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is not None:
            user.name = changes["name"]
        if "phone" in changes:
            user.phone = changes["phone"]
        if changes.get("password"):
            user.hashed_password = AuthService._hash_password(changes["password"])
        user = await UserRepository.update(db, user)
        logger.info("profile_updated", user_id=user_id, fields=sorted(changes))
        return user

    @staticmethod
    async def get_order_history(db: AsyncSession, user_id: int):
        """Orders reachable from the user's history back-reference, newest first."""
        order_ids = await UserRepository.list_order_history(db, user_id)
        return await OrderRepository.get_orders_by_ids(db, order_ids)


class FavoriteService:

    @staticmethod
    async def list_favorites(db: AsyncSession, user_id: int) -> list[Restaurant]:
        ids = await FavoriteRepository.list_restaurant_ids(db, user_id)
        return await RestaurantRepository.get_restaurants_by_ids(db, ids)

    @staticmethod
    async def add_favorite(db: AsyncSession, user_id: int, restaurant_id: int) -> list[Restaurant]:
        if not await RestaurantRepository.get_restaurant(db, restaurant_id):
            raise NotFound("Restaurant not found")
        if not await FavoriteRepository.get(db, user_id, restaurant_id):
            await FavoriteRepository.add(
                db, FavoriteRestaurant(user_id=user_id, restaurant_id=restaurant_id)
            )
        return await FavoriteService.list_favorites(db, user_id)

    @staticmethod
    async def remove_favorite(db: AsyncSession, user_id: int, restaurant_id: int) -> list[Restaurant]:
        removed = await FavoriteRepository.remove(db, user_id, restaurant_id)
        if not removed:
            raise NotFound("Restaurant is not in favorites")
        return await FavoriteService.list_favorites(db, user_id)
