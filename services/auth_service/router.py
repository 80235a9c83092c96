from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.schemas import OrderResponse
from services.restaurant_service.schemas import RestaurantResponse
from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user

from .schemas import TokenResponse, UserCreate, UserLogin, UserResponse, UserUpdate
from .service import AuthService, FavoriteService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.register(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and receive a JWT access token",
)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await AuthService.login(db, payload)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_user_by_id(db, user.id)


@router.patch(
    "/me",
    response_model=UserResponse,
    summary="Update name, phone or password of the current user",
)
async def update_me(
    payload: UserUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.update_profile(db, user.id, payload)


@router.get(
    "/me/orders",
    response_model=list[OrderResponse],
    summary="Order history, newest first",
)
async def get_my_order_history(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_order_history(db, user.id)


@router.get("/me/favorites", response_model=list[RestaurantResponse])
async def list_favorites(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FavoriteService.list_favorites(db, user.id)


@router.post("/me/favorites/{restaurant_id}", response_model=list[RestaurantResponse])
async def add_favorite(
    restaurant_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FavoriteService.add_favorite(db, user.id, restaurant_id)


@router.delete("/me/favorites/{restaurant_id}", response_model=list[RestaurantResponse])
async def remove_favorite(
    restaurant_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FavoriteService.remove_favorite(db, user.id, restaurant_id)
