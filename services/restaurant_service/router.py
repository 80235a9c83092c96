from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user, require_admin

from .schemas import (
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    RestaurantCreate,
    RestaurantDetail,
    RestaurantResponse,
    ReviewCreate,
    ReviewResponse,
)
from .service import RestaurantService

router = APIRouter(prefix="/restaurants", tags=["Restaurants"])


@router.get("", response_model=list[RestaurantResponse])
async def list_restaurants(
    cuisine: str | None = Query(default=None),
    q: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await RestaurantService.list_restaurants(db, cuisine=cuisine, query=q)


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    payload: RestaurantCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await RestaurantService.create_restaurant(db, payload)


@router.get("/{restaurant_id}", response_model=RestaurantDetail)
async def get_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    return await RestaurantService.get_restaurant(db, restaurant_id)


@router.get("/{restaurant_id}/menu", response_model=list[MenuItemResponse])
async def get_menu(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    return await RestaurantService.get_menu(db, restaurant_id)


@router.post(
    "/{restaurant_id}/menu",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_menu_item(
    restaurant_id: int,
    payload: MenuItemCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await RestaurantService.add_menu_item(db, restaurant_id, payload)


# Price changes here never reach existing orders: orders hold their own snapshot
@router.patch("/{restaurant_id}/menu/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    restaurant_id: int,
    item_id: int,
    payload: MenuItemUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await RestaurantService.update_menu_item(db, restaurant_id, item_id, payload)


@router.get("/{restaurant_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    return await RestaurantService.list_reviews(db, restaurant_id)


@router.post(
    "/{restaurant_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_review(
    restaurant_id: int,
    payload: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post a 1-5 review; the restaurant's rating becomes the average of all reviews."""
    return await RestaurantService.add_review(db, restaurant_id, user, payload)
