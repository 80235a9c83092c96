from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import ORDER_CREATE_RATE_LIMIT
from shared.security import CurrentUser, get_current_user, limiter, verify_internal_api_key

from .schemas import (
    OrderCreate,
    OrderResponse,
    PaymentStatusUpdate,
    RatingRequest,
    StatusUpdate,
    TickResponse,
)
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])
internal_router = APIRouter(
    prefix="/orders/internal",
    tags=["Internal"],
    dependencies=[Depends(verify_internal_api_key)],
)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.list_orders(db, user)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(ORDER_CREATE_RATE_LIMIT)
async def create_order(
    request: Request,                          # slowapi needs this to key the limit
    response: Response,
    payload: OrderCreate,
    idempotency_key: str | None = Header(default=None, max_length=128),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order, created = await OrderService.create_order(db, user.id, payload, idempotency_key)
    if not created:
        response.status_code = status.HTTP_200_OK
    return order


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order(db, order_id, user)


@router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.cancel_order(db, order_id, user)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_status(db, order_id, user, payload.status)


@router.post("/{order_id}/rate", response_model=OrderResponse)
async def rate_order(
    order_id: int,
    payload: RatingRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.rate_order(db, order_id, user, payload.rating)


@router.put("/{order_id}/payment", response_model=OrderResponse)
async def update_payment_status(
    order_id: int,
    payload: PaymentStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_payment_status(db, order_id, user, payload.payment_status)


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await OrderService.delete_order(db, order_id, user)
    return {"message": "Order deleted successfully"}


@internal_router.post("/tick", response_model=TickResponse)
async def run_status_tick(request: Request):
    """Run one status scheduler tick now instead of waiting for the interval."""
    result = await request.app.state.scheduler.tick()
    return TickResponse(**asdict(result))
