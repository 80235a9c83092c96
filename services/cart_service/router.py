from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user

from services.order_service.schemas import OrderResponse

from .schemas import CartItemAdd, CartQuantityUpdate, CartResponse, CheckoutRequest, CheckoutResponse
from .service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.post("", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def create_cart(db: AsyncSession = Depends(get_db)):
    """Start a device-scoped cart. Clients keep the returned sessionId locally."""
    return await CartService.create_session(db)


@router.get("/{session_id}", response_model=CartResponse)
async def get_cart(session_id: str, db: AsyncSession = Depends(get_db)):
    return await CartService.get_cart(db, session_id)


@router.post("/{session_id}/items", response_model=CartResponse)
async def add_item(session_id: str, item: CartItemAdd, db: AsyncSession = Depends(get_db)):
    return await CartService.add_item(db, session_id, item)


@router.put("/{session_id}/items/{item_id}", response_model=CartResponse)
async def update_quantity(
    session_id: str, item_id: int, payload: CartQuantityUpdate, db: AsyncSession = Depends(get_db)
):
    return await CartService.update_quantity(db, session_id, item_id, payload.quantity)


@router.delete("/{session_id}/items/{item_id}", response_model=CartResponse)
async def remove_item(session_id: str, item_id: int, db: AsyncSession = Depends(get_db)):
    return await CartService.remove_item(db, session_id, item_id)


@router.delete("/{session_id}/items", response_model=CartResponse)
async def clear_cart(session_id: str, db: AsyncSession = Depends(get_db)):
    """Deletes all items in the session cart."""
    return await CartService.clear(db, session_id)


@router.post("/{session_id}/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    session_id: str,
    payload: CheckoutRequest,
    response: Response,
    idempotency_key: str | None = Header(default=None, max_length=128),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order, created, cart = await CartService.checkout(db, session_id, user.id, payload, idempotency_key)
    if not created:
        response.status_code = status.HTTP_200_OK
    return CheckoutResponse(order=OrderResponse.model_validate(order), cart=cart)
