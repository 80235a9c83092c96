from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user

from .schemas import PaymentCreate, PaymentResponse, RefundRequest
from .service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def process_payment(
    payment: PaymentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService.process_payment(db, user, payment)


@router.get("/{order_id}", response_model=PaymentResponse)
async def get_payment(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService.get_payment(db, user, order_id)


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    payload: RefundRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Refund a completed payment; the order's payment status becomes refunded."""
    return await PaymentService.refund_payment(db, user, payment_id, payload or RefundRequest())
