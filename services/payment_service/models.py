from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.sql import func

from shared.config.database import Base

PAYMENT_COMPLETED = "completed"
PAYMENT_REFUNDED = "refunded"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(10), nullable=False) # cash, card, upi
    status = Column(String(20), default=PAYMENT_COMPLETED) # completed, refunded
    transaction_id = Column(String(64), nullable=True)
    refund_amount = Column(Float, nullable=True)
    refund_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    refunded_at = Column(DateTime(timezone=True), nullable=True)
