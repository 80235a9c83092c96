from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shared.config.database import Base


class CartSession(Base):
    """A cart kept per device/browser, not tied to a user account."""
    __tablename__ = "cart_sessions"

    session_id = Column(String(36), primary_key=True, index=True) # UUID string
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationship to lines, kept in insertion order
    items = relationship(
        "CartSessionItem",
        back_populates="session",
        lazy="selectin",
        order_by="CartSessionItem.position",
        cascade="all, delete-orphan",
    )


class CartSessionItem(Base):
    __tablename__ = "cart_session_items"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(36), ForeignKey("cart_sessions.session_id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    item_id = Column(Integer, nullable=False)
    name = Column(String(120), nullable=False)
    unit_price = Column(Float, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    restaurant_id = Column(Integer, nullable=False)
    image = Column(String(500), nullable=True)

    session = relationship("CartSession", back_populates="items")
