"""
Order and its line items.
Status is moved to Paid / Cancelled by PaymentService when the linked transaction resolves.
"""
import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PAID = "Paid"
    SHIPPING = "Shipping"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    customer_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    sales_staff_id = Column(String, nullable=True)
    total_amount = Column(Numeric(18, 2), nullable=True)
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    order_date = Column(
        DateTime(timezone=True),
        nullable=True,
        default=lambda: datetime.now(timezone.utc),
    )
    payment_method = Column(String, nullable=True)
    address = Column(String, nullable=True)

    details = relationship("OrderDetail", back_populates="order", cascade="all, delete-orphan")
    payment_transaction = relationship(
        "PaymentTransaction",
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
    )


class OrderDetail(Base):
    __tablename__ = "order_details"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(18, 2), nullable=False)

    order = relationship("Order", back_populates="details")
