"""
PaymentTransaction: one gateway payment attempt (PayOS order code).
status: Pending (0) -> Success (1) | Failed (2), exactly once.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class PaymentStatus(enum.IntEnum):
    PENDING = 0
    SUCCESS = 1
    FAILED = 2

    @property
    def label(self) -> str:
        return {0: "Pending", 1: "Success", 2: "Failed"}[self.value]


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    transaction_id = Column(String, primary_key=True)     # PayOS orderCode
    order_id = Column(
        String,
        ForeignKey("orders.id", ondelete="CASCADE"),
        unique=True,
        nullable=True,
    )
    amount = Column(Integer, nullable=False)
    result_code = Column(String, nullable=True)           # gateway response code ("00" = accepted)
    payment_link_id = Column(String, nullable=True)
    response_time = Column(DateTime(timezone=True), nullable=True)
    status = Column(Integer, nullable=False, default=int(PaymentStatus.PENDING))
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    order = relationship("Order", back_populates="payment_transaction")
