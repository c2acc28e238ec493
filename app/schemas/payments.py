from datetime import datetime

from pydantic import Field, field_validator

from app.models.payment_transaction import PaymentStatus
from app.schemas.common import CamelModel


class PaymentLinkRequest(CamelModel):
    order_id: str | None = None
    amount: int = Field(gt=0)
    # PayOS rejects descriptions longer than 25 characters
    description: str = Field(min_length=1, max_length=25)
    buyer_name: str | None = None
    return_url: str | None = None
    cancel_url: str | None = None

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be blank")
        return v


class PaymentLinkOut(CamelModel):
    payment_url: str


class PaymentTransactionOut(CamelModel):
    transaction_id: str
    order_id: str | None = None
    amount: int
    result_code: str | None = None
    response_time: datetime | None = None
    status: PaymentStatus


class PaymentStatusUpdateOut(CamelModel):
    message: str
    updated_status: PaymentStatus
    response_time: datetime
