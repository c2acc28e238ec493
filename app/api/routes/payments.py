"""
Payments API: PayOS payment links, transaction lookup, status transition, order deletion.
Paths keep the /api/paymentcontroller prefix used by the storefront.
"""
from functools import lru_cache

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.errors import raise_for_outcome
from app.core.config import settings
from app.db.session import get_db
from app.models.payment_transaction import PaymentStatus, PaymentTransaction
from app.schemas.payments import (
    PaymentLinkOut,
    PaymentLinkRequest,
    PaymentStatusUpdateOut,
    PaymentTransactionOut,
)
from app.services.auth.jwt import CurrentUser, get_current_user
from app.services.payments.payos import PayOSClient, PayOSConfig
from app.services.payments.service import PaymentService


router = APIRouter(prefix="/api/paymentcontroller", tags=["payments"])


@lru_cache
def get_payos_client() -> PayOSClient:
    return PayOSClient(PayOSConfig.from_settings(settings))


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db, gateway=get_payos_client())


def _transaction_to_out(payment: PaymentTransaction) -> PaymentTransactionOut:
    return PaymentTransactionOut(
        transaction_id=payment.transaction_id,
        order_id=payment.order_id,
        amount=payment.amount,
        result_code=payment.result_code,
        response_time=payment.response_time,
        status=PaymentStatus(payment.status),
    )


@router.post("/create-payment-link", response_model=PaymentLinkOut)
def create_payment_link(
    payload: PaymentLinkRequest,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentLinkOut:
    outcome = service.create_payment_link(payload)
    raise_for_outcome(outcome)
    return PaymentLinkOut(payment_url=outcome.value)


@router.get("/payment/{transaction_id}", response_model=PaymentTransactionOut)
def get_payment(
    transaction_id: str,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentTransactionOut:
    outcome = service.get_payment(transaction_id)
    raise_for_outcome(outcome)
    return _transaction_to_out(outcome.value)


@router.put("/update-payment-status/{transaction_id}", response_model=PaymentStatusUpdateOut)
def update_payment_status(
    transaction_id: str,
    new_status: int | None = Query(None, alias="newStatus"),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentStatusUpdateOut:
    outcome = service.update_payment_status(transaction_id, new_status)
    raise_for_outcome(outcome)
    update = outcome.value
    return PaymentStatusUpdateOut(
        message=update.message,
        updated_status=update.status,
        response_time=update.response_time,
    )


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
) -> Response:
    outcome = service.delete_order(order_id)
    raise_for_outcome(outcome)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
