"""
PaymentService: payment links (PayOS) and the Pending -> Success/Failed transition.

Responsibilities:
- Create a checkout link and its Pending transaction
- Look up a transaction by transaction_id
- One-shot status transition with cascade to the order (Paid / Cancelled)
- Order deletion
"""
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.order import OrderStatus
from app.models.payment_transaction import PaymentStatus, PaymentTransaction
from app.schemas.payments import PaymentLinkRequest
from app.services.orders.service import OrderService
from app.services.outcome import ErrorKind, Outcome
from app.services.payments.payos import PaymentGatewayError, PayOSClient
from app.utils.metrics import payment_links_created_total, payment_status_updates_total

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (PaymentStatus.SUCCESS, PaymentStatus.FAILED)


@dataclass
class StatusUpdate:
    status: PaymentStatus
    response_time: datetime
    message: str


def _status_text(status: PaymentStatus) -> str:
    return f"{status.label} ({int(status)})"


def new_order_code() -> int:
    """
    PayOS orderCode: positive int <= 2^53-1, unique per merchant.
    Millisecond timestamp with a random 3-digit suffix (~1.8e15).
    """
    return int(time.time() * 1000) * 1000 + secrets.randbelow(1000)


class PaymentService:
    def __init__(self, db: Session, gateway: PayOSClient | None = None):
        self.db = db
        self.gateway = gateway
        self.orders = OrderService(db)

    # ------------------------------------------------------------------
    # Payment links
    # ------------------------------------------------------------------

    def create_payment_link(self, request: PaymentLinkRequest) -> Outcome[str]:
        """
        Request a PayOS checkout URL and record a Pending transaction for it.
        Nothing is persisted when the gateway refuses.
        """
        if self.gateway is None:
            raise RuntimeError("PaymentService.create_payment_link requires a gateway client")

        if request.order_id:
            order = self.orders.get(request.order_id)
            if order is None:
                return Outcome.fail(ErrorKind.NOT_FOUND, f"No order found with ID: {request.order_id}")
            if order.payment_transaction is not None:
                return Outcome.fail(
                    ErrorKind.CONFLICT,
                    f"Order {order.id} already has a payment transaction "
                    f"({order.payment_transaction.transaction_id})",
                )

        order_code = new_order_code()
        try:
            link = self.gateway.create_payment_link(
                order_code=order_code,
                amount=request.amount,
                description=request.description,
                return_url=request.return_url,
                cancel_url=request.cancel_url,
                buyer_name=request.buyer_name,
            )
        except PaymentGatewayError as e:
            payment_links_created_total.labels(status="error").inc()
            logger.warning(
                "payment_link_failed",
                extra={"transaction_id": str(order_code), "order_id": request.order_id, "error": str(e)},
            )
            return Outcome.fail(
                ErrorKind.UPSTREAM,
                f"An error occurred while creating the payment URL: {e}",
            )

        transaction = PaymentTransaction(
            transaction_id=str(order_code),
            order_id=request.order_id,
            amount=request.amount,
            result_code=link.code,
            payment_link_id=link.payment_link_id,
            status=int(PaymentStatus.PENDING),
        )
        try:
            self.db.add(transaction)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            payment_links_created_total.labels(status="error").inc()
            logger.exception("payment_transaction_persist_failed", extra={"transaction_id": str(order_code)})
            return Outcome.fail(
                ErrorKind.UPSTREAM,
                f"An error occurred while creating the payment URL: {e}",
            )

        payment_links_created_total.labels(status="success").inc()
        logger.info(
            "payment_link_created",
            extra={"transaction_id": transaction.transaction_id, "order_id": request.order_id},
        )
        return Outcome.success(link.checkout_url)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_transaction_id(self, transaction_id: str) -> PaymentTransaction | None:
        return (
            self.db.query(PaymentTransaction)
            .filter(PaymentTransaction.transaction_id == transaction_id)
            .one_or_none()
        )

    def get_payment(self, transaction_id: str) -> Outcome[PaymentTransaction]:
        if not transaction_id or not transaction_id.strip():
            return Outcome.fail(ErrorKind.VALIDATION, "Transaction ID is required")
        payment = self.get_by_transaction_id(transaction_id)
        if payment is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, f"No payment found with Transaction ID: {transaction_id}")
        return Outcome.success(payment)

    # ------------------------------------------------------------------
    # Status transition (Pending -> Success | Failed, once)
    # ------------------------------------------------------------------

    def update_payment_status(self, transaction_id: str, new_status: int | None) -> Outcome[StatusUpdate]:
        """
        Move a Pending transaction to Success or Failed and cascade to its order.

        The write is conditional on status == Pending, so of two concurrent callers
        only one can succeed. Transaction and order are committed together: a dangling
        order link rolls back the status change as well.
        """
        if not transaction_id or not transaction_id.strip():
            return Outcome.fail(ErrorKind.VALIDATION, "Transaction ID is required")
        try:
            target = PaymentStatus(new_status)
        except ValueError:
            target = None
        if target not in TERMINAL_STATUSES:
            return Outcome.fail(ErrorKind.VALIDATION, "New status must be either Success (1) or Failed (2)")

        payment = self.get_by_transaction_id(transaction_id)
        if payment is None:
            payment_status_updates_total.labels(result="not_found").inc()
            return Outcome.fail(ErrorKind.NOT_FOUND, f"No payment found with Transaction ID: {transaction_id}")

        current = PaymentStatus(payment.status)
        if current != PaymentStatus.PENDING:
            payment_status_updates_total.labels(result="conflict").inc()
            return Outcome.fail(ErrorKind.CONFLICT, self._transition_rejected(current))

        order_id = payment.order_id
        response_time = datetime.now(timezone.utc)
        try:
            result = self.db.execute(
                update(PaymentTransaction)
                .where(
                    PaymentTransaction.transaction_id == transaction_id,
                    PaymentTransaction.status == int(PaymentStatus.PENDING),
                )
                .values(status=int(target), response_time=response_time)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # another caller resolved it between our read and write
                self.db.rollback()
                latest = self.get_by_transaction_id(transaction_id)
                latest_status = PaymentStatus(latest.status) if latest else current
                payment_status_updates_total.labels(result="conflict").inc()
                logger.info(
                    "payment_status_update_lost_race",
                    extra={"transaction_id": transaction_id, "payment_status": latest_status.label},
                )
                return Outcome.fail(ErrorKind.CONFLICT, self._transition_rejected(latest_status))

            if order_id is not None:
                order = self.orders.get_for_update(order_id)
                if order is None:
                    self.db.rollback()
                    payment_status_updates_total.labels(result="not_found").inc()
                    logger.error(
                        "payment_order_link_dangling",
                        extra={"transaction_id": transaction_id, "order_id": order_id},
                    )
                    return Outcome.fail(
                        ErrorKind.NOT_FOUND,
                        f"No order found for this payment with Transaction ID: {transaction_id}",
                    )
                order.status = self._order_status_for(target).value
                self.db.add(order)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            payment_status_updates_total.labels(result="error").inc()
            logger.exception("payment_status_update_failed", extra={"transaction_id": transaction_id})
            return Outcome.fail(
                ErrorKind.UPSTREAM,
                f"An error occurred while updating the payment status: {e}",
            )

        payment_status_updates_total.labels(result=target.label.lower()).inc()
        logger.info(
            "payment_status_updated",
            extra={
                "transaction_id": transaction_id,
                "order_id": order_id,
                "payment_status": target.label,
            },
        )
        return Outcome.success(
            StatusUpdate(
                status=target,
                response_time=response_time,
                message=f"Payment status updated to {_status_text(target)} for Transaction ID: {transaction_id}",
            )
        )

    @staticmethod
    def _order_status_for(status: PaymentStatus) -> OrderStatus:
        return OrderStatus.PAID if status == PaymentStatus.SUCCESS else OrderStatus.CANCELLED

    @staticmethod
    def _transition_rejected(current: PaymentStatus) -> str:
        return (
            "Payment status can only be updated from Pending (0) to Success (1) or Failed (2). "
            f"Current status: {current.label}"
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def delete_order(self, order_id: str) -> Outcome[None]:
        order = self.orders.get(order_id)
        if order is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, f"No order found with ID: {order_id}")
        try:
            self.orders.delete(order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("order_delete_failed", extra={"order_id": order_id})
            return Outcome.fail(ErrorKind.UPSTREAM, f"An error occurred while deleting the order: {e}")
        logger.info("order_deleted", extra={"order_id": order_id})
        return Outcome.success(None)
