"""Tests for PaymentService: link creation, lookup, one-shot status transition, order cascade."""
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.models.order import Order, OrderDetail, OrderStatus
from app.models.payment_transaction import PaymentStatus, PaymentTransaction
from app.schemas.payments import PaymentLinkRequest
from app.services.outcome import ErrorKind
from app.services.payments.payos import PaymentGatewayError, PaymentLink
from app.services.payments.service import PaymentService, new_order_code


def _add_order(db, status=OrderStatus.PENDING):
    order = Order(total_amount=Decimal("250000"), status=status.value, address="12 Le Loi")
    order.details.append(OrderDetail(product_id="p-1", quantity=2, unit_price=Decimal("125000")))
    db.add(order)
    db.commit()
    return order


def _add_transaction(db, transaction_id="1001", order_id=None, status=PaymentStatus.PENDING):
    tx = PaymentTransaction(
        transaction_id=transaction_id,
        order_id=order_id,
        amount=250000,
        result_code="00",
        status=int(status),
    )
    db.add(tx)
    db.commit()
    return tx


def _gateway(checkout_url="https://pay.payos.vn/web/abc"):
    gateway = MagicMock()
    gateway.create_payment_link.return_value = PaymentLink(
        checkout_url=checkout_url, payment_link_id="plink-1", code="00"
    )
    return gateway


class TestCreatePaymentLink:
    def test_returns_checkout_url_and_records_pending_transaction(self, db):
        order = _add_order(db)
        gateway = _gateway()
        svc = PaymentService(db, gateway=gateway)

        outcome = svc.create_payment_link(
            PaymentLinkRequest(order_id=order.id, amount=250000, description="Order 42")
        )

        assert outcome.ok
        assert outcome.value == "https://pay.payos.vn/web/abc"
        tx = db.query(PaymentTransaction).one()
        assert tx.order_id == order.id
        assert tx.status == int(PaymentStatus.PENDING)
        assert tx.amount == 250000
        assert tx.result_code == "00"
        kwargs = gateway.create_payment_link.call_args.kwargs
        assert kwargs["order_code"] == int(tx.transaction_id)
        assert kwargs["description"] == "Order 42"

    def test_link_without_order(self, db):
        svc = PaymentService(db, gateway=_gateway())

        outcome = svc.create_payment_link(PaymentLinkRequest(amount=10000, description="Top up"))

        assert outcome.ok
        assert db.query(PaymentTransaction).one().order_id is None

    def test_gateway_error_persists_nothing(self, db):
        gateway = MagicMock()
        gateway.create_payment_link.side_effect = PaymentGatewayError("Invalid checksum", code="20")
        svc = PaymentService(db, gateway=gateway)

        outcome = svc.create_payment_link(PaymentLinkRequest(amount=10000, description="Top up"))

        assert outcome.error == ErrorKind.UPSTREAM
        assert outcome.http_status == 500
        assert outcome.message == "An error occurred while creating the payment URL: Invalid checksum"
        assert db.query(PaymentTransaction).count() == 0

    def test_unknown_order_is_not_found(self, db):
        gateway = _gateway()
        svc = PaymentService(db, gateway=gateway)

        outcome = svc.create_payment_link(
            PaymentLinkRequest(order_id="missing", amount=10000, description="x")
        )

        assert outcome.error == ErrorKind.NOT_FOUND
        gateway.create_payment_link.assert_not_called()

    def test_order_with_existing_transaction_is_rejected(self, db):
        order = _add_order(db)
        _add_transaction(db, order_id=order.id)
        gateway = _gateway()
        svc = PaymentService(db, gateway=gateway)

        outcome = svc.create_payment_link(
            PaymentLinkRequest(order_id=order.id, amount=10000, description="x")
        )

        assert outcome.error == ErrorKind.CONFLICT
        gateway.create_payment_link.assert_not_called()

    def test_requires_gateway(self, db):
        with pytest.raises(RuntimeError):
            PaymentService(db).create_payment_link(PaymentLinkRequest(amount=1, description="x"))


def test_order_codes_are_positive_and_js_safe():
    code = new_order_code()
    assert 0 < code <= 2**53 - 1


class TestGetPayment:
    def test_found(self, db):
        _add_transaction(db, "555")
        outcome = PaymentService(db).get_payment("555")
        assert outcome.ok
        assert outcome.value.transaction_id == "555"

    def test_not_found(self, db):
        outcome = PaymentService(db).get_payment("nope")
        assert outcome.error == ErrorKind.NOT_FOUND
        assert outcome.message == "No payment found with Transaction ID: nope"

    def test_blank_id(self, db):
        outcome = PaymentService(db).get_payment("  ")
        assert outcome.error == ErrorKind.VALIDATION
        assert outcome.message == "Transaction ID is required"


class TestUpdatePaymentStatus:
    def test_success_marks_order_paid(self, db):
        order = _add_order(db)
        _add_transaction(db, "1", order_id=order.id)

        outcome = PaymentService(db).update_payment_status("1", 1)

        assert outcome.ok
        assert outcome.value.status == PaymentStatus.SUCCESS
        assert outcome.value.message == "Payment status updated to Success (1) for Transaction ID: 1"
        db.expire_all()
        tx = db.get(PaymentTransaction, "1")
        assert tx.status == int(PaymentStatus.SUCCESS)
        assert tx.response_time is not None
        assert db.get(Order, order.id).status == OrderStatus.PAID.value

    def test_failed_marks_order_cancelled(self, db):
        order = _add_order(db)
        _add_transaction(db, "2", order_id=order.id)

        outcome = PaymentService(db).update_payment_status("2", 2)

        assert outcome.ok
        assert outcome.value.message == "Payment status updated to Failed (2) for Transaction ID: 2"
        db.expire_all()
        assert db.get(Order, order.id).status == OrderStatus.CANCELLED.value

    def test_unlinked_transaction_touches_no_order(self, db):
        order = _add_order(db)
        _add_transaction(db, "3", order_id=None)

        outcome = PaymentService(db).update_payment_status("3", 1)

        assert outcome.ok
        db.expire_all()
        assert db.get(Order, order.id).status == OrderStatus.PENDING.value

    @pytest.mark.parametrize("new_status", [None, 0, 3, -1])
    def test_invalid_target_status(self, db, new_status):
        _add_transaction(db, "4")

        outcome = PaymentService(db).update_payment_status("4", new_status)

        assert outcome.error == ErrorKind.VALIDATION
        assert outcome.message == "New status must be either Success (1) or Failed (2)"
        db.expire_all()
        assert db.get(PaymentTransaction, "4").status == int(PaymentStatus.PENDING)

    def test_unknown_transaction(self, db):
        outcome = PaymentService(db).update_payment_status("missing", 1)
        assert outcome.error == ErrorKind.NOT_FOUND
        assert outcome.message == "No payment found with Transaction ID: missing"

    @pytest.mark.parametrize("current", [PaymentStatus.SUCCESS, PaymentStatus.FAILED])
    def test_terminal_status_is_final(self, db, current):
        order = _add_order(db, status=OrderStatus.PAID)
        _add_transaction(db, "5", order_id=order.id, status=current)

        outcome = PaymentService(db).update_payment_status("5", 2 if current == PaymentStatus.SUCCESS else 1)

        assert outcome.error == ErrorKind.CONFLICT
        assert outcome.http_status == 400
        assert outcome.message.endswith(f"Current status: {current.label}")
        db.expire_all()
        assert db.get(PaymentTransaction, "5").status == int(current)
        assert db.get(Order, order.id).status == OrderStatus.PAID.value

    def test_second_update_is_rejected(self, db):
        _add_transaction(db, "6")
        svc = PaymentService(db)

        assert svc.update_payment_status("6", 1).ok
        second = svc.update_payment_status("6", 2)

        assert second.error == ErrorKind.CONFLICT
        db.expire_all()
        assert db.get(PaymentTransaction, "6").status == int(PaymentStatus.SUCCESS)

    def test_stale_reader_loses_race(self, session_factory):
        setup = session_factory()
        order = _add_order(setup)
        _add_transaction(setup, "7", order_id=order.id)
        order_id = order.id
        setup.close()

        first, second = session_factory(), session_factory()
        try:
            # second caller has already read the row as Pending
            assert second.get(PaymentTransaction, "7").status == int(PaymentStatus.PENDING)

            assert PaymentService(first).update_payment_status("7", 1).ok
            outcome = PaymentService(second).update_payment_status("7", 2)

            assert outcome.error == ErrorKind.CONFLICT
            assert outcome.message.endswith("Current status: Success")
        finally:
            first.close()
            second.close()

        check = session_factory()
        assert check.get(PaymentTransaction, "7").status == int(PaymentStatus.SUCCESS)
        assert check.get(Order, order_id).status == OrderStatus.PAID.value
        check.close()

    def test_dangling_order_link_rolls_back(self, db):
        _add_transaction(db, "8", order_id="deleted-order")

        outcome = PaymentService(db).update_payment_status("8", 1)

        assert outcome.error == ErrorKind.NOT_FOUND
        assert outcome.message == "No order found for this payment with Transaction ID: 8"
        db.expire_all()
        tx = db.get(PaymentTransaction, "8")
        assert tx.status == int(PaymentStatus.PENDING)
        assert tx.response_time is None


class TestDeleteOrder:
    def test_deletes_details_and_transaction(self, db):
        order = _add_order(db)
        _add_transaction(db, "9", order_id=order.id)
        order_id = order.id

        outcome = PaymentService(db).delete_order(order_id)

        assert outcome.ok
        assert db.get(Order, order_id) is None
        assert db.query(OrderDetail).count() == 0
        assert db.get(PaymentTransaction, "9") is None

    def test_unknown_order(self, db):
        outcome = PaymentService(db).delete_order("nope")
        assert outcome.error == ErrorKind.NOT_FOUND
        assert outcome.message == "No order found with ID: nope"
