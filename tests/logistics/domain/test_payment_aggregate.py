"""Tests for the Payment aggregate."""

from decimal import Decimal

import pytest
from logistics.payment.events import PaymentCompleted, PaymentCreated, PaymentRefunded
from logistics.payment.payment import Payment, PaymentStatus
from logistics.shared.errors import InvalidState, ValidationFailed


def _payment(**overrides):
    kwargs = dict(
        shipment_id="shipment-1",
        user_id="sender-1",
        payment_type="shipment_fee",
        payment_method="mobile_money",
        amount=50,
        transaction_id="TXN20250115ABCDEFGH",
    )
    kwargs.update(overrides)
    return Payment.create(**kwargs)


class TestCreate:
    def test_new_payment_is_pending_with_fixed_point_amount(self):
        payment = _payment(amount=12.345)
        assert payment.status == PaymentStatus.PENDING.value
        assert payment.amount == Decimal("12.35")
        assert payment.payment_date is None
        assert isinstance(payment._events[0], PaymentCreated)

    def test_unknown_method_is_rejected(self):
        with pytest.raises(ValidationFailed):
            _payment(payment_method="barter")

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationFailed):
            _payment(payment_type="tip")

    def test_negative_amount_is_rejected(self):
        with pytest.raises(ValidationFailed):
            _payment(amount=-5)


class TestSettlement:
    def test_complete_sets_payment_date(self):
        payment = _payment()
        payment.mark_as_completed({"gateway": "momo", "ref": "abc"})
        assert payment.status == PaymentStatus.COMPLETED.value
        assert payment.payment_date is not None
        assert payment.gateway_details() == {"gateway": "momo", "ref": "abc"}
        assert isinstance(payment._events[-1], PaymentCompleted)

    def test_complete_twice_is_invalid(self):
        payment = _payment()
        payment.mark_as_completed()
        with pytest.raises(InvalidState):
            payment.mark_as_completed()

    def test_fail_records_reason(self):
        payment = _payment()
        payment.mark_as_failed("Insufficient funds")
        assert payment.status == PaymentStatus.FAILED.value
        assert payment.failure_reason == "Insufficient funds"

    def test_cancel_only_from_pending(self):
        payment = _payment()
        payment.mark_as_failed("declined")
        with pytest.raises(InvalidState):
            payment.cancel()


class TestRefund:
    def test_refund_completed_payment(self):
        payment = _payment()
        payment.mark_as_completed()
        assert payment.can_be_refunded()

        payment.refund("Shipment lost")
        assert payment.status == PaymentStatus.REFUNDED.value
        assert payment.refund_reason == "Shipment lost"
        assert isinstance(payment._events[-1], PaymentRefunded)

    def test_refund_pending_payment_is_invalid_and_leaves_status(self):
        payment = _payment()
        assert not payment.can_be_refunded()
        with pytest.raises(InvalidState):
            payment.refund("changed my mind")
        assert payment.status == PaymentStatus.PENDING.value
        assert payment.refund_reason is None

    def test_refund_twice_is_invalid(self):
        payment = _payment()
        payment.mark_as_completed()
        payment.refund("first")
        with pytest.raises(InvalidState):
            payment.refund("second")
        assert payment.refund_reason == "first"
