"""Application tests for payments and their coupling to the shipment."""

import json
import re
from decimal import Decimal

import pytest
from logistics.payment.payment import Payment, PaymentStatus
from logistics.payment.processing import (
    CancelPayment,
    CompletePayment,
    CreatePayment,
    FailPayment,
    RefundPayment,
)
from logistics.shared.errors import AccessDenied, InvalidState
from logistics.shipment.booking import BookShipment
from logistics.shipment.shipment import Shipment
from protean import current_domain


def _book():
    return current_domain.process(
        BookShipment(
            actor_id="agent-1",
            actor_role="agent",
            sender_id="sender-1",
            receiver_id="receiver-1",
            pickup_address="Pickup",
            delivery_address="Delivery",
            packages=json.dumps([{"description": "Box", "weight": 1.0}]),
            shipment_fee=50.0,
        ),
        asynchronous=False,
    )


def _create_payment(shipment_id, payment_type="shipment_fee", amount=50.00, actor_id="sender-1", actor_role="sender"):
    return current_domain.process(
        CreatePayment(
            actor_id=actor_id,
            actor_role=actor_role,
            shipment_id=shipment_id,
            payment_type=payment_type,
            payment_method="cash",
            amount=amount,
        ),
        asynchronous=False,
    )


def _settle(command_cls, payment_id, actor_id="agent-1", actor_role="agent", **kwargs):
    return current_domain.process(
        command_cls(actor_id=actor_id, actor_role=actor_role, payment_id=payment_id, **kwargs),
        asynchronous=False,
    )


def _shipment(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


def _payment(payment_id):
    return current_domain.repository_for(Payment).get(payment_id)


class TestCreatePayment:
    def test_fee_payment_marks_shipment_paid_on_creation(self):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)

        payment = _payment(payment_id)
        assert payment.status == PaymentStatus.PENDING.value
        assert payment.amount == Decimal("50.00")
        assert re.fullmatch(r"TXN\d{8}[0-9A-Z]{8}", payment.transaction_id)
        assert _shipment(shipment_id).payment_status == "paid"

    def test_gateway_response_is_stored_on_creation(self):
        shipment_id = _book()
        payment_id = current_domain.process(
            CreatePayment(
                actor_id="sender-1",
                actor_role="sender",
                shipment_id=shipment_id,
                payment_type="shipment_fee",
                payment_method="mobile_money",
                amount=50,
                gateway_response=json.dumps({"reference": "MOMO-1", "status": "initiated"}),
            ),
            asynchronous=False,
        )
        assert _payment(payment_id).gateway_details() == {"reference": "MOMO-1", "status": "initiated"}

    def test_other_payment_types_leave_shipment_pending(self):
        shipment_id = _book()
        _create_payment(shipment_id, payment_type="insurance", amount=5)
        assert _shipment(shipment_id).payment_status == "pending"

    def test_unbound_payer_is_denied(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            _create_payment(shipment_id, actor_id="stranger")

    def test_on_completion_coupling_waits_for_completion(self, monkeypatch):
        monkeypatch.setitem(current_domain.config["custom"], "PAYMENT_COUPLING", "on_completion")
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)
        assert _shipment(shipment_id).payment_status == "pending"

        _settle(CompletePayment, payment_id)
        assert _shipment(shipment_id).payment_status == "paid"

    def test_on_completion_coupling_marks_failure(self, monkeypatch):
        monkeypatch.setitem(current_domain.config["custom"], "PAYMENT_COUPLING", "on_completion")
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)

        _settle(FailPayment, payment_id, reason="Card declined")
        assert _shipment(shipment_id).payment_status == "failed"


class TestSettlement:
    def test_completion_appends_payment_received(self, notifier):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)

        assert _settle(CompletePayment, payment_id, gateway_response=json.dumps({"ref": "r-1"})) == "completed"

        payment = _payment(payment_id)
        assert payment.payment_date is not None
        latest = _shipment(shipment_id).ledger()[0]
        assert latest.event_type == "payment_received"
        assert latest.is_payment_event()

        received = notifier.of_type("payment_received")
        assert [n.user_id for n in received] == ["sender-1"]

    def test_failure_appends_payment_failed(self, notifier):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)

        _settle(FailPayment, payment_id, reason="Insufficient funds")

        assert _payment(payment_id).failure_reason == "Insufficient funds"
        assert _shipment(shipment_id).ledger()[0].event_type == "payment_failed"
        assert [n.user_id for n in notifier.of_type("payment_failed")] == ["sender-1"]

    def test_cancel_pending_payment(self):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)
        assert _settle(CancelPayment, payment_id) == "cancelled"

    def test_sender_cannot_settle(self):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)
        with pytest.raises(AccessDenied):
            _settle(CompletePayment, payment_id, actor_id="sender-1", actor_role="sender")


class TestRefund:
    def test_admin_refunds_completed_fee(self):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)
        _settle(CompletePayment, payment_id)

        status = _settle(RefundPayment, payment_id, actor_id="root", actor_role="admin", reason="Lost parcel")

        assert status == "refunded"
        assert _payment(payment_id).refund_reason == "Lost parcel"
        assert _shipment(shipment_id).payment_status == "refunded"

    def test_refund_of_pending_payment_is_invalid(self):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)
        with pytest.raises(InvalidState):
            _settle(RefundPayment, payment_id, actor_id="root", actor_role="admin", reason="Oops")
        assert _payment(payment_id).status == "pending"

    def test_only_admin_refunds(self):
        shipment_id = _book()
        payment_id = _create_payment(shipment_id)
        _settle(CompletePayment, payment_id)
        with pytest.raises(AccessDenied):
            _settle(RefundPayment, payment_id, reason="Please")
