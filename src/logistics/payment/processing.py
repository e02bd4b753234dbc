"""Payment commands and handlers.

Each handler loads the payment's shipment in the same Unit of Work, so the
shipment's payment status and its ledger entries commit together with the
payment itself. When the shipment flips to ``paid`` is governed by the
``PAYMENT_COUPLING`` setting.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.payment.payment import Payment
from logistics.shared.access import Actor, Capability, authorize
from logistics.shared.identifiers import get_identifier_generator
from logistics.shared.settings import PaymentCoupling, payment_coupling
from logistics.shipment.shipment import PaymentState, Shipment, TrackingEventType

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Payment")
class CreatePayment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    payment_type = String(required=True, max_length=30)
    payment_method = String(required=True, max_length=30)
    amount = Float(required=True, min_value=0.0)
    gateway_response = Text()  # JSON


@logistics.command(part_of="Payment")
class CompletePayment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    payment_id = Identifier(required=True)
    gateway_response = Text()  # JSON


@logistics.command(part_of="Payment")
class FailPayment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    payment_id = Identifier(required=True)
    reason = Text()
    gateway_response = Text()  # JSON


@logistics.command(part_of="Payment")
class CancelPayment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    payment_id = Identifier(required=True)


@logistics.command(part_of="Payment")
class RefundPayment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    payment_id = Identifier(required=True)
    reason = Text(required=True)


def _gateway(raw) -> dict | None:
    if not raw:
        return None
    return json.loads(raw) if isinstance(raw, str) else raw


def _payment_details(payment: Payment) -> dict:
    return {
        "payment_id": str(payment.id),
        "transaction_id": payment.transaction_id,
        "amount": f"{payment.amount:.2f}",
        "payment_type": payment.payment_type,
    }


@logistics.command_handler(part_of=Payment)
class PaymentCommandHandler:
    @handle(CreatePayment)
    def create_payment(self, command):
        actor = Actor.from_command(command)
        shipments = current_domain.repository_for(Shipment)
        shipment = shipments.get_shipment(command.shipment_id)
        authorize(actor, Capability.CREATE_PAYMENT, shipment)

        repo = current_domain.repository_for(Payment)
        payment = Payment.create(
            shipment_id=str(shipment.id),
            user_id=actor.id,
            payment_type=command.payment_type,
            payment_method=command.payment_method,
            amount=command.amount,
            transaction_id=get_identifier_generator().transaction_id(repo.transaction_id_taken),
            gateway_response=_gateway(command.gateway_response),
        )
        repo.add(payment)

        if payment.is_shipment_fee() and payment_coupling() == PaymentCoupling.ON_CREATION:
            shipment.mark_payment_status(PaymentState.PAID, str(payment.id))
            shipments.add(shipment)

        logger.info(
            "Payment created",
            payment_id=str(payment.id),
            shipment_id=str(shipment.id),
            payment_type=payment.payment_type,
            transaction_id=payment.transaction_id,
        )
        return str(payment.id)

    @handle(CompletePayment)
    def complete_payment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Payment)
        payment = repo.get_payment(command.payment_id)
        shipments = current_domain.repository_for(Shipment)
        shipment = shipments.get_shipment(payment.shipment_id)
        authorize(actor, Capability.SETTLE_PAYMENT, shipment)

        payment.mark_as_completed(_gateway(command.gateway_response))
        shipment.record_event(
            TrackingEventType.PAYMENT_RECEIVED,
            actor.id,
            description=f"Payment {payment.transaction_id} received",
            details=_payment_details(payment),
        )
        if payment.is_shipment_fee() and payment_coupling() == PaymentCoupling.ON_COMPLETION:
            shipment.mark_payment_status(PaymentState.PAID, str(payment.id))

        repo.add(payment)
        shipments.add(shipment)

        logger.info("Payment completed", payment_id=str(payment.id), shipment_id=str(shipment.id))
        return payment.status

    @handle(FailPayment)
    def fail_payment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Payment)
        payment = repo.get_payment(command.payment_id)
        shipments = current_domain.repository_for(Shipment)
        shipment = shipments.get_shipment(payment.shipment_id)
        authorize(actor, Capability.SETTLE_PAYMENT, shipment)

        payment.mark_as_failed(command.reason, _gateway(command.gateway_response))
        details = _payment_details(payment)
        if command.reason:
            details["reason"] = command.reason
        shipment.record_event(
            TrackingEventType.PAYMENT_FAILED,
            actor.id,
            description=f"Payment {payment.transaction_id} failed",
            details=details,
        )
        if payment.is_shipment_fee() and payment_coupling() == PaymentCoupling.ON_COMPLETION:
            shipment.mark_payment_status(PaymentState.FAILED, str(payment.id))

        repo.add(payment)
        shipments.add(shipment)

        logger.warning(
            "Payment failed",
            payment_id=str(payment.id),
            shipment_id=str(shipment.id),
            reason=command.reason,
        )
        return payment.status

    @handle(CancelPayment)
    def cancel_payment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Payment)
        payment = repo.get_payment(command.payment_id)
        shipment = current_domain.repository_for(Shipment).get_shipment(payment.shipment_id)
        authorize(actor, Capability.SETTLE_PAYMENT, shipment)

        payment.cancel()
        repo.add(payment)

        logger.info("Payment cancelled", payment_id=str(payment.id))
        return payment.status

    @handle(RefundPayment)
    def refund_payment(self, command):
        actor = Actor.from_command(command)
        authorize(actor, Capability.REFUND_PAYMENT)
        repo = current_domain.repository_for(Payment)
        payment = repo.get_payment(command.payment_id)

        payment.refund(command.reason)
        repo.add(payment)

        if payment.is_shipment_fee():
            shipments = current_domain.repository_for(Shipment)
            shipment = shipments.get_shipment(payment.shipment_id)
            shipment.mark_payment_status(PaymentState.REFUNDED, str(payment.id))
            shipments.add(shipment)

        logger.info(
            "Payment refunded",
            payment_id=str(payment.id),
            refunded_by=actor.id,
            reason=command.reason,
        )
        return payment.status
