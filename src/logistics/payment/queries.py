"""Read side for payments."""

from protean.utils.globals import current_domain

from logistics.payment.payment import Payment
from logistics.shared.access import Actor, Capability, authorize
from logistics.shipment.shipment import Shipment


def payment_view(payment: Payment) -> dict:
    return {
        "payment_id": str(payment.id),
        "shipment_id": str(payment.shipment_id),
        "user_id": str(payment.user_id),
        "payment_type": payment.payment_type,
        "payment_method": payment.payment_method,
        "amount": f"{payment.amount:.2f}",
        "transaction_id": payment.transaction_id,
        "status": payment.status,
        "payment_date": payment.payment_date,
        "gateway_response": payment.gateway_details(),
        "refund_reason": payment.refund_reason,
        "failure_reason": payment.failure_reason,
        "created_at": payment.created_at,
    }


def get_payment(payment_id: str, actor: Actor) -> dict:
    payment = current_domain.repository_for(Payment).get_payment(payment_id)
    shipment = current_domain.repository_for(Shipment).get_shipment(payment.shipment_id)
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)
    return payment_view(payment)


def payments_for_shipment(shipment_id: str, actor: Actor) -> list[dict]:
    shipment = current_domain.repository_for(Shipment).get_shipment(shipment_id)
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)
    return [payment_view(p) for p in current_domain.repository_for(Payment).for_shipment(shipment_id)]
