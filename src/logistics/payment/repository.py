"""Repository for the Payment aggregate."""

from protean.exceptions import ObjectNotFoundError

from logistics.domain import logistics
from logistics.payment.payment import Payment
from logistics.shared.errors import NotFound


@logistics.repository(part_of=Payment)
class PaymentRepository:
    def get_payment(self, payment_id: str) -> Payment:
        try:
            return self.get(payment_id)
        except ObjectNotFoundError:
            raise NotFound("Payment not found") from None

    def transaction_id_taken(self, transaction_id: str) -> bool:
        return self.query.filter(transaction_id=transaction_id).all().total > 0

    def for_shipment(self, shipment_id: str) -> list[Payment]:
        return self.query.filter(shipment_id=shipment_id).order_by("-created_at").all().items
