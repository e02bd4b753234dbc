"""Payment notifications to the payer."""

import structlog
from protean.utils.mixins import handle

from logistics.domain import logistics
from logistics.notifier.dispatch import NotificationType, notify_users
from logistics.payment.events import PaymentCompleted, PaymentFailed
from logistics.payment.payment import Payment

logger = structlog.get_logger(__name__)


@logistics.event_handler(part_of=Payment)
class PaymentNotificationHandler:
    @handle(PaymentCompleted)
    def on_payment_completed(self, event: PaymentCompleted) -> None:
        notify_users(
            [event.user_id],
            str(event.shipment_id),
            NotificationType.PAYMENT_RECEIVED,
            "Payment Received",
            f"Your payment of {event.amount:.2f} ({event.transaction_id}) has been received.",
            {"payment_id": str(event.payment_id), "transaction_id": event.transaction_id},
        )

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        logger.debug("Notifying payer of failed payment", payment_id=str(event.payment_id))
        notify_users(
            [event.user_id],
            str(event.shipment_id),
            NotificationType.PAYMENT_FAILED,
            "Payment Failed",
            f"Your payment {event.transaction_id} could not be processed.",
            {
                "payment_id": str(event.payment_id),
                "transaction_id": event.transaction_id,
                "reason": event.reason,
            },
        )
