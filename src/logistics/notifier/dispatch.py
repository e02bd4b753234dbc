"""Shared helpers for lifecycle notification handlers.

Handlers run after the Unit of Work has committed, so the shipment change is
already durable. A sink failure is logged and dropped; it must never surface
to the caller as a failed operation.
"""

from enum import Enum

import structlog

from logistics.notifier.sink import get_notifier

logger = structlog.get_logger(__name__)

STATUS_UPDATE_TITLE = "Shipment Status Update"


class NotificationType(Enum):
    SHIPMENT_BOOKED = "shipment_booked"
    PICKUP_COMPLETED = "pickup_completed"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    PICKED_UP = "picked_up"
    DRIVER_ASSIGNED = "driver_assigned"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"


def notify_users(
    user_ids,
    shipment_id: str | None,
    notification_type: NotificationType,
    title: str,
    message: str,
    metadata: dict | None = None,
) -> int:
    """Send one notification per distinct user. Returns how many were accepted."""
    notifier = get_notifier()
    delivered = 0
    for user_id in dict.fromkeys(str(u) for u in user_ids if u):
        try:
            notifier.notify(user_id, shipment_id, notification_type.value, title, message, metadata or {})
            delivered += 1
        except Exception as exc:
            logger.error(
                "Notification delivery failed",
                user_id=user_id,
                shipment_id=shipment_id,
                notification_type=notification_type.value,
                error=str(exc),
            )
    return delivered
