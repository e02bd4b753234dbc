"""Shipment lifecycle notifications: event handler.

Sender and receiver hear about the booking and about the status changes
listed in ``STATUS_NOTIFICATIONS``. Every other status change is silent.
"""

import structlog
from protean.utils.mixins import handle

from logistics.domain import logistics
from logistics.notifier.dispatch import STATUS_UPDATE_TITLE, NotificationType, notify_users
from logistics.shipment.events import ShipmentBooked, ShipmentStatusChanged
from logistics.shipment.shipment import Shipment, ShipmentStatus

logger = structlog.get_logger(__name__)

STATUS_NOTIFICATIONS = {
    ShipmentStatus.PICKED_UP: NotificationType.PICKUP_COMPLETED,
    ShipmentStatus.IN_TRANSIT: NotificationType.IN_TRANSIT,
    ShipmentStatus.OUT_FOR_DELIVERY: NotificationType.OUT_FOR_DELIVERY,
    ShipmentStatus.DELIVERED: NotificationType.DELIVERED,
    ShipmentStatus.PICKED_UP_BY_RECEIVER: NotificationType.PICKED_UP,
}


@logistics.event_handler(part_of=Shipment)
class ShipmentNotificationHandler:
    """Reacts to Shipment events to notify the sender and receiver."""

    @handle(ShipmentBooked)
    def on_shipment_booked(self, event: ShipmentBooked) -> None:
        notify_users(
            [event.sender_id, event.receiver_id],
            str(event.shipment_id),
            NotificationType.SHIPMENT_BOOKED,
            "Shipment Booked",
            f"Your shipment {event.tracking_number} has been booked.",
            {"tracking_number": event.tracking_number},
        )

    @handle(ShipmentStatusChanged)
    def on_status_changed(self, event: ShipmentStatusChanged) -> None:
        notification_type = STATUS_NOTIFICATIONS.get(ShipmentStatus(event.to_status))
        if notification_type is None:
            return

        logger.debug(
            "Sending status notification",
            shipment_id=str(event.shipment_id),
            status=event.to_status,
        )
        notify_users(
            [event.sender_id, event.receiver_id],
            str(event.shipment_id),
            notification_type,
            STATUS_UPDATE_TITLE,
            f"Your shipment {event.tracking_number} status has been updated to {event.to_status}.",
            {"tracking_number": event.tracking_number, "status": event.to_status},
        )
