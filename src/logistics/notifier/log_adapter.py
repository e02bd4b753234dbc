"""Log notifier: writes each notification as a structured log line.

Useful in environments where no delivery channel is wired up yet.
"""

import structlog

from logistics.notifier.port import NotifierPort

logger = structlog.get_logger(__name__)


class LogNotifier(NotifierPort):
    def notify(self, user_id, shipment_id, notification_type, title, message, metadata=None) -> None:
        logger.info(
            "Notification",
            user_id=str(user_id),
            shipment_id=str(shipment_id) if shipment_id else None,
            notification_type=notification_type,
            title=title,
            message=message,
            metadata=metadata or {},
        )
