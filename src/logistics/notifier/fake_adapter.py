"""Fake notifier: records notifications in memory for tests and development.

Can be configured to fail, to prove that a broken sink never undoes the
shipment change that triggered it.
"""

from dataclasses import dataclass, field

from logistics.notifier.port import NotifierPort


@dataclass
class SentNotification:
    user_id: str
    shipment_id: str | None
    notification_type: str
    title: str
    message: str
    metadata: dict = field(default_factory=dict)


class FakeNotifier(NotifierPort):
    def __init__(self):
        self.sent: list[SentNotification] = []
        self.should_succeed = True
        self.failure_reason = "Notification sink unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification sink unavailable"):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, user_id, shipment_id, notification_type, title, message, metadata=None) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.sent.append(
            SentNotification(
                user_id=str(user_id),
                shipment_id=str(shipment_id) if shipment_id else None,
                notification_type=notification_type,
                title=title,
                message=message,
                metadata=metadata or {},
            )
        )

    def of_type(self, notification_type: str) -> list[SentNotification]:
        return [n for n in self.sent if n.notification_type == notification_type]

    def for_user(self, user_id: str) -> list[SentNotification]:
        return [n for n in self.sent if n.user_id == str(user_id)]

    def clear(self) -> None:
        self.sent.clear()
