"""Notifier port: abstract interface for delivering user notifications.

The logistics domain emits lifecycle events; delivering the resulting
messages (push, SMS, email, in-app) belongs to another system. Adapters
implement this port and are swapped via configuration.
"""

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    """Abstract interface for notification sinks."""

    @abstractmethod
    def notify(
        self,
        user_id: str,
        shipment_id: str | None,
        notification_type: str,
        title: str,
        message: str,
        metadata: dict | None = None,
    ) -> None:
        """Hand a notification to the sink. Fire-and-forget: no result is awaited."""
        ...
