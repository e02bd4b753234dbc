"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared across
users. State tracks the IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class ShipmentState:
    """Tracks one simulated shipment through its journey."""

    agent_id: str
    sender_id: str
    receiver_id: str
    driver_id: str
    shipment_id: str | None = None
    tracking_number: str | None = None
    pickup_assignment_id: str | None = None
    delivery_assignment_id: str | None = None
    payment_id: str | None = None
    package_ids: list[str] = field(default_factory=list)

    def headers(self, role: str) -> dict:
        """Identity headers for the party playing ``role`` on this shipment."""
        actor_id = {
            "agent": self.agent_id,
            "sender": self.sender_id,
            "receiver": self.receiver_id,
            "driver": self.driver_id,
        }[role]
        return {"X-Actor-Id": actor_id, "X-Actor-Role": role}
