"""Tell drivers about new work."""

from protean.utils.mixins import handle

from logistics.assignment.assignment import DriverAssignment
from logistics.assignment.events import AssignmentCreated
from logistics.domain import logistics
from logistics.notifier.dispatch import NotificationType, notify_users


@logistics.event_handler(part_of=DriverAssignment)
class AssignmentNotificationHandler:
    @handle(AssignmentCreated)
    def on_assignment_created(self, event: AssignmentCreated) -> None:
        notify_users(
            [event.driver_id],
            str(event.shipment_id),
            NotificationType.DRIVER_ASSIGNED,
            "New Assignment",
            f"You have been assigned a {event.assignment_type} for shipment {event.shipment_id}.",
            {
                "assignment_id": str(event.assignment_id),
                "assignment_type": event.assignment_type,
            },
        )
