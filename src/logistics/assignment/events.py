"""Driver assignment domain events."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from logistics.domain import logistics


@logistics.event(part_of="DriverAssignment")
class AssignmentCreated:
    """A driver was given a pickup or delivery task for a shipment."""

    __version__ = 1

    assignment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    assignment_type = String(required=True)
    vehicle_id = Identifier()
    estimated_duration = Integer()
    assigned_by = Identifier(required=True)
    assigned_at = DateTime(required=True)


@logistics.event(part_of="DriverAssignment")
class AssignmentAccepted:
    __version__ = 1

    assignment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    accepted_at = DateTime(required=True)


@logistics.event(part_of="DriverAssignment")
class AssignmentStarted:
    __version__ = 1

    assignment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    assignment_type = String(required=True)
    location = String()
    started_at = DateTime(required=True)


@logistics.event(part_of="DriverAssignment")
class AssignmentCompleted:
    __version__ = 1

    assignment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@logistics.event(part_of="DriverAssignment")
class AssignmentCancelled:
    __version__ = 1

    assignment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    reason = Text()
    cancelled_by = Identifier(required=True)
    cancelled_at = DateTime(required=True)


@logistics.event(part_of="DriverAssignment")
class AssignmentFailed:
    __version__ = 1

    assignment_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    reason = Text()
    failed_by = Identifier(required=True)
    failed_at = DateTime(required=True)
