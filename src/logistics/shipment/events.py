"""Shipment domain events: immutable facts about a shipment's lifecycle.

All events are past tense and versioned. Lifecycle notification handlers
consume them after the Unit of Work commits.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from logistics.domain import logistics


@logistics.event(part_of="Shipment")
class ShipmentBooked:
    """A shipment was booked and its packages registered."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    master_tracking_id = String(required=True)
    sender_id = Identifier(required=True)
    receiver_id = Identifier(required=True)
    agent_id = Identifier()
    package_count = Integer(required=True)
    booked_by = Identifier(required=True)
    booked_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class ShipmentStatusChanged:
    """The shipment moved to a new status."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    sender_id = Identifier(required=True)
    receiver_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    location = String()
    notes = Text()
    changed_by = Identifier(required=True)
    changed_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class TrackingEventRecorded:
    """A new entry was appended to the shipment's tracking ledger."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    event_type = String(required=True)
    sequence = Integer(required=True)
    location = String()
    description = Text()
    recorded_by = Identifier()
    recorded_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class PackageAdded:
    __version__ = 1

    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    sub_tracking_id = String(required=True)
    added_by = Identifier(required=True)
    added_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class PackageUpdated:
    __version__ = 1

    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    changed_fields = Text(required=True)  # JSON list of field names
    updated_by = Identifier(required=True)
    updated_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class PackageRemoved:
    __version__ = 1

    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    sub_tracking_id = String(required=True)
    removed_by = Identifier(required=True)
    removed_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class PackagePhotoAdded:
    __version__ = 1

    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    photo = String(required=True)
    added_by = Identifier(required=True)
    added_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class DriverBound:
    """A driver was bound to the shipment by an assignment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    previous_driver_id = Identifier()
    driver_id = Identifier(required=True)
    bound_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class AgentReassigned:
    __version__ = 1

    shipment_id = Identifier(required=True)
    previous_agent_id = Identifier()
    agent_id = Identifier(required=True)
    reassigned_by = Identifier(required=True)
    reassigned_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class ShipmentPaymentStatusChanged:
    """The shipment's payment status moved, driven by a payment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    payment_id = Identifier()
    changed_at = DateTime(required=True)
