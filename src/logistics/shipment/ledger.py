"""Manual tracking-ledger entries: command and handler.

Agents and drivers log milestones that do not move the shipment's status,
such as a failed delivery attempt. Event types that belong to a status change
are refused here; those are only written by a transition.
"""

import json

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.access import Actor, Capability, authorize
from logistics.shared.errors import ValidationFailed
from logistics.shipment.shipment import STATUS_EVENT_TYPES, Shipment, parse_event_type

logger = structlog.get_logger(__name__)

_STATUS_DRIVEN_EVENT_TYPES = set(STATUS_EVENT_TYPES.values())


@logistics.command(part_of="Shipment")
class RecordTrackingEvent:
    """Append a tracking event without changing status."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    event_type = String(required=True, max_length=50)
    location = String(max_length=255)
    description = Text()
    details = Text()  # JSON object
    timestamp = DateTime()


@logistics.command_handler(part_of=Shipment)
class LedgerHandler:
    @handle(RecordTrackingEvent)
    def record_tracking_event(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.RECORD_EVENT, shipment)

        event_type = parse_event_type(command.event_type)
        if event_type in _STATUS_DRIVEN_EVENT_TYPES:
            raise ValidationFailed(f"event_type: {event_type.value} is recorded by a status transition")

        entry = shipment.record_event(
            event_type,
            actor.id,
            location=command.location,
            description=command.description,
            details=json.loads(command.details) if command.details else None,
            timestamp=command.timestamp,
        )
        repo.add(shipment)
        logger.info(
            "Tracking event recorded",
            shipment_id=str(shipment.id),
            event_type=event_type.value,
            sequence=entry.sequence,
        )
        return entry.sequence
