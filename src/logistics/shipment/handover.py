"""Pickup and delivery handovers: commands and handler.

Only the driver bound to the shipment (or an admin) records that parcels
changed hands. Evidence photos and signatures travel with the ledger entry.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.access import Actor, Capability, authorize
from logistics.shipment.shipment import Shipment
from logistics.shipment.status import strict_transitions

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Shipment")
class RecordPickup:
    """Driver collected the shipment from the sender."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    location = String(max_length=255)
    notes = Text()
    photos = Text()  # JSON list, one photo reference per package in order


@logistics.command(part_of="Shipment")
class RecordDelivery:
    """Driver handed the shipment over at its destination."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    delivery_type = String(required=True, max_length=50)
    location = String(max_length=255)
    notes = Text()
    signature = String(max_length=500)
    photos = Text()  # JSON list


def _photos(raw) -> list[str]:
    if not raw:
        return []
    return json.loads(raw) if isinstance(raw, str) else list(raw)


@logistics.command_handler(part_of=Shipment)
class HandoverHandler:
    @handle(RecordPickup)
    def record_pickup(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.RECORD_HANDOVER, shipment)

        shipment.record_pickup(
            actor.id,
            location=command.location,
            notes=command.notes,
            photos=_photos(command.photos),
            strict=strict_transitions(),
        )
        repo.add(shipment)
        logger.info("Shipment picked up", shipment_id=str(shipment.id), driver_id=actor.id)
        return shipment.status

    @handle(RecordDelivery)
    def record_delivery(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.RECORD_HANDOVER, shipment)

        shipment.record_delivery(
            command.delivery_type,
            actor.id,
            location=command.location,
            notes=command.notes,
            signature=command.signature,
            photos=_photos(command.photos),
            strict=strict_transitions(),
        )
        repo.add(shipment)
        logger.info(
            "Shipment delivered",
            shipment_id=str(shipment.id),
            delivery_type=shipment.status,
            driver_id=actor.id,
        )
        return shipment.status
