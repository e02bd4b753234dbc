"""Status transitions requested by agents, drivers and admins."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.access import Actor, Capability, authorize
from logistics.shared.settings import TransitionPolicy, transition_policy
from logistics.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Shipment")
class TransitionStatus:
    """Move a shipment to a new status."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    target_status = String(required=True, max_length=50)
    location = String(max_length=255)
    notes = Text()


def strict_transitions() -> bool:
    return transition_policy() == TransitionPolicy.STRICT


@logistics.command_handler(part_of=Shipment)
class TransitionStatusHandler:
    @handle(TransitionStatus)
    def transition_status(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.TRANSITION_STATUS, shipment)

        previous = shipment.status
        shipment.transition_to(
            command.target_status,
            actor.id,
            location=command.location,
            notes=command.notes,
            strict=strict_transitions(),
        )
        repo.add(shipment)

        logger.info(
            "Shipment status changed",
            shipment_id=str(shipment.id),
            from_status=previous,
            to_status=shipment.status,
            actor_id=actor.id,
        )
        return shipment.status
