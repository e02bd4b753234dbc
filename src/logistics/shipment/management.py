"""Agent reassignment and deletion of shipments that never left booking."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from logistics.assignment.assignment import DriverAssignment
from logistics.domain import logistics
from logistics.payment.payment import Payment
from logistics.shared.access import Actor, Capability, authorize
from logistics.shared.errors import InvalidState
from logistics.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Shipment")
class ReassignAgent:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    agent_id = Identifier(required=True)


@logistics.command(part_of="Shipment")
class DeleteShipment:
    """Delete a shipment that has not progressed past booking.

    Shipments already referenced by a payment or a driver assignment are kept,
    so those records never point at a missing shipment.
    """

    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)


def _assert_unreferenced(shipment_id: str) -> None:
    if current_domain.repository_for(Payment).for_shipment(shipment_id):
        raise InvalidState("Shipments with payments cannot be deleted")
    if current_domain.repository_for(DriverAssignment).for_shipment(shipment_id):
        raise InvalidState("Shipments with driver assignments cannot be deleted")


@logistics.command_handler(part_of=Shipment)
class ShipmentManagementHandler:
    @handle(ReassignAgent)
    def reassign_agent(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.REASSIGN_AGENT, shipment)

        shipment.reassign_agent(command.agent_id, actor.id)
        repo.add(shipment)
        logger.info("Agent reassigned", shipment_id=str(shipment.id), agent_id=command.agent_id)

    @handle(DeleteShipment)
    def delete_shipment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.DELETE_SHIPMENT, shipment)
        shipment.assert_deletable()
        _assert_unreferenced(str(shipment.id))

        # Packages and ledger rows go with the shipment
        children = [*shipment.packages, *shipment.status_history, *shipment.tracking_events]
        for child in children:
            current_domain.repository_for(type(child))._dao.delete(child)
        repo._dao.delete(shipment)

        logger.info(
            "Shipment deleted",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            deleted_by=actor.id,
        )
