"""Driver assignment creation: command and handler.

At most one open assignment may exist per (shipment, type). The API layer
holds the slot lock around this command so the check-then-create below
cannot interleave with a concurrent create for the same slot.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from logistics.assignment.assignment import AssignmentType, DriverAssignment
from logistics.domain import logistics
from logistics.shared.access import Actor, Capability, authorize
from logistics.shared.errors import Conflict, InvalidState, ValidationFailed
from logistics.shipment.shipment import Shipment, ShipmentStatus

logger = structlog.get_logger(__name__)


@logistics.command(part_of="DriverAssignment")
class CreateAssignment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    assignment_type = String(required=True, max_length=20)
    vehicle_id = Identifier()
    notes = Text()
    estimated_duration = Integer(min_value=0)


def parse_assignment_type(value) -> AssignmentType:
    try:
        return AssignmentType(value)
    except ValueError:
        raise ValidationFailed(f"assignment_type: unknown assignment type '{value}'") from None


@logistics.command_handler(part_of=DriverAssignment)
class CreateAssignmentHandler:
    @handle(CreateAssignment)
    def create_assignment(self, command):
        actor = Actor.from_command(command)
        assignment_type = parse_assignment_type(command.assignment_type)

        shipments = current_domain.repository_for(Shipment)
        shipment = shipments.get_shipment(command.shipment_id)
        authorize(actor, Capability.MANAGE_ASSIGNMENT, shipment)

        if shipment.is_closed():
            raise InvalidState(f"Cannot assign a driver to a {shipment.status} shipment")

        repo = current_domain.repository_for(DriverAssignment)
        if repo.in_slot(str(shipment.id), assignment_type.value):
            raise Conflict(f"An active {assignment_type.value} assignment already exists for this shipment")

        assignment = DriverAssignment.create(
            shipment_id=str(shipment.id),
            driver_id=command.driver_id,
            assignment_type=assignment_type.value,
            assigned_by=actor.id,
            vehicle_id=command.vehicle_id,
            notes=command.notes,
            estimated_duration=command.estimated_duration,
        )

        shipment.bind_driver(command.driver_id)
        if assignment_type == AssignmentType.PICKUP and shipment.status == ShipmentStatus.BOOKED.value:
            shipment.transition_to(
                ShipmentStatus.AWAITING_PICKUP,
                actor.id,
                notes="Driver assigned for pickup",
            )

        repo.add(assignment)
        shipments.add(shipment)

        logger.info(
            "Driver assignment created",
            assignment_id=str(assignment.id),
            shipment_id=str(shipment.id),
            driver_id=command.driver_id,
            assignment_type=assignment_type.value,
        )
        return str(assignment.id)
