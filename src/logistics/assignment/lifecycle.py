"""Driver assignment lifecycle: accept, start, complete, cancel, fail.

Only the named driver works an assignment. Cancelling is a dispatch decision
and needs MANAGE_ASSIGNMENT on the shipment; failing may be reported by the
driver or an admin.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.assignment.assignment import ACTIVE_STATUSES, DriverAssignment
from logistics.domain import logistics
from logistics.shared.access import (
    Actor,
    Capability,
    authorize,
    authorize_assignment_driver,
)
from logistics.shared.errors import Conflict
from logistics.shipment.shipment import Shipment, ShipmentStatus, TrackingEventType

logger = structlog.get_logger(__name__)


@logistics.command(part_of="DriverAssignment")
class AcceptAssignment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    assignment_id = Identifier(required=True)


@logistics.command(part_of="DriverAssignment")
class StartAssignment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    assignment_id = Identifier(required=True)
    location = String(max_length=255)


@logistics.command(part_of="DriverAssignment")
class CompleteAssignment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    assignment_id = Identifier(required=True)
    notes = Text()


@logistics.command(part_of="DriverAssignment")
class CancelAssignment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    assignment_id = Identifier(required=True)
    reason = Text()


@logistics.command(part_of="DriverAssignment")
class FailAssignment:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    assignment_id = Identifier(required=True)
    reason = Text()


@logistics.command_handler(part_of=DriverAssignment)
class AssignmentLifecycleHandler:
    @handle(AcceptAssignment)
    def accept_assignment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(DriverAssignment)
        assignment = repo.get_assignment(command.assignment_id)
        authorize_assignment_driver(actor, assignment)

        others = [
            a
            for a in repo.in_slot(str(assignment.shipment_id), assignment.assignment_type, ACTIVE_STATUSES)
            if a.id != assignment.id
        ]
        if others:
            raise Conflict(f"Another {assignment.assignment_type} assignment is already active for this shipment")

        assignment.accept()
        repo.add(assignment)

        logger.info("Assignment accepted", assignment_id=str(assignment.id), driver_id=actor.id)
        return assignment.status

    @handle(StartAssignment)
    def start_assignment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(DriverAssignment)
        assignment = repo.get_assignment(command.assignment_id)
        authorize_assignment_driver(actor, assignment)

        assignment.start(location=command.location)

        shipments = current_domain.repository_for(Shipment)
        shipment = shipments.get_shipment(assignment.shipment_id)
        if assignment.is_pickup():
            shipment.record_event(
                TrackingEventType.PICKUP_STARTED,
                actor.id,
                location=command.location,
                description="Driver is on the way to collect the shipment",
                details={"assignment_id": str(assignment.id)},
            )
        elif shipment.status == ShipmentStatus.ARRIVED_AT_DESTINATION.value:
            shipment.transition_to(
                ShipmentStatus.OUT_FOR_DELIVERY,
                actor.id,
                location=command.location,
                details={"assignment_id": str(assignment.id)},
            )

        repo.add(assignment)
        shipments.add(shipment)

        logger.info(
            "Assignment started",
            assignment_id=str(assignment.id),
            assignment_type=assignment.assignment_type,
            shipment_status=shipment.status,
        )
        return assignment.status

    @handle(CompleteAssignment)
    def complete_assignment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(DriverAssignment)
        assignment = repo.get_assignment(command.assignment_id)
        authorize_assignment_driver(actor, assignment)

        assignment.complete(notes=command.notes)
        repo.add(assignment)

        logger.info("Assignment completed", assignment_id=str(assignment.id))
        return assignment.status

    @handle(CancelAssignment)
    def cancel_assignment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(DriverAssignment)
        assignment = repo.get_assignment(command.assignment_id)
        shipment = current_domain.repository_for(Shipment).get_shipment(assignment.shipment_id)
        authorize(actor, Capability.MANAGE_ASSIGNMENT, shipment)

        assignment.cancel(command.reason, actor.id)
        repo.add(assignment)

        logger.info(
            "Assignment cancelled",
            assignment_id=str(assignment.id),
            cancelled_by=actor.id,
            reason=command.reason,
        )
        return assignment.status

    @handle(FailAssignment)
    def fail_assignment(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(DriverAssignment)
        assignment = repo.get_assignment(command.assignment_id)
        authorize_assignment_driver(actor, assignment, allow_admin=True)

        assignment.fail(command.reason, actor.id)
        repo.add(assignment)

        logger.warning(
            "Assignment failed",
            assignment_id=str(assignment.id),
            failed_by=actor.id,
            reason=command.reason,
        )
        return assignment.status
