"""Read side for driver assignments."""

from protean.utils.globals import current_domain

from logistics.assignment.assignment import DriverAssignment
from logistics.shared.access import Actor, Capability, Role, authorize
from logistics.shipment.shipment import Shipment


def assignment_view(assignment: DriverAssignment) -> dict:
    return {
        "assignment_id": str(assignment.id),
        "shipment_id": str(assignment.shipment_id),
        "driver_id": str(assignment.driver_id),
        "vehicle_id": assignment.vehicle_id,
        "assignment_type": assignment.assignment_type,
        "status": assignment.status,
        "assigned_at": assignment.assigned_at,
        "accepted_at": assignment.accepted_at,
        "started_at": assignment.started_at,
        "completed_at": assignment.completed_at,
        "notes": assignment.notes,
        "location": assignment.location,
        "estimated_duration": assignment.estimated_duration,
        "closing_reason": assignment.closing_reason,
    }


def _authorize_view(actor: Actor, assignment: DriverAssignment) -> None:
    # The named driver always sees their own task, even after being unbound
    if actor.role == Role.DRIVER and str(assignment.driver_id) == actor.id:
        return
    shipment = current_domain.repository_for(Shipment).get_shipment(assignment.shipment_id)
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)


def get_assignment(assignment_id: str, actor: Actor) -> dict:
    assignment = current_domain.repository_for(DriverAssignment).get_assignment(assignment_id)
    _authorize_view(actor, assignment)
    return assignment_view(assignment)


def assignments_for_shipment(shipment_id: str, actor: Actor) -> list[dict]:
    shipment = current_domain.repository_for(Shipment).get_shipment(shipment_id)
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)
    repo = current_domain.repository_for(DriverAssignment)
    return [assignment_view(a) for a in repo.for_shipment(shipment_id)]


def my_assignments(actor: Actor) -> list[dict]:
    """A driver's own tasks, newest first."""
    authorize(actor, Capability.WORK_ASSIGNMENT)
    repo = current_domain.repository_for(DriverAssignment)
    return [assignment_view(a) for a in repo.for_driver(actor.id)]
