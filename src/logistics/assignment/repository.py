"""Repository for the DriverAssignment aggregate."""

from protean.exceptions import ObjectNotFoundError

from logistics.assignment.assignment import OPEN_STATUSES, DriverAssignment
from logistics.domain import logistics
from logistics.shared.errors import NotFound


@logistics.repository(part_of=DriverAssignment)
class DriverAssignmentRepository:
    def get_assignment(self, assignment_id: str) -> DriverAssignment:
        try:
            return self.get(assignment_id)
        except ObjectNotFoundError:
            raise NotFound("Assignment not found") from None

    def for_shipment(self, shipment_id: str) -> list[DriverAssignment]:
        return self.query.filter(shipment_id=shipment_id).order_by("assigned_at").all().items

    def in_slot(self, shipment_id: str, assignment_type: str, statuses=OPEN_STATUSES) -> list[DriverAssignment]:
        """Assignments of one type on one shipment whose status is in ``statuses``."""
        return (
            self.query.filter(
                shipment_id=shipment_id,
                assignment_type=assignment_type,
                status__in=list(statuses),
            )
            .all()
            .items
        )

    def for_driver(self, driver_id: str) -> list[DriverAssignment]:
        return self.query.filter(driver_id=driver_id).order_by("-assigned_at").all().items
