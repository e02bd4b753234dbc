"""DriverAssignment aggregate: a driver's pickup or delivery task.

State Machine:
    PENDING → ACCEPTED → IN_PROGRESS → COMPLETED
    {PENDING, ACCEPTED, IN_PROGRESS} → CANCELLED | FAILED

Each guarded action checks the current status before touching anything, so a
rejected call leaves the assignment exactly as it was. The assignment type is
fixed at creation.
"""

from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from logistics.assignment.events import (
    AssignmentAccepted,
    AssignmentCancelled,
    AssignmentCompleted,
    AssignmentCreated,
    AssignmentFailed,
    AssignmentStarted,
)
from logistics.domain import logistics
from logistics.shared.clock import now
from logistics.shared.errors import InvalidState


class AssignmentType(Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class AssignmentStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    AssignmentStatus.PENDING: {
        AssignmentStatus.ACCEPTED,
        AssignmentStatus.CANCELLED,
        AssignmentStatus.FAILED,
    },
    AssignmentStatus.ACCEPTED: {
        AssignmentStatus.IN_PROGRESS,
        AssignmentStatus.CANCELLED,
        AssignmentStatus.FAILED,
    },
    AssignmentStatus.IN_PROGRESS: {
        AssignmentStatus.COMPLETED,
        AssignmentStatus.CANCELLED,
        AssignmentStatus.FAILED,
    },
    AssignmentStatus.COMPLETED: set(),  # terminal
    AssignmentStatus.CANCELLED: set(),  # terminal
    AssignmentStatus.FAILED: set(),  # terminal
}

# Statuses that occupy the (shipment, type) slot
OPEN_STATUSES = (
    AssignmentStatus.PENDING.value,
    AssignmentStatus.ACCEPTED.value,
    AssignmentStatus.IN_PROGRESS.value,
)
ACTIVE_STATUSES = (
    AssignmentStatus.ACCEPTED.value,
    AssignmentStatus.IN_PROGRESS.value,
)


@logistics.aggregate
class DriverAssignment:
    shipment_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    vehicle_id = Identifier()
    assignment_type = String(required=True, choices=AssignmentType)
    status = String(
        choices=AssignmentStatus,
        default=AssignmentStatus.PENDING.value,
    )
    assigned_at = DateTime()
    accepted_at = DateTime()
    started_at = DateTime()
    completed_at = DateTime()
    notes = Text()
    location = String(max_length=255)
    estimated_duration = Integer(min_value=0)  # minutes
    closing_reason = Text()

    @invariant.post
    def accepted_assignments_have_acceptance_time(self):
        if self.status in (
            AssignmentStatus.ACCEPTED.value,
            AssignmentStatus.IN_PROGRESS.value,
            AssignmentStatus.COMPLETED.value,
        ) and not self.accepted_at:
            raise ValidationError({"accepted_at": ["Accepted assignments must record when they were accepted"]})

    @invariant.post
    def started_assignments_have_start_time(self):
        if self.status in (AssignmentStatus.IN_PROGRESS.value, AssignmentStatus.COMPLETED.value) and not self.started_at:
            raise ValidationError({"started_at": ["Started assignments must record when they were started"]})

    @invariant.post
    def completed_assignments_have_completion_time(self):
        if self.status == AssignmentStatus.COMPLETED.value and not self.completed_at:
            raise ValidationError({"completed_at": ["Completed assignments must record when they were completed"]})

    @classmethod
    def create(
        cls,
        shipment_id: str,
        driver_id: str,
        assignment_type: str,
        assigned_by: str,
        vehicle_id: str | None = None,
        notes: str | None = None,
        estimated_duration: int | None = None,
    ):
        at = now()
        assignment = cls(
            shipment_id=shipment_id,
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            assignment_type=assignment_type,
            status=AssignmentStatus.PENDING.value,
            assigned_at=at,
            notes=notes,
            estimated_duration=estimated_duration,
        )
        assignment.raise_(
            AssignmentCreated(
                assignment_id=str(assignment.id),
                shipment_id=shipment_id,
                driver_id=driver_id,
                assignment_type=assignment.assignment_type,
                vehicle_id=vehicle_id,
                estimated_duration=estimated_duration,
                assigned_by=assigned_by,
                assigned_at=at,
            )
        )
        return assignment

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_pickup(self) -> bool:
        return self.assignment_type == AssignmentType.PICKUP.value

    def is_delivery(self) -> bool:
        return self.assignment_type == AssignmentType.DELIVERY.value

    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: AssignmentStatus, action: str) -> None:
        current = AssignmentStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidState(f"Cannot {action} an assignment that is {current.value}")

    # -------------------------------------------------------------------
    # Driver workflow
    # -------------------------------------------------------------------
    def accept(self) -> None:
        if self.status != AssignmentStatus.PENDING.value:
            raise InvalidState(f"Cannot accept an assignment that is {self.status}")

        at = now()
        with atomic_change(self):
            self.status = AssignmentStatus.ACCEPTED.value
            self.accepted_at = at
        self.raise_(
            AssignmentAccepted(
                assignment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                driver_id=str(self.driver_id),
                accepted_at=at,
            )
        )

    def start(self, location: str | None = None) -> None:
        if self.status != AssignmentStatus.ACCEPTED.value:
            raise InvalidState(f"Cannot start an assignment that is {self.status}")

        at = now()
        with atomic_change(self):
            self.status = AssignmentStatus.IN_PROGRESS.value
            self.started_at = at
            if location:
                self.location = location
        self.raise_(
            AssignmentStarted(
                assignment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                driver_id=str(self.driver_id),
                assignment_type=self.assignment_type,
                location=location,
                started_at=at,
            )
        )

    def complete(self, notes: str | None = None) -> None:
        if self.status != AssignmentStatus.IN_PROGRESS.value:
            raise InvalidState(f"Cannot complete an assignment that is {self.status}")

        at = now()
        with atomic_change(self):
            self.status = AssignmentStatus.COMPLETED.value
            self.completed_at = at
            if notes:
                self.notes = notes
        self.raise_(
            AssignmentCompleted(
                assignment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                driver_id=str(self.driver_id),
                completed_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Abandonment
    # -------------------------------------------------------------------
    def cancel(self, reason: str | None, cancelled_by: str) -> None:
        self._assert_can_transition(AssignmentStatus.CANCELLED, "cancel")
        at = now()
        self.status = AssignmentStatus.CANCELLED.value
        self.closing_reason = reason
        self.raise_(
            AssignmentCancelled(
                assignment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=at,
            )
        )

    def fail(self, reason: str | None, failed_by: str) -> None:
        self._assert_can_transition(AssignmentStatus.FAILED, "fail")
        at = now()
        self.status = AssignmentStatus.FAILED.value
        self.closing_reason = reason
        self.raise_(
            AssignmentFailed(
                assignment_id=str(self.id),
                shipment_id=str(self.shipment_id),
                reason=reason,
                failed_by=failed_by,
                failed_at=at,
            )
        )
