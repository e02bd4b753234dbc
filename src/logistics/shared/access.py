"""Access policy: who may see and change what.

Roles form a closed set, and each role holds a fixed set of capabilities.
An action is allowed when the actor's role holds the capability AND the
actor is an admin or is bound to the shipment in the slot that matches
their role (a sender must be the shipment's sender, a driver its driver).

Bindings are always read from the aggregate the handler just loaded, never
from a cached claim, so reassigning an agent or driver takes effect on the
very next command.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from logistics.shared.errors import AccessDenied, ValidationFailed

logger = structlog.get_logger(__name__)


class Role(Enum):
    SENDER = "sender"
    RECEIVER = "receiver"
    AGENT = "agent"
    DRIVER = "driver"
    ADMIN = "admin"


class Capability(Enum):
    VIEW_SHIPMENT = "view_shipment"
    BOOK_SHIPMENT = "book_shipment"
    TRANSITION_STATUS = "transition_status"
    RECORD_EVENT = "record_event"
    RECORD_HANDOVER = "record_handover"
    DELETE_SHIPMENT = "delete_shipment"
    EDIT_PACKAGE = "edit_package"
    DELETE_PACKAGE = "delete_package"
    ADD_PHOTO = "add_photo"
    REASSIGN_AGENT = "reassign_agent"
    MANAGE_ASSIGNMENT = "manage_assignment"
    WORK_ASSIGNMENT = "work_assignment"
    CREATE_PAYMENT = "create_payment"
    SETTLE_PAYMENT = "settle_payment"
    REFUND_PAYMENT = "refund_payment"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.SENDER: frozenset(
        {
            Capability.VIEW_SHIPMENT,
            Capability.BOOK_SHIPMENT,
            Capability.DELETE_SHIPMENT,
            Capability.EDIT_PACKAGE,
            Capability.DELETE_PACKAGE,
            Capability.ADD_PHOTO,
            Capability.CREATE_PAYMENT,
        }
    ),
    Role.RECEIVER: frozenset(
        {
            Capability.VIEW_SHIPMENT,
            Capability.CREATE_PAYMENT,
        }
    ),
    Role.AGENT: frozenset(
        {
            Capability.VIEW_SHIPMENT,
            Capability.BOOK_SHIPMENT,
            Capability.TRANSITION_STATUS,
            Capability.RECORD_EVENT,
            Capability.EDIT_PACKAGE,
            Capability.ADD_PHOTO,
            Capability.MANAGE_ASSIGNMENT,
            Capability.CREATE_PAYMENT,
            Capability.SETTLE_PAYMENT,
        }
    ),
    Role.DRIVER: frozenset(
        {
            Capability.VIEW_SHIPMENT,
            Capability.TRANSITION_STATUS,
            Capability.RECORD_EVENT,
            Capability.RECORD_HANDOVER,
            Capability.ADD_PHOTO,
            Capability.WORK_ASSIGNMENT,
            Capability.CREATE_PAYMENT,
            Capability.SETTLE_PAYMENT,
        }
    ),
    Role.ADMIN: frozenset(Capability),
}

# The shipment attribute an actor of each role must match to be "bound"
_BINDING_SLOT = {
    Role.SENDER: "sender_id",
    Role.RECEIVER: "receiver_id",
    Role.AGENT: "agent_id",
    Role.DRIVER: "driver_id",
}


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role

    @classmethod
    def of(cls, actor_id: str | None, role: str | Role | None) -> "Actor":
        """Build an actor from the identity provider's raw claim."""
        if not actor_id:
            raise AccessDenied("Actor identity is required")
        try:
            parsed = role if isinstance(role, Role) else Role(role)
        except ValueError:
            raise ValidationFailed(f"Unknown role: {role}") from None
        return cls(id=str(actor_id), role=parsed)

    @classmethod
    def from_command(cls, command) -> "Actor":
        return cls.of(command.actor_id, command.actor_role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def can(actor: Actor, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[actor.role]


def is_bound(actor: Actor, shipment) -> bool:
    """True when the actor occupies the shipment slot that matches their role."""
    slot = _BINDING_SLOT.get(actor.role)
    if slot is None:
        return False
    bound_id = getattr(shipment, slot, None)
    return bound_id is not None and str(bound_id) == actor.id


def authorize(actor: Actor, capability: Capability, shipment=None) -> None:
    """Raise ``AccessDenied`` unless the actor may exercise ``capability``.

    With a shipment, the actor must also be an admin or bound to it.
    """
    if not can(actor, capability):
        logger.warning("Capability denied", actor_id=actor.id, role=actor.role.value, capability=capability.value)
        raise AccessDenied(f"Role {actor.role.value} may not {capability.value.replace('_', ' ')}")

    if shipment is None or actor.is_admin:
        return

    if not is_bound(actor, shipment):
        logger.warning(
            "Actor not bound to shipment",
            actor_id=actor.id,
            role=actor.role.value,
            capability=capability.value,
            shipment_id=str(shipment.id),
        )
        raise AccessDenied("You are not authorized to access this shipment")


def authorize_assignment_driver(actor: Actor, assignment, allow_admin: bool = False) -> None:
    """Only the driver named on the assignment may work it (admins optionally)."""
    if allow_admin and actor.is_admin:
        return
    if not can(actor, Capability.WORK_ASSIGNMENT) or str(assignment.driver_id) != actor.id:
        logger.warning(
            "Actor is not the assigned driver",
            actor_id=actor.id,
            assignment_id=str(assignment.id),
        )
        raise AccessDenied("Only the assigned driver may perform this action")
