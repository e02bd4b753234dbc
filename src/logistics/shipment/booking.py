"""Shipment booking: command and handler.

Senders book for themselves. Agents book walk-in shipments at their counter
and become the shipment's agent. Admins book on anyone's behalf.
"""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.access import Actor, Capability, Role, authorize
from logistics.shared.errors import ValidationFailed
from logistics.shared.identifiers import get_identifier_generator
from logistics.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Shipment")
class BookShipment:
    """Book a new shipment with its packages."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    sender_id = Identifier()
    receiver_id = Identifier(required=True)
    agent_id = Identifier()
    pickup_address = Text(required=True)
    delivery_address = Text(required=True)
    packages = Text(required=True)  # JSON list of package dicts
    shipment_fee = Float(min_value=0.0)
    total_amount = Float(min_value=0.0)
    special_instructions = Text()
    is_business_courier = Boolean(default=False)
    location = String(max_length=255)


def _resolve_parties(actor: Actor, command) -> tuple[str, str | None]:
    """Return (sender_id, agent_id) for the booking actor."""
    if actor.role == Role.SENDER:
        return actor.id, command.agent_id
    if not command.sender_id:
        raise ValidationFailed("sender_id: required when booking on behalf of a sender")
    if actor.role == Role.AGENT:
        return command.sender_id, actor.id
    return command.sender_id, command.agent_id


@logistics.command_handler(part_of=Shipment)
class BookShipmentHandler:
    @handle(BookShipment)
    def book_shipment(self, command):
        actor = Actor.from_command(command)
        authorize(actor, Capability.BOOK_SHIPMENT)
        sender_id, agent_id = _resolve_parties(actor, command)

        packages_data = json.loads(command.packages) if isinstance(command.packages, str) else command.packages

        repo = current_domain.repository_for(Shipment)
        generator = get_identifier_generator()
        shipment = Shipment.book(
            tracking_number=generator.tracking_number(repo.tracking_number_taken),
            master_tracking_id=generator.master_tracking_id(repo.master_tracking_id_taken),
            sender_id=sender_id,
            receiver_id=command.receiver_id,
            pickup_address=command.pickup_address,
            delivery_address=command.delivery_address,
            packages_data=packages_data,
            booked_by=actor.id,
            agent_id=agent_id,
            shipment_fee=command.shipment_fee,
            total_amount=command.total_amount,
            special_instructions=command.special_instructions,
            is_business_courier=command.is_business_courier,
            location=command.location,
        )
        repo.add(shipment)

        logger.info(
            "Shipment booked",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            booked_by=actor.id,
            package_count=len(packages_data),
        )
        return str(shipment.id)
