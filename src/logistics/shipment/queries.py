"""Read side for shipments: authenticated views, history and public tracking.

Reads go straight to the Shipment aggregate: its ledger is the tracking
record, so there is no separate read model to keep in sync.
"""

import json

from protean.utils.globals import current_domain

from logistics.shared.access import Actor, Capability, authorize
from logistics.shared.errors import NotFound
from logistics.shipment.shipment import Shipment


def _money(value) -> str | None:
    return None if value is None else f"{value:.2f}"


def package_view(package) -> dict:
    return {
        "package_id": str(package.id),
        "sub_tracking_id": package.sub_tracking_id,
        "qr_code": package.qr_code,
        "description": package.description,
        "weight": package.weight,
        "length": package.length,
        "width": package.width,
        "height": package.height,
        "volume": package.volume(),
        "dimensional_weight": package.dimensional_weight(),
        "chargeable_weight": package.chargeable_weight(),
        "photos": package.photo_list(),
        "special_instructions": package.special_instructions,
        "is_fragile": package.is_fragile,
        "insurance_amount": _money(package.insurance_amount),
        "declared_value": _money(package.declared_value),
    }


def tracking_event_view(event) -> dict:
    return {
        "event_type": event.event_type,
        "location": event.location,
        "description": event.description,
        "timestamp": event.timestamp,
        "created_by": event.created_by,
        "details": json.loads(event.details) if event.details else None,
        "sequence": event.sequence,
    }


def shipment_view(shipment: Shipment) -> dict:
    return {
        "shipment_id": str(shipment.id),
        "tracking_number": shipment.tracking_number,
        "master_tracking_id": shipment.master_tracking_id,
        "status": shipment.status,
        "payment_status": shipment.payment_status,
        "sender_id": shipment.sender_id,
        "receiver_id": shipment.receiver_id,
        "agent_id": shipment.agent_id,
        "driver_id": shipment.driver_id,
        "pickup_address": shipment.pickup_address,
        "delivery_address": shipment.delivery_address,
        "shipment_fee": _money(shipment.shipment_fee),
        "total_amount": _money(shipment.total_amount),
        "pickup_date": shipment.pickup_date,
        "delivery_date": shipment.delivery_date,
        "special_instructions": shipment.special_instructions,
        "is_business_courier": shipment.is_business_courier,
        "packages": [package_view(p) for p in shipment.ordered_packages()],
        "status_history": [
            {
                "status": r.status,
                "location": r.location,
                "notes": r.notes,
                "updated_by": r.updated_by,
                "timestamp": r.timestamp,
            }
            for r in shipment.history()
        ],
        "tracking_events": [tracking_event_view(e) for e in shipment.ledger()],
        "created_at": shipment.created_at,
        "updated_at": shipment.updated_at,
    }


def get_shipment(shipment_id: str, actor: Actor) -> dict:
    shipment = current_domain.repository_for(Shipment).get_shipment(shipment_id)
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)
    return shipment_view(shipment)


def get_shipment_by_tracking_number(tracking_number: str, actor: Actor) -> dict:
    shipment = current_domain.repository_for(Shipment).find_by_tracking_number(tracking_number)
    if shipment is None:
        raise NotFound("Shipment not found")
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)
    return shipment_view(shipment)


def tracking_history(shipment_id: str, actor: Actor) -> list[dict]:
    """All ledger entries for a shipment the actor may see, newest first."""
    shipment = current_domain.repository_for(Shipment).get_shipment(shipment_id)
    authorize(actor, Capability.VIEW_SHIPMENT, shipment)
    return [tracking_event_view(e) for e in shipment.ledger()]


def list_shipments(actor: Actor) -> list[dict]:
    """Shipments the actor is bound to (every shipment for admins)."""
    repo = current_domain.repository_for(Shipment)
    if actor.is_admin:
        shipments = repo.query.order_by("-created_at").all().items
    else:
        slot = f"{actor.role.value}_id"
        shipments = repo.for_actor(slot, actor.id)
    return [
        {
            "shipment_id": str(s.id),
            "tracking_number": s.tracking_number,
            "status": s.status,
            "payment_status": s.payment_status,
            "created_at": s.created_at,
        }
        for s in shipments
    ]


def public_track(tracking_number: str) -> dict:
    """Identity-free tracking for unauthenticated callers.

    Unknown tracking numbers raise ``NotFound`` with nothing but
    "Shipment not found".
    """
    shipment = current_domain.repository_for(Shipment).find_by_tracking_number(tracking_number)
    if shipment is None:
        raise NotFound("Shipment not found")
    return {
        "tracking_number": shipment.tracking_number,
        "status": shipment.status,
        "pickup_address": shipment.pickup_address,
        "delivery_address": shipment.delivery_address,
        "tracking_events": [e.public_view() for e in shipment.ledger()],
    }
