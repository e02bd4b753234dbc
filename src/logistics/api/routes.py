"""FastAPI routes for the logistics domain.

Callers identify themselves with ``X-Actor-Id`` and ``X-Actor-Role``; only
``/track`` is open to anonymous callers. Commands run synchronously while
holding the lock of every shipment (and assignment slot) they touch.
"""

import json

from fastapi import APIRouter, Depends, Header
from protean.utils.globals import current_domain

from logistics.api.schemas import (
    AddPhotoRequest,
    BookShipmentRequest,
    CloseAssignmentRequest,
    CompleteAssignmentRequest,
    CompletePaymentRequest,
    CreateAssignmentRequest,
    CreatePaymentRequest,
    FailPaymentRequest,
    PackageRequest,
    ReassignAgentRequest,
    RecordDeliveryRequest,
    RecordEventRequest,
    RecordPickupRequest,
    RefundPaymentRequest,
    StartAssignmentRequest,
    SuccessResponse,
    TransitionStatusRequest,
    UpdatePackageRequest,
)
from logistics.assignment import queries as assignment_queries
from logistics.assignment.assignment import DriverAssignment
from logistics.assignment.creation import CreateAssignment
from logistics.assignment.lifecycle import (
    AcceptAssignment,
    CancelAssignment,
    CompleteAssignment,
    FailAssignment,
    StartAssignment,
)
from logistics.payment import queries as payment_queries
from logistics.payment.payment import Payment
from logistics.payment.processing import (
    CancelPayment,
    CompletePayment,
    CreatePayment,
    FailPayment,
    RefundPayment,
)
from logistics.shared.access import Actor
from logistics.shared.errors import AccessDenied
from logistics.shared.locks import assignment_slot_key, process_serialized, shipment_key
from logistics.shipment import queries as shipment_queries
from logistics.shipment.booking import BookShipment
from logistics.shipment.handover import RecordDelivery, RecordPickup
from logistics.shipment.ledger import RecordTrackingEvent
from logistics.shipment.management import DeleteShipment, ReassignAgent
from logistics.shipment.packages import AddPackage, AddPackagePhoto, RemovePackage, UpdatePackage
from logistics.shipment.status import TransitionStatus


def current_actor(
    x_actor_id: str = Header(default=""),
    x_actor_role: str = Header(default=""),
) -> Actor:
    """Resolve the calling actor from the identity headers."""
    if not x_actor_id or not x_actor_role:
        raise AccessDenied("Actor identity is required")
    return Actor.of(x_actor_id, x_actor_role)


def _identity(actor: Actor) -> dict:
    return {"actor_id": actor.id, "actor_role": actor.role.value}


def _ok(data=None) -> SuccessResponse:
    return SuccessResponse(data=data)


# ---------------------------------------------------------------------------
# Shipment Router
# ---------------------------------------------------------------------------
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipment_router.post("", status_code=201, response_model=SuccessResponse)
async def book_shipment(body: BookShipmentRequest, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    """Book a new shipment with its packages."""
    command = BookShipment(
        **_identity(actor),
        sender_id=body.sender_id,
        receiver_id=body.receiver_id,
        agent_id=body.agent_id,
        pickup_address=body.pickup_address,
        delivery_address=body.delivery_address,
        packages=json.dumps([p.model_dump(exclude_none=True) for p in body.packages]),
        shipment_fee=body.shipment_fee,
        total_amount=body.total_amount,
        special_instructions=body.special_instructions,
        is_business_courier=body.is_business_courier,
        location=body.location,
    )
    shipment_id = current_domain.process(command, asynchronous=False)
    return _ok(shipment_queries.get_shipment(shipment_id, actor))


@shipment_router.get("", response_model=SuccessResponse)
async def list_shipments(actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(shipment_queries.list_shipments(actor))


@shipment_router.get("/{tracking_number}", response_model=SuccessResponse)
async def get_shipment(tracking_number: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    """Full shipment view, looked up by tracking number."""
    return _ok(shipment_queries.get_shipment_by_tracking_number(tracking_number, actor))


@shipment_router.put("/{shipment_id}/status", response_model=SuccessResponse)
async def transition_status(
    shipment_id: str, body: TransitionStatusRequest, actor: Actor = Depends(current_actor)
) -> SuccessResponse:
    command = TransitionStatus(
        **_identity(actor),
        shipment_id=shipment_id,
        target_status=body.status,
        location=body.location,
        notes=body.notes,
    )
    status = process_serialized(command, shipment_key(shipment_id))
    return _ok({"status": status})


@shipment_router.put("/{shipment_id}/pickup", response_model=SuccessResponse)
async def record_pickup(
    shipment_id: str, body: RecordPickupRequest, actor: Actor = Depends(current_actor)
) -> SuccessResponse:
    command = RecordPickup(
        **_identity(actor),
        shipment_id=shipment_id,
        location=body.location,
        notes=body.notes,
        photos=json.dumps(body.photos),
    )
    status = process_serialized(command, shipment_key(shipment_id))
    return _ok({"status": status})


@shipment_router.put("/{shipment_id}/deliver", response_model=SuccessResponse)
async def record_delivery(
    shipment_id: str, body: RecordDeliveryRequest, actor: Actor = Depends(current_actor)
) -> SuccessResponse:
    command = RecordDelivery(
        **_identity(actor),
        shipment_id=shipment_id,
        delivery_type=body.delivery_type,
        location=body.location,
        notes=body.notes,
        signature=body.signature,
        photos=json.dumps(body.photos),
    )
    status = process_serialized(command, shipment_key(shipment_id))
    return _ok({"status": status})


@shipment_router.post("/{shipment_id}/events", status_code=201, response_model=SuccessResponse)
async def record_tracking_event(
    shipment_id: str, body: RecordEventRequest, actor: Actor = Depends(current_actor)
) -> SuccessResponse:
    command = RecordTrackingEvent(
        **_identity(actor),
        shipment_id=shipment_id,
        event_type=body.event_type,
        location=body.location,
        description=body.description,
        details=json.dumps(body.details) if body.details else None,
        timestamp=body.timestamp,
    )
    sequence = process_serialized(command, shipment_key(shipment_id))
    return _ok({"sequence": sequence})


@shipment_router.get("/{shipment_id}/history", response_model=SuccessResponse)
async def tracking_history(shipment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(shipment_queries.tracking_history(shipment_id, actor))


@shipment_router.get("/{shipment_id}/assignments", response_model=SuccessResponse)
async def shipment_assignments(shipment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(assignment_queries.assignments_for_shipment(shipment_id, actor))


@shipment_router.get("/{shipment_id}/payments", response_model=SuccessResponse)
async def shipment_payments(shipment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(payment_queries.payments_for_shipment(shipment_id, actor))


@shipment_router.put("/{shipment_id}/agent", response_model=SuccessResponse)
async def reassign_agent(
    shipment_id: str, body: ReassignAgentRequest, actor: Actor = Depends(current_actor)
) -> SuccessResponse:
    command = ReassignAgent(**_identity(actor), shipment_id=shipment_id, agent_id=body.agent_id)
    process_serialized(command, shipment_key(shipment_id))
    return _ok({"agent_id": body.agent_id})


@shipment_router.delete("/{shipment_id}", response_model=SuccessResponse)
async def delete_shipment(shipment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    command = DeleteShipment(**_identity(actor), shipment_id=shipment_id)
    process_serialized(command, shipment_key(shipment_id))
    return _ok({"deleted": shipment_id})


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------
@shipment_router.post("/{shipment_id}/packages", status_code=201, response_model=SuccessResponse)
async def add_package(shipment_id: str, body: PackageRequest, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    command = AddPackage(
        **_identity(actor),
        shipment_id=shipment_id,
        package=json.dumps(body.model_dump(exclude_none=True)),
    )
    package_id = process_serialized(command, shipment_key(shipment_id))
    return _ok({"package_id": package_id})


@shipment_router.put("/{shipment_id}/packages/{package_id}", response_model=SuccessResponse)
async def update_package(
    shipment_id: str,
    package_id: str,
    body: UpdatePackageRequest,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    command = UpdatePackage(
        **_identity(actor),
        shipment_id=shipment_id,
        package_id=package_id,
        changes=json.dumps(body.model_dump(exclude_unset=True)),
    )
    process_serialized(command, shipment_key(shipment_id))
    return _ok({"package_id": package_id})


@shipment_router.delete("/{shipment_id}/packages/{package_id}", response_model=SuccessResponse)
async def remove_package(shipment_id: str, package_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    command = RemovePackage(**_identity(actor), shipment_id=shipment_id, package_id=package_id)
    process_serialized(command, shipment_key(shipment_id))
    return _ok({"deleted": package_id})


@shipment_router.post(
    "/{shipment_id}/packages/{package_id}/photos",
    status_code=201,
    response_model=SuccessResponse,
)
async def add_package_photo(
    shipment_id: str,
    package_id: str,
    body: AddPhotoRequest,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    command = AddPackagePhoto(
        **_identity(actor),
        shipment_id=shipment_id,
        package_id=package_id,
        photo=body.photo,
    )
    photo_count = process_serialized(command, shipment_key(shipment_id))
    return _ok({"package_id": package_id, "photo_count": photo_count})


# ---------------------------------------------------------------------------
# Assignment Router
# ---------------------------------------------------------------------------
assignment_router = APIRouter(prefix="/assignments", tags=["assignments"])


def _assignment_keys(assignment_id: str) -> tuple[str, str]:
    assignment = current_domain.repository_for(DriverAssignment).get_assignment(assignment_id)
    return (
        shipment_key(assignment.shipment_id),
        assignment_slot_key(assignment.shipment_id, assignment.assignment_type),
    )


@assignment_router.post("", status_code=201, response_model=SuccessResponse)
async def create_assignment(body: CreateAssignmentRequest, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    """Give a driver a pickup or delivery task for a shipment."""
    command = CreateAssignment(
        **_identity(actor),
        shipment_id=body.shipment_id,
        driver_id=body.driver_id,
        assignment_type=body.assignment_type,
        vehicle_id=body.vehicle_id,
        notes=body.notes,
        estimated_duration=body.estimated_duration,
    )
    assignment_id = process_serialized(
        command,
        shipment_key(body.shipment_id),
        assignment_slot_key(body.shipment_id, body.assignment_type),
    )
    return _ok(assignment_queries.get_assignment(assignment_id, actor))


@assignment_router.get("", response_model=SuccessResponse)
async def my_assignments(actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(assignment_queries.my_assignments(actor))


@assignment_router.get("/{assignment_id}", response_model=SuccessResponse)
async def get_assignment(assignment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(assignment_queries.get_assignment(assignment_id, actor))


@assignment_router.put("/{assignment_id}/accept", response_model=SuccessResponse)
async def accept_assignment(assignment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    command = AcceptAssignment(**_identity(actor), assignment_id=assignment_id)
    status = process_serialized(command, *_assignment_keys(assignment_id))
    return _ok({"status": status})


@assignment_router.put("/{assignment_id}/start", response_model=SuccessResponse)
async def start_assignment(
    assignment_id: str,
    body: StartAssignmentRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    command = StartAssignment(
        **_identity(actor),
        assignment_id=assignment_id,
        location=body.location if body else None,
    )
    status = process_serialized(command, *_assignment_keys(assignment_id))
    return _ok({"status": status})


@assignment_router.put("/{assignment_id}/complete", response_model=SuccessResponse)
async def complete_assignment(
    assignment_id: str,
    body: CompleteAssignmentRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    command = CompleteAssignment(
        **_identity(actor),
        assignment_id=assignment_id,
        notes=body.notes if body else None,
    )
    status = process_serialized(command, *_assignment_keys(assignment_id))
    return _ok({"status": status})


@assignment_router.put("/{assignment_id}/cancel", response_model=SuccessResponse)
async def cancel_assignment(
    assignment_id: str,
    body: CloseAssignmentRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    command = CancelAssignment(
        **_identity(actor),
        assignment_id=assignment_id,
        reason=body.reason if body else None,
    )
    status = process_serialized(command, *_assignment_keys(assignment_id))
    return _ok({"status": status})


@assignment_router.put("/{assignment_id}/fail", response_model=SuccessResponse)
async def fail_assignment(
    assignment_id: str,
    body: CloseAssignmentRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    command = FailAssignment(
        **_identity(actor),
        assignment_id=assignment_id,
        reason=body.reason if body else None,
    )
    status = process_serialized(command, *_assignment_keys(assignment_id))
    return _ok({"status": status})


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _payment_key(payment_id: str) -> str:
    payment = current_domain.repository_for(Payment).get_payment(payment_id)
    return shipment_key(payment.shipment_id)


@payment_router.post("", status_code=201, response_model=SuccessResponse)
async def create_payment(body: CreatePaymentRequest, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    command = CreatePayment(
        **_identity(actor),
        shipment_id=body.shipment_id,
        payment_type=body.payment_type,
        payment_method=body.payment_method,
        amount=body.amount,
        gateway_response=json.dumps(body.gateway_response) if body.gateway_response else None,
    )
    payment_id = process_serialized(command, shipment_key(body.shipment_id))
    return _ok(payment_queries.get_payment(payment_id, actor))


@payment_router.get("/{payment_id}", response_model=SuccessResponse)
async def get_payment(payment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    return _ok(payment_queries.get_payment(payment_id, actor))


@payment_router.put("/{payment_id}/complete", response_model=SuccessResponse)
async def complete_payment(
    payment_id: str,
    body: CompletePaymentRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    gateway = body.gateway_response if body else None
    command = CompletePayment(
        **_identity(actor),
        payment_id=payment_id,
        gateway_response=json.dumps(gateway) if gateway else None,
    )
    status = process_serialized(command, _payment_key(payment_id))
    return _ok({"status": status})


@payment_router.put("/{payment_id}/fail", response_model=SuccessResponse)
async def fail_payment(
    payment_id: str,
    body: FailPaymentRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> SuccessResponse:
    gateway = body.gateway_response if body else None
    command = FailPayment(
        **_identity(actor),
        payment_id=payment_id,
        reason=body.reason if body else None,
        gateway_response=json.dumps(gateway) if gateway else None,
    )
    status = process_serialized(command, _payment_key(payment_id))
    return _ok({"status": status})


@payment_router.put("/{payment_id}/cancel", response_model=SuccessResponse)
async def cancel_payment(payment_id: str, actor: Actor = Depends(current_actor)) -> SuccessResponse:
    command = CancelPayment(**_identity(actor), payment_id=payment_id)
    status = process_serialized(command, _payment_key(payment_id))
    return _ok({"status": status})


@payment_router.put("/{payment_id}/refund", response_model=SuccessResponse)
async def refund_payment(
    payment_id: str, body: RefundPaymentRequest, actor: Actor = Depends(current_actor)
) -> SuccessResponse:
    command = RefundPayment(**_identity(actor), payment_id=payment_id, reason=body.reason)
    status = process_serialized(command, _payment_key(payment_id))
    return _ok({"status": status})


# ---------------------------------------------------------------------------
# Public tracking
# ---------------------------------------------------------------------------
track_router = APIRouter(prefix="/track", tags=["tracking"])


@track_router.get("/{tracking_number}", response_model=SuccessResponse)
async def public_track(tracking_number: str) -> SuccessResponse:
    """Anonymous tracking: status, addresses and the public ledger only."""
    return _ok(shipment_queries.public_track(tracking_number))
