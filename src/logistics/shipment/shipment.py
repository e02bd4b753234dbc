"""Shipment aggregate (CQRS): the core of the logistics domain.

The Shipment aggregate is the single source of truth for where a parcel is in
its journey. Its packages, status history and tracking ledger are child
entities, so a status change, its history record and its ledger entry are
always persisted together.

State Machine (strict policy):
    BOOKED → AWAITING_PICKUP → PICKED_UP → RECEIVED_AT_AGENT → IN_TRANSIT
    IN_TRANSIT ⇄ ARRIVED_AT_HUB → DISPATCHED_TO_DESTINATION → ARRIVED_AT_DESTINATION
    ARRIVED_AT_DESTINATION ⇄ OUT_FOR_DELIVERY → {DELIVERED, PICKED_UP_BY_RECEIVER}
    any post-pickup, non-terminal status → RETURNED

The tracking ledger is append-only: entries are never edited or removed, and
each carries a per-shipment sequence number in causal order.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import (
    Boolean,
    DateTime,
    Decimal,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from logistics.domain import logistics
from logistics.shared.clock import now
from logistics.shared.errors import InvalidState, InvalidTransition, NotFound, ValidationFailed
from logistics.shared.identifiers import get_identifier_generator, sub_tracking_id
from logistics.shared.money import to_money
from logistics.shipment.events import (
    AgentReassigned,
    DriverBound,
    PackageAdded,
    PackagePhotoAdded,
    PackageRemoved,
    PackageUpdated,
    ShipmentBooked,
    ShipmentPaymentStatusChanged,
    ShipmentStatusChanged,
    TrackingEventRecorded,
)

VOLUMETRIC_DIVISOR = 5000


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ShipmentStatus(Enum):
    BOOKED = "booked"
    AWAITING_PICKUP = "awaiting_pickup"
    PICKED_UP = "picked_up"
    RECEIVED_AT_AGENT = "received_at_agent"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_HUB = "arrived_at_hub"
    DISPATCHED_TO_DESTINATION = "dispatched_to_destination"
    ARRIVED_AT_DESTINATION = "arrived_at_destination"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    PICKED_UP_BY_RECEIVER = "picked_up_by_receiver"
    RETURNED = "returned"


class PaymentState(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class TrackingEventType(Enum):
    BOOKED = "booked"
    PICKUP_SCHEDULED = "pickup_scheduled"
    PICKUP_STARTED = "pickup_started"
    PICKUP_COMPLETED = "pickup_completed"
    RECEIVED_AT_AGENT = "received_at_agent"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_HUB = "arrived_at_hub"
    DISPATCHED = "dispatched"
    ARRIVED_AT_DESTINATION = "arrived_at_destination"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERY_ATTEMPTED = "delivery_attempted"
    DELIVERED = "delivered"
    PICKED_UP_BY_RECEIVER = "picked_up_by_receiver"
    RETURN_INITIATED = "return_initiated"
    RETURNED = "returned"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"


_VALID_TRANSITIONS = {
    ShipmentStatus.BOOKED: {ShipmentStatus.AWAITING_PICKUP, ShipmentStatus.PICKED_UP},
    ShipmentStatus.AWAITING_PICKUP: {ShipmentStatus.PICKED_UP},
    ShipmentStatus.PICKED_UP: {
        ShipmentStatus.RECEIVED_AT_AGENT,
        ShipmentStatus.IN_TRANSIT,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.RECEIVED_AT_AGENT: {ShipmentStatus.IN_TRANSIT, ShipmentStatus.RETURNED},
    ShipmentStatus.IN_TRANSIT: {
        ShipmentStatus.ARRIVED_AT_HUB,
        ShipmentStatus.DISPATCHED_TO_DESTINATION,
        ShipmentStatus.ARRIVED_AT_DESTINATION,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.ARRIVED_AT_HUB: {
        ShipmentStatus.IN_TRANSIT,
        ShipmentStatus.DISPATCHED_TO_DESTINATION,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.DISPATCHED_TO_DESTINATION: {
        ShipmentStatus.ARRIVED_AT_DESTINATION,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.ARRIVED_AT_DESTINATION: {
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.PICKED_UP_BY_RECEIVER,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.OUT_FOR_DELIVERY: {
        ShipmentStatus.ARRIVED_AT_DESTINATION,  # failed attempt, back to the depot
        ShipmentStatus.DELIVERED,
        ShipmentStatus.PICKED_UP_BY_RECEIVER,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.DELIVERED: set(),  # terminal
    ShipmentStatus.PICKED_UP_BY_RECEIVER: set(),  # terminal
    ShipmentStatus.RETURNED: set(),  # terminal
}

STATUS_EVENT_TYPES = {
    ShipmentStatus.BOOKED: TrackingEventType.BOOKED,
    ShipmentStatus.AWAITING_PICKUP: TrackingEventType.PICKUP_SCHEDULED,
    ShipmentStatus.PICKED_UP: TrackingEventType.PICKUP_COMPLETED,
    ShipmentStatus.RECEIVED_AT_AGENT: TrackingEventType.RECEIVED_AT_AGENT,
    ShipmentStatus.IN_TRANSIT: TrackingEventType.IN_TRANSIT,
    ShipmentStatus.ARRIVED_AT_HUB: TrackingEventType.ARRIVED_AT_HUB,
    ShipmentStatus.DISPATCHED_TO_DESTINATION: TrackingEventType.DISPATCHED,
    ShipmentStatus.ARRIVED_AT_DESTINATION: TrackingEventType.ARRIVED_AT_DESTINATION,
    ShipmentStatus.OUT_FOR_DELIVERY: TrackingEventType.OUT_FOR_DELIVERY,
    ShipmentStatus.DELIVERED: TrackingEventType.DELIVERED,
    ShipmentStatus.PICKED_UP_BY_RECEIVER: TrackingEventType.PICKED_UP_BY_RECEIVER,
    ShipmentStatus.RETURNED: TrackingEventType.RETURNED,
}

_PICKUP_READY = {ShipmentStatus.BOOKED, ShipmentStatus.AWAITING_PICKUP}
_DELIVERY_READY = {ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.ARRIVED_AT_DESTINATION}
_COMPLETED = {ShipmentStatus.DELIVERED, ShipmentStatus.PICKED_UP_BY_RECEIVER}
_DELIVERY_KINDS = {ShipmentStatus.DELIVERED, ShipmentStatus.PICKED_UP_BY_RECEIVER}

_PACKAGE_EDITABLE_FIELDS = (
    "description",
    "weight",
    "length",
    "width",
    "height",
    "special_instructions",
    "is_fragile",
    "insurance_amount",
    "declared_value",
)


def parse_status(value) -> ShipmentStatus:
    try:
        return value if isinstance(value, ShipmentStatus) else ShipmentStatus(value)
    except ValueError:
        raise ValidationFailed(f"Unknown shipment status: {value}") from None


def parse_event_type(value) -> TrackingEventType:
    try:
        return value if isinstance(value, TrackingEventType) else TrackingEventType(value)
    except ValueError:
        raise ValidationFailed(f"Unknown tracking event type: {value}") from None


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _describe(status: ShipmentStatus) -> str:
    return f"Shipment status updated to {status.value.replace('_', ' ')}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@logistics.entity(part_of="Shipment")
class Package:
    """A physical parcel travelling as part of the shipment."""

    sub_tracking_id = String(required=True, max_length=40)
    ordinal = Integer(required=True, min_value=0)
    qr_code = String(max_length=80)
    description = String(required=True, max_length=500)
    weight = Float(required=True, min_value=0.0)
    length = Float(min_value=0.0)
    width = Float(min_value=0.0)
    height = Float(min_value=0.0)
    photos = Text()  # JSON list of opaque photo references, append-only
    special_instructions = Text()
    is_fragile = Boolean(default=False)
    insurance_amount = Decimal(min_value=0, precision=12, scale=2)
    declared_value = Decimal(min_value=0, precision=12, scale=2)
    created_at = DateTime()

    def photo_list(self) -> list[str]:
        return json.loads(self.photos) if self.photos else []

    def volume(self) -> float:
        if not (self.length and self.width and self.height):
            return 0.0
        return self.length * self.width * self.height

    def dimensional_weight(self) -> float:
        return self.volume() / VOLUMETRIC_DIVISOR

    def chargeable_weight(self) -> float:
        return max(self.weight or 0.0, self.dimensional_weight())


@logistics.entity(part_of="Shipment")
class StatusRecord:
    """One row per accepted status change, with free-text notes."""

    status = String(required=True, choices=ShipmentStatus)
    location = String(max_length=255)
    notes = Text()
    updated_by = Identifier(required=True)
    timestamp = DateTime(required=True)
    sequence = Integer(required=True, min_value=1)


@logistics.entity(part_of="Shipment")
class TrackingEvent:
    """An immutable entry in the shipment's tracking ledger."""

    event_type = String(required=True, choices=TrackingEventType)
    location = String(max_length=255)
    description = Text()
    timestamp = DateTime(required=True)
    created_by = Identifier()
    details = Text()  # JSON object
    sequence = Integer(required=True, min_value=1)

    def is_pickup_event(self) -> bool:
        return self.event_type in (
            TrackingEventType.PICKUP_SCHEDULED.value,
            TrackingEventType.PICKUP_STARTED.value,
            TrackingEventType.PICKUP_COMPLETED.value,
        )

    def is_delivery_event(self) -> bool:
        return self.event_type in (
            TrackingEventType.OUT_FOR_DELIVERY.value,
            TrackingEventType.DELIVERY_ATTEMPTED.value,
            TrackingEventType.DELIVERED.value,
            TrackingEventType.PICKED_UP_BY_RECEIVER.value,
        )

    def is_payment_event(self) -> bool:
        return self.event_type in (
            TrackingEventType.PAYMENT_RECEIVED.value,
            TrackingEventType.PAYMENT_FAILED.value,
        )

    def is_return_event(self) -> bool:
        return self.event_type in (
            TrackingEventType.RETURN_INITIATED.value,
            TrackingEventType.RETURNED.value,
        )

    def public_view(self) -> dict:
        """The identity-free projection exposed to unauthenticated callers."""
        return {
            "event_type": self.event_type,
            "location": self.location,
            "description": self.description,
            "timestamp": self.timestamp,
        }


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@logistics.aggregate
class Shipment:
    tracking_number = String(required=True, max_length=20, unique=True)
    master_tracking_id = String(required=True, max_length=20, unique=True)
    sender_id = Identifier(required=True)
    receiver_id = Identifier(required=True)
    agent_id = Identifier()
    driver_id = Identifier()
    pickup_address = Text(required=True)
    delivery_address = Text(required=True)
    status = String(
        choices=ShipmentStatus,
        default=ShipmentStatus.BOOKED.value,
    )
    payment_status = String(
        choices=PaymentState,
        default=PaymentState.PENDING.value,
    )
    shipment_fee = Decimal(min_value=0, precision=12, scale=2)
    total_amount = Decimal(min_value=0, precision=12, scale=2)
    pickup_date = DateTime()
    delivery_date = DateTime()
    special_instructions = Text()
    is_business_courier = Boolean(default=False)
    package_sequence = Integer(default=0, min_value=0)
    event_sequence = Integer(default=0, min_value=0)
    status_sequence = Integer(default=0, min_value=0)
    packages = HasMany(Package)
    status_history = HasMany(StatusRecord)
    tracking_events = HasMany(TrackingEvent)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def book(
        cls,
        tracking_number: str,
        master_tracking_id: str,
        sender_id: str,
        receiver_id: str,
        pickup_address: str,
        delivery_address: str,
        packages_data: list[dict],
        booked_by: str,
        agent_id: str | None = None,
        shipment_fee=None,
        total_amount=None,
        special_instructions: str | None = None,
        is_business_courier: bool = False,
        location: str | None = None,
    ):
        """Book a new shipment with at least one package."""
        if not packages_data:
            raise ValidationFailed("packages: at least one package is required")

        at = now()
        fee = to_money(shipment_fee, "shipment_fee")
        shipment = cls(
            tracking_number=tracking_number,
            master_tracking_id=master_tracking_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            agent_id=agent_id,
            pickup_address=pickup_address,
            delivery_address=delivery_address,
            status=ShipmentStatus.BOOKED.value,
            payment_status=PaymentState.PENDING.value,
            shipment_fee=fee,
            total_amount=to_money(total_amount, "total_amount") if total_amount is not None else fee,
            special_instructions=special_instructions,
            is_business_courier=is_business_courier,
            package_sequence=0,
            event_sequence=0,
            status_sequence=0,
            created_at=at,
            updated_at=at,
        )
        for package_data in packages_data:
            shipment._register_package(package_data, booked_by, at)

        shipment._append_status(ShipmentStatus.BOOKED, booked_by, location, "Shipment booked", at)
        shipment._append_event(
            TrackingEventType.BOOKED,
            booked_by,
            location=location,
            description="Shipment booked",
            at=at,
        )
        shipment.raise_(
            ShipmentBooked(
                shipment_id=str(shipment.id),
                tracking_number=tracking_number,
                master_tracking_id=master_tracking_id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                agent_id=agent_id,
                package_count=len(packages_data),
                booked_by=booked_by,
                booked_at=at,
            )
        )
        return shipment

    # -------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------
    def can_be_picked_up(self) -> bool:
        return ShipmentStatus(self.status) in _PICKUP_READY

    def can_be_delivered(self) -> bool:
        return ShipmentStatus(self.status) in _DELIVERY_READY

    def is_completed(self) -> bool:
        return ShipmentStatus(self.status) in _COMPLETED

    def is_returned(self) -> bool:
        return ShipmentStatus(self.status) == ShipmentStatus.RETURNED

    def is_closed(self) -> bool:
        return self.is_completed() or self.is_returned()

    # -------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------
    def _latest_event_timestamp(self) -> datetime | None:
        stamps = [_as_utc(e.timestamp) for e in (self.tracking_events or [])]
        return max(stamps) if stamps else None

    def _append_event(
        self,
        event_type: TrackingEventType,
        actor_id: str | None,
        location: str | None = None,
        description: str | None = None,
        details: dict | None = None,
        at: datetime | None = None,
    ) -> TrackingEvent:
        at = at or now()
        self.event_sequence = (self.event_sequence or 0) + 1
        entry = TrackingEvent(
            event_type=event_type.value,
            location=location,
            description=description,
            timestamp=at,
            created_by=actor_id,
            details=json.dumps(details) if details else None,
            sequence=self.event_sequence,
        )
        self.add_tracking_events(entry)
        self.updated_at = max(at, _as_utc(self.updated_at)) if self.updated_at else at
        self.raise_(
            TrackingEventRecorded(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                event_type=event_type.value,
                sequence=entry.sequence,
                location=location,
                description=description,
                recorded_by=actor_id,
                recorded_at=at,
            )
        )
        return entry

    def record_event(
        self,
        event_type,
        actor_id: str,
        location: str | None = None,
        description: str | None = None,
        details: dict | None = None,
        timestamp: datetime | None = None,
    ) -> TrackingEvent:
        """Append a ledger entry that does not change the shipment's status.

        An explicit timestamp must lie between the latest entry already in the
        ledger and the current time, so display order always agrees with
        insertion order.
        """
        kind = parse_event_type(event_type)
        if timestamp is not None:
            timestamp = _as_utc(timestamp)
            latest = self._latest_event_timestamp()
            if latest is not None and timestamp < latest:
                raise ValidationFailed("timestamp: cannot be earlier than the latest tracking event")
            if timestamp > _as_utc(now()):
                raise ValidationFailed("timestamp: cannot be in the future")
        return self._append_event(kind, actor_id, location, description, details, timestamp)

    def ledger(self) -> list[TrackingEvent]:
        """Tracking events, newest first (ties broken by sequence)."""
        return sorted(
            self.tracking_events or [],
            key=lambda e: (_as_utc(e.timestamp), e.sequence),
            reverse=True,
        )

    def _append_status(
        self,
        status: ShipmentStatus,
        actor_id: str,
        location: str | None,
        notes: str | None,
        at: datetime,
    ) -> StatusRecord:
        self.status_sequence = (self.status_sequence or 0) + 1
        record = StatusRecord(
            status=status.value,
            location=location,
            notes=notes,
            updated_by=actor_id,
            timestamp=at,
            sequence=self.status_sequence,
        )
        self.add_status_history(record)
        return record

    def history(self) -> list[StatusRecord]:
        """Status rows, newest first (ties broken by sequence)."""
        return sorted(
            self.status_history or [],
            key=lambda r: (_as_utc(r.timestamp), r.sequence),
            reverse=True,
        )

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(
        self,
        target,
        actor_id: str,
        location: str | None = None,
        notes: str | None = None,
        strict: bool = True,
        details: dict | None = None,
    ) -> None:
        """Move to ``target``, recording one status row and one ledger entry."""
        target_status = parse_status(target)
        current = ShipmentStatus(self.status)
        if target_status == current or (strict and target_status not in _VALID_TRANSITIONS[current]):
            raise InvalidTransition(current.value, target_status.value)

        at = now()
        self.status = target_status.value
        self._append_status(target_status, actor_id, location, notes, at)
        self._append_event(
            STATUS_EVENT_TYPES[target_status],
            actor_id,
            location=location,
            description=notes or _describe(target_status),
            details=details,
            at=at,
        )
        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                sender_id=str(self.sender_id),
                receiver_id=str(self.receiver_id),
                from_status=current.value,
                to_status=target_status.value,
                location=location,
                notes=notes,
                changed_by=actor_id,
                changed_at=at,
            )
        )

    def record_pickup(
        self,
        actor_id: str,
        location: str | None = None,
        notes: str | None = None,
        photos: list[str] | None = None,
        strict: bool = True,
    ) -> None:
        """Driver collected the parcels; photo ``i`` is evidence for package ``i``."""
        if not self.can_be_picked_up():
            raise InvalidState(f"Shipment cannot be picked up while {self.status}")

        self.transition_to(
            ShipmentStatus.PICKED_UP,
            actor_id,
            location=location,
            notes=notes or "Shipment picked up",
            strict=strict,
            details={"photos": photos} if photos else None,
        )
        self.pickup_date = now()
        for package, photo in zip(self.ordered_packages(), photos or []):
            self._attach_photo(package, photo)

    def record_delivery(
        self,
        kind,
        actor_id: str,
        location: str | None = None,
        notes: str | None = None,
        signature: str | None = None,
        photos: list[str] | None = None,
        strict: bool = True,
    ) -> None:
        """Close the journey as delivered or collected by the receiver."""
        delivery_kind = parse_status(kind)
        if delivery_kind not in _DELIVERY_KINDS:
            raise ValidationFailed("delivery_type: must be delivered or picked_up_by_receiver")
        if not self.can_be_delivered():
            raise InvalidState(f"Shipment cannot be delivered while {self.status}")

        details = {}
        if signature:
            details["signature"] = signature
        if photos:
            details["photos"] = photos
        self.transition_to(
            delivery_kind,
            actor_id,
            location=location,
            notes=notes,
            strict=strict,
            details=details or None,
        )
        self.delivery_date = now()

    # -------------------------------------------------------------------
    # Packages
    # -------------------------------------------------------------------
    def ordered_packages(self) -> list[Package]:
        return sorted(self.packages or [], key=lambda p: p.ordinal)

    def find_package(self, package_id: str) -> Package:
        package = next((p for p in (self.packages or []) if str(p.id) == str(package_id)), None)
        if package is None:
            raise NotFound("Package not found in this shipment")
        return package

    def _register_package(self, data: dict, actor_id: str, at: datetime) -> Package:
        # The sequence only ever grows, so letters freed by deletion stay unused
        ordinal = self.package_sequence or 0
        self.package_sequence = ordinal + 1
        sub_id = sub_tracking_id(self.tracking_number, ordinal)
        values = {k: v for k, v in data.items() if k in _PACKAGE_EDITABLE_FIELDS}
        for money_field in ("insurance_amount", "declared_value"):
            if money_field in values:
                values[money_field] = to_money(values[money_field], money_field)
        package = Package(
            sub_tracking_id=sub_id,
            ordinal=ordinal,
            qr_code=get_identifier_generator().qr_code(sub_id),
            photos=json.dumps([]),
            created_at=at,
            **values,
        )
        self.add_packages(package)
        self.raise_(
            PackageAdded(
                shipment_id=str(self.id),
                package_id=str(package.id),
                sub_tracking_id=sub_id,
                added_by=actor_id,
                added_at=at,
            )
        )
        return package

    def _assert_packages_editable(self) -> None:
        if not self.can_be_picked_up():
            raise InvalidState("Packages can only be changed before pickup")

    def add_package(self, data: dict, actor_id: str) -> Package:
        self._assert_packages_editable()
        at = now()
        package = self._register_package(data, actor_id, at)
        self.updated_at = at
        return package

    def update_package(self, package_id: str, changes: dict, actor_id: str) -> Package:
        self._assert_packages_editable()
        package = self.find_package(package_id)
        changed = [k for k in changes if k in _PACKAGE_EDITABLE_FIELDS]
        if not changed:
            raise ValidationFailed("No editable package fields supplied")
        for field in changed:
            value = changes[field]
            if field in ("insurance_amount", "declared_value"):
                value = to_money(value, field)
            setattr(package, field, value)

        at = now()
        self.updated_at = at
        self.raise_(
            PackageUpdated(
                shipment_id=str(self.id),
                package_id=str(package.id),
                changed_fields=json.dumps(sorted(changed)),
                updated_by=actor_id,
                updated_at=at,
            )
        )
        return package

    def remove_package(self, package_id: str, actor_id: str) -> None:
        self._assert_packages_editable()
        package = self.find_package(package_id)
        if len(self.packages) <= 1:
            raise InvalidState("A shipment must keep at least one package")

        at = now()
        self.remove_packages(package)
        self.updated_at = at
        self.raise_(
            PackageRemoved(
                shipment_id=str(self.id),
                package_id=str(package.id),
                sub_tracking_id=package.sub_tracking_id,
                removed_by=actor_id,
                removed_at=at,
            )
        )

    def _attach_photo(self, package: Package, photo: str) -> None:
        package.photos = json.dumps(package.photo_list() + [photo])

    def add_package_photo(self, package_id: str, photo: str, actor_id: str) -> Package:
        if not photo:
            raise ValidationFailed("photo: a photo reference is required")
        package = self.find_package(package_id)
        self._attach_photo(package, photo)

        at = now()
        self.updated_at = at
        self.raise_(
            PackagePhotoAdded(
                shipment_id=str(self.id),
                package_id=str(package.id),
                photo=photo,
                added_by=actor_id,
                added_at=at,
            )
        )
        return package

    # -------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------
    def bind_driver(self, driver_id: str) -> None:
        if str(self.driver_id or "") == str(driver_id):
            return
        previous = self.driver_id
        at = now()
        self.driver_id = driver_id
        self.updated_at = at
        self.raise_(
            DriverBound(
                shipment_id=str(self.id),
                previous_driver_id=previous,
                driver_id=driver_id,
                bound_at=at,
            )
        )

    def reassign_agent(self, agent_id: str, actor_id: str) -> None:
        if self.is_closed():
            raise InvalidState(f"Cannot reassign the agent of a {self.status} shipment")
        previous = self.agent_id
        at = now()
        self.agent_id = agent_id
        self.updated_at = at
        self.raise_(
            AgentReassigned(
                shipment_id=str(self.id),
                previous_agent_id=previous,
                agent_id=agent_id,
                reassigned_by=actor_id,
                reassigned_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Payment status
    # -------------------------------------------------------------------
    def mark_payment_status(self, state: PaymentState, payment_id: str | None = None) -> None:
        if self.payment_status == state.value:
            return
        previous = self.payment_status
        at = now()
        self.payment_status = state.value
        self.updated_at = at
        self.raise_(
            ShipmentPaymentStatusChanged(
                shipment_id=str(self.id),
                from_status=previous,
                to_status=state.value,
                payment_id=payment_id,
                changed_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def assert_deletable(self) -> None:
        if ShipmentStatus(self.status) != ShipmentStatus.BOOKED:
            raise InvalidState("Only booked shipments can be deleted")
