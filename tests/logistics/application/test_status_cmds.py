"""Application tests for status transitions, handovers and manual ledger entries."""

import json

import pytest
from logistics.shared.errors import AccessDenied, InvalidState, InvalidTransition, ValidationFailed
from logistics.shipment.booking import BookShipment
from logistics.shipment.handover import RecordDelivery, RecordPickup
from logistics.shipment.ledger import RecordTrackingEvent
from logistics.shipment.shipment import Shipment, ShipmentStatus
from logistics.shipment.status import TransitionStatus
from protean import current_domain


def _book():
    return current_domain.process(
        BookShipment(
            actor_id="agent-1",
            actor_role="agent",
            sender_id="sender-1",
            receiver_id="receiver-1",
            pickup_address="Pickup",
            delivery_address="Delivery",
            packages=json.dumps([{"description": "Box", "weight": 1.0}]),
        ),
        asynchronous=False,
    )


def _transition(shipment_id, status, actor_id="agent-1", actor_role="agent", **kwargs):
    return current_domain.process(
        TransitionStatus(
            actor_id=actor_id,
            actor_role=actor_role,
            shipment_id=shipment_id,
            target_status=status,
            **kwargs,
        ),
        asynchronous=False,
    )


def _load(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


class TestTransitionStatus:
    def test_bound_agent_moves_shipment(self):
        shipment_id = _book()
        result = _transition(shipment_id, "picked_up", location="Accra", notes="At the counter")

        assert result == "picked_up"
        shipment = _load(shipment_id)
        assert shipment.status == "picked_up"
        assert len(shipment.status_history) == 2
        assert len(shipment.tracking_events) == 2
        assert shipment.ledger()[0].event_type == "pickup_completed"

    def test_invalid_edge_is_rejected_and_nothing_is_written(self):
        shipment_id = _book()
        with pytest.raises(InvalidTransition):
            _transition(shipment_id, "delivered")

        shipment = _load(shipment_id)
        assert shipment.status == "booked"
        assert len(shipment.status_history) == 1
        assert len(shipment.tracking_events) == 1

    def test_unbound_agent_is_denied(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            _transition(shipment_id, "picked_up", actor_id="agent-2")
        assert _load(shipment_id).status == "booked"

    def test_sender_cannot_transition(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            _transition(shipment_id, "picked_up", actor_id="sender-1", actor_role="sender")

    def test_admin_may_transition_any_shipment(self):
        shipment_id = _book()
        assert _transition(shipment_id, "picked_up", actor_id="root", actor_role="admin") == "picked_up"

    def test_permissive_policy_accepts_any_known_status(self, monkeypatch):
        monkeypatch.setitem(current_domain.config["custom"], "TRANSITION_POLICY", "permissive")
        shipment_id = _book()
        _transition(shipment_id, "arrived_at_hub")
        assert _load(shipment_id).status == "arrived_at_hub"

    def test_unknown_status_is_validation_failure(self):
        shipment_id = _book()
        with pytest.raises(ValidationFailed):
            _transition(shipment_id, "vanished")


class TestHandovers:
    def _assign_driver(self, shipment_id, driver_id="driver-1"):
        shipment = _load(shipment_id)
        shipment.bind_driver(driver_id)
        current_domain.repository_for(Shipment).add(shipment)

    def test_bound_driver_records_pickup(self):
        shipment_id = _book()
        self._assign_driver(shipment_id)
        current_domain.process(
            RecordPickup(
                actor_id="driver-1",
                actor_role="driver",
                shipment_id=shipment_id,
                location="Accra",
                photos=json.dumps(["box.jpg"]),
            ),
            asynchronous=False,
        )
        shipment = _load(shipment_id)
        assert shipment.status == "picked_up"
        assert shipment.pickup_date is not None
        assert shipment.packages[0].photo_list() == ["box.jpg"]

    def test_agent_cannot_record_handover(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            current_domain.process(
                RecordPickup(actor_id="agent-1", actor_role="agent", shipment_id=shipment_id),
                asynchronous=False,
            )

    def test_unbound_driver_cannot_record_pickup(self):
        shipment_id = _book()
        self._assign_driver(shipment_id)
        with pytest.raises(AccessDenied):
            current_domain.process(
                RecordPickup(actor_id="driver-2", actor_role="driver", shipment_id=shipment_id),
                asynchronous=False,
            )

    def test_delivery_before_destination_is_invalid_state(self):
        shipment_id = _book()
        self._assign_driver(shipment_id)
        with pytest.raises(InvalidState):
            current_domain.process(
                RecordDelivery(
                    actor_id="driver-1",
                    actor_role="driver",
                    shipment_id=shipment_id,
                    delivery_type="delivered",
                ),
                asynchronous=False,
            )

    def test_delivery_at_destination(self):
        shipment_id = _book()
        self._assign_driver(shipment_id)
        for status in ("picked_up", "in_transit", "arrived_at_destination", "out_for_delivery"):
            _transition(shipment_id, status)

        current_domain.process(
            RecordDelivery(
                actor_id="driver-1",
                actor_role="driver",
                shipment_id=shipment_id,
                delivery_type="delivered",
                signature="K. Owusu",
            ),
            asynchronous=False,
        )
        shipment = _load(shipment_id)
        assert shipment.status == ShipmentStatus.DELIVERED.value
        assert shipment.delivery_date is not None


class TestRecordTrackingEvent:
    def test_manual_event_appends_to_ledger(self):
        shipment_id = _book()
        sequence = current_domain.process(
            RecordTrackingEvent(
                actor_id="agent-1",
                actor_role="agent",
                shipment_id=shipment_id,
                event_type="delivery_attempted",
                description="Gate locked",
                details=json.dumps({"attempt": 1}),
            ),
            asynchronous=False,
        )
        assert sequence == 2
        shipment = _load(shipment_id)
        assert shipment.status == "booked"
        assert shipment.ledger()[0].description == "Gate locked"

    def test_status_driven_event_type_is_rejected(self):
        shipment_id = _book()
        with pytest.raises(ValidationFailed):
            current_domain.process(
                RecordTrackingEvent(
                    actor_id="agent-1",
                    actor_role="agent",
                    shipment_id=shipment_id,
                    event_type="delivered",
                ),
                asynchronous=False,
            )
        assert len(_load(shipment_id).tracking_events) == 1
