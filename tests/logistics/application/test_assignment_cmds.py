"""Application tests for driver assignments."""

import json

import pytest
from logistics.assignment.assignment import AssignmentStatus, DriverAssignment
from logistics.assignment.creation import CreateAssignment
from logistics.assignment.lifecycle import (
    AcceptAssignment,
    CancelAssignment,
    CompleteAssignment,
    FailAssignment,
    StartAssignment,
)
from logistics.shared.errors import AccessDenied, Conflict, InvalidState, ValidationFailed
from logistics.shipment.booking import BookShipment
from logistics.shipment.shipment import Shipment
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


def _assign(shipment_id, assignment_type="pickup", driver_id="driver-1", actor_id="agent-1", actor_role="agent"):
    return current_domain.process(
        CreateAssignment(
            actor_id=actor_id,
            actor_role=actor_role,
            shipment_id=shipment_id,
            driver_id=driver_id,
            assignment_type=assignment_type,
            vehicle_id="van-1",
            estimated_duration=30,
        ),
        asynchronous=False,
    )


def _act(command_cls, assignment_id, actor_id="driver-1", actor_role="driver", **kwargs):
    return current_domain.process(
        command_cls(actor_id=actor_id, actor_role=actor_role, assignment_id=assignment_id, **kwargs),
        asynchronous=False,
    )


def _assignment(assignment_id):
    return current_domain.repository_for(DriverAssignment).get(assignment_id)


def _shipment(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


class TestCreateAssignment:
    def test_pickup_assignment_binds_driver_and_schedules_pickup(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)

        assert _assignment(assignment_id).status == AssignmentStatus.PENDING.value
        shipment = _shipment(shipment_id)
        assert shipment.driver_id == "driver-1"
        assert shipment.status == "awaiting_pickup"
        assert shipment.ledger()[0].event_type == "pickup_scheduled"

    def test_driver_is_notified(self, notifier):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)

        assigned = notifier.of_type("driver_assigned")
        assert [n.user_id for n in assigned] == ["driver-1"]
        assert assigned[0].metadata["assignment_id"] == assignment_id

    def test_second_open_assignment_of_same_type_conflicts(self):
        shipment_id = _book()
        _assign(shipment_id)
        with pytest.raises(Conflict):
            _assign(shipment_id, driver_id="driver-2")
        assert _shipment(shipment_id).driver_id == "driver-1"

    def test_pickup_and_delivery_slots_are_independent(self):
        shipment_id = _book()
        _assign(shipment_id, "pickup")
        _assign(shipment_id, "delivery", driver_id="driver-2")
        assert _shipment(shipment_id).driver_id == "driver-2"

    def test_slot_frees_up_after_cancellation(self):
        shipment_id = _book()
        first = _assign(shipment_id)
        _act(CancelAssignment, first, actor_id="agent-1", actor_role="agent", reason="Driver sick")
        second = _assign(shipment_id, driver_id="driver-2")
        assert _assignment(second).driver_id == "driver-2"

    def test_unknown_type_is_rejected(self):
        shipment_id = _book()
        with pytest.raises(ValidationFailed):
            _assign(shipment_id, assignment_type="teleport")

    def test_unbound_agent_cannot_assign(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            _assign(shipment_id, actor_id="agent-2")

    def test_closed_shipment_cannot_be_assigned(self):
        shipment_id = _book()
        for status in ("picked_up", "returned"):
            current_domain.process(
                TransitionStatus(
                    actor_id="agent-1",
                    actor_role="agent",
                    shipment_id=shipment_id,
                    target_status=status,
                ),
                asynchronous=False,
            )
        with pytest.raises(InvalidState):
            _assign(shipment_id, "delivery")


class TestDriverWorkflow:
    def test_accept_twice_fails_and_keeps_first_acceptance_time(self, clock):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        _act(AcceptAssignment, assignment_id)
        accepted_at = _assignment(assignment_id).accepted_at

        clock.advance(minutes=10)
        with pytest.raises(InvalidState):
            _act(AcceptAssignment, assignment_id)
        assert _assignment(assignment_id).accepted_at == accepted_at

    def test_only_the_named_driver_may_accept(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        with pytest.raises(AccessDenied):
            _act(AcceptAssignment, assignment_id, actor_id="driver-2")

    def test_starting_pickup_logs_pickup_started(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        _act(AcceptAssignment, assignment_id)
        _act(StartAssignment, assignment_id, location="Depot")

        shipment = _shipment(shipment_id)
        assert shipment.status == "awaiting_pickup"
        assert shipment.ledger()[0].event_type == "pickup_started"

    def test_starting_delivery_at_destination_goes_out_for_delivery(self):
        shipment_id = _book()
        for status in ("picked_up", "in_transit", "arrived_at_destination"):
            current_domain.process(
                TransitionStatus(
                    actor_id="agent-1",
                    actor_role="agent",
                    shipment_id=shipment_id,
                    target_status=status,
                ),
                asynchronous=False,
            )
        assignment_id = _assign(shipment_id, "delivery")
        _act(AcceptAssignment, assignment_id)
        _act(StartAssignment, assignment_id)

        assert _shipment(shipment_id).status == "out_for_delivery"

    def test_complete(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        _act(AcceptAssignment, assignment_id)
        _act(StartAssignment, assignment_id)
        assert _act(CompleteAssignment, assignment_id, notes="Done") == "completed"

    def test_complete_before_start_is_invalid(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        _act(AcceptAssignment, assignment_id)
        with pytest.raises(InvalidState):
            _act(CompleteAssignment, assignment_id)
        assert _assignment(assignment_id).status == "accepted"


class TestAbandonment:
    def test_driver_reports_failure(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        assert _act(FailAssignment, assignment_id, reason="Flat tyre") == "failed"
        assert _assignment(assignment_id).closing_reason == "Flat tyre"

    def test_admin_may_fail_an_assignment(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        assert _act(FailAssignment, assignment_id, actor_id="root", actor_role="admin") == "failed"

    def test_driver_cannot_cancel(self):
        shipment_id = _book()
        assignment_id = _assign(shipment_id)
        with pytest.raises(AccessDenied):
            _act(CancelAssignment, assignment_id)
