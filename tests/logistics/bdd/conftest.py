"""Shared BDD fixtures and step definitions for the logistics domain."""

import pytest
from logistics.assignment.assignment import DriverAssignment
from logistics.shared.errors import LogisticsError
from logistics.shipment.shipment import Shipment
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the failure raised by the last action, if any."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a booked shipment", target_fixture="shipment")
def booked_shipment():
    shipment = Shipment.book(
        tracking_number="TRK2025BDD00001",
        master_tracking_id="MT2025BDD0001",
        sender_id="sender-1",
        receiver_id="receiver-1",
        agent_id="agent-1",
        pickup_address="12 Harbour Road, Accra",
        delivery_address="4 Market Street, Kumasi",
        packages_data=[{"description": "Books", "weight": 2.0}],
        booked_by="agent-1",
    )
    shipment.bind_driver("driver-1")
    shipment._events.clear()
    return shipment


@given(parsers.cfparse('a pending "{assignment_type}" assignment for "{driver_id}"'), target_fixture="assignment")
def pending_assignment(assignment_type, driver_id):
    assignment = DriverAssignment.create(
        shipment_id="shp-001",
        driver_id=driver_id,
        assignment_type=assignment_type,
        assigned_by="agent-1",
    )
    assignment._events.clear()
    return assignment


# ---------------------------------------------------------------------------
# Shared When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the clock moves forward {minutes:d} minutes"))
def clock_moves_forward(clock, minutes):
    clock.advance(minutes=minutes)


# ---------------------------------------------------------------------------
# Shared Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the action fails with "{kind}"'))
def action_failed(error, kind):
    assert isinstance(error["exc"], LogisticsError)
    assert error["exc"].kind == kind
