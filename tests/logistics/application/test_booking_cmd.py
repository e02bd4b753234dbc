"""Application tests for booking via domain.process()."""

import json
import re

import pytest
from logistics.shared.errors import AccessDenied, ValidationFailed
from logistics.shipment.booking import BookShipment
from logistics.shipment.shipment import Shipment, ShipmentStatus
from protean import current_domain

_PACKAGES = [
    {"description": "Laptop", "weight": 2.5, "is_fragile": True},
    {"description": "Charger", "weight": 0.4},
]


def _book(actor_id="sender-1", actor_role="sender", **overrides):
    kwargs = dict(
        actor_id=actor_id,
        actor_role=actor_role,
        receiver_id="receiver-1",
        pickup_address="12 Harbour Road, Accra",
        delivery_address="4 Market Street, Kumasi",
        packages=json.dumps(_PACKAGES),
        shipment_fee=50.0,
    )
    kwargs.update(overrides)
    return current_domain.process(BookShipment(**kwargs), asynchronous=False)


class TestBookShipment:
    def test_booking_persists_a_booked_shipment(self):
        shipment_id = _book()
        shipment = current_domain.repository_for(Shipment).get(shipment_id)

        assert shipment.status == ShipmentStatus.BOOKED.value
        assert shipment.payment_status == "pending"
        assert shipment.sender_id == "sender-1"
        assert re.fullmatch(r"TRK\d{4}[0-9A-Z]{8}", shipment.tracking_number)
        assert re.fullmatch(r"MT\d{4}[0-9A-Z]{6}", shipment.master_tracking_id)

    def test_packages_get_lettered_sub_tracking_ids(self):
        shipment = current_domain.repository_for(Shipment).get(_book())
        tn = shipment.tracking_number
        assert [p.sub_tracking_id for p in shipment.ordered_packages()] == [f"{tn}-A", f"{tn}-B"]

    def test_booking_writes_exactly_one_history_row_and_ledger_entry(self):
        shipment = current_domain.repository_for(Shipment).get(_book())
        assert [r.status for r in shipment.status_history] == ["booked"]
        assert [e.event_type for e in shipment.tracking_events] == ["booked"]

    def test_two_bookings_get_distinct_tracking_numbers(self):
        repo = current_domain.repository_for(Shipment)
        first = repo.get(_book())
        second = repo.get(_book())
        assert first.tracking_number != second.tracking_number
        assert first.master_tracking_id != second.master_tracking_id

    def test_booking_requires_a_package(self):
        with pytest.raises(ValidationFailed):
            _book(packages="[]")

    def test_receiver_cannot_book(self):
        with pytest.raises(AccessDenied):
            _book(actor_id="receiver-1", actor_role="receiver")


class TestWalkInBooking:
    def test_agent_books_for_a_walk_in_sender(self):
        shipment_id = _book(actor_id="agent-9", actor_role="agent", sender_id="walk-in-1")
        shipment = current_domain.repository_for(Shipment).get(shipment_id)
        assert shipment.sender_id == "walk-in-1"
        assert shipment.agent_id == "agent-9"

    def test_agent_must_name_the_sender(self):
        with pytest.raises(ValidationFailed):
            _book(actor_id="agent-9", actor_role="agent")

    def test_sender_cannot_book_for_someone_else(self):
        shipment_id = _book(sender_id="someone-else")
        shipment = current_domain.repository_for(Shipment).get(shipment_id)
        assert shipment.sender_id == "sender-1"


class TestBookingNotifications:
    def test_sender_and_receiver_hear_about_the_booking(self, notifier):
        _book()
        booked = notifier.of_type("shipment_booked")
        assert sorted(n.user_id for n in booked) == ["receiver-1", "sender-1"]
        assert booked[0].title == "Shipment Booked"
