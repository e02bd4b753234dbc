"""Application tests for lifecycle notifications."""

import json

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


def _transition(shipment_id, status):
    current_domain.process(
        TransitionStatus(
            actor_id="agent-1",
            actor_role="agent",
            shipment_id=shipment_id,
            target_status=status,
        ),
        asynchronous=False,
    )


class TestStatusNotifications:
    def test_pickup_notifies_sender_and_receiver(self, notifier):
        shipment_id = _book()
        notifier.clear()

        _transition(shipment_id, "picked_up")

        sent = notifier.of_type("pickup_completed")
        assert sorted(n.user_id for n in sent) == ["receiver-1", "sender-1"]
        tracking_number = current_domain.repository_for(Shipment).get(shipment_id).tracking_number
        assert sent[0].title == "Shipment Status Update"
        assert sent[0].message == f"Your shipment {tracking_number} status has been updated to picked_up."
        assert sent[0].shipment_id == shipment_id

    def test_hub_arrival_is_silent(self, notifier):
        shipment_id = _book()
        _transition(shipment_id, "picked_up")
        _transition(shipment_id, "in_transit")
        notifier.clear()

        _transition(shipment_id, "arrived_at_hub")

        assert notifier.sent == []

    def test_each_mapped_status_has_its_own_type(self, notifier):
        shipment_id = _book()
        for status in ("picked_up", "in_transit", "arrived_at_destination", "out_for_delivery", "delivered"):
            _transition(shipment_id, status)

        types = {n.notification_type for n in notifier.sent}
        assert {"pickup_completed", "in_transit", "out_for_delivery", "delivered"} <= types
        assert "arrived_at_destination" not in types

    def test_same_user_as_sender_and_receiver_is_notified_once(self, notifier):
        shipment_id = current_domain.process(
            BookShipment(
                actor_id="self-shipper",
                actor_role="sender",
                receiver_id="self-shipper",
                pickup_address="Home",
                delivery_address="Office",
                packages=json.dumps([{"description": "Keys", "weight": 0.1}]),
            ),
            asynchronous=False,
        )
        assert len(notifier.of_type("shipment_booked")) == 1
        assert notifier.sent[0].shipment_id == shipment_id


class TestSinkFailure:
    def test_failing_sink_does_not_undo_the_transition(self, notifier):
        shipment_id = _book()
        notifier.clear()
        notifier.configure(should_succeed=False)

        _transition(shipment_id, "picked_up")

        shipment = current_domain.repository_for(Shipment).get(shipment_id)
        assert shipment.status == "picked_up"
        assert notifier.sent == []
