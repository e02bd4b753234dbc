"""Application tests for package edits, agent reassignment and deletion."""

import json

import pytest
from logistics.assignment.creation import CreateAssignment
from logistics.payment.processing import CreatePayment
from logistics.shared.errors import AccessDenied, InvalidState
from logistics.shipment.booking import BookShipment
from logistics.shipment.management import DeleteShipment, ReassignAgent
from logistics.shipment.packages import AddPackage, AddPackagePhoto, RemovePackage, UpdatePackage
from logistics.shipment.shipment import Shipment
from logistics.shipment.status import TransitionStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _book(count=1):
    return current_domain.process(
        BookShipment(
            actor_id="sender-1",
            actor_role="sender",
            receiver_id="receiver-1",
            agent_id="agent-1",
            pickup_address="Pickup",
            delivery_address="Delivery",
            packages=json.dumps([{"description": f"Box {i}", "weight": 1.0} for i in range(count)]),
        ),
        asynchronous=False,
    )


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _shipment(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


def _pick_up(shipment_id):
    _process(
        TransitionStatus(
            actor_id="agent-1",
            actor_role="agent",
            shipment_id=shipment_id,
            target_status="picked_up",
        )
    )


class TestPackageCommands:
    def test_sender_adds_a_package(self):
        shipment_id = _book()
        package_id = _process(
            AddPackage(
                actor_id="sender-1",
                actor_role="sender",
                shipment_id=shipment_id,
                package=json.dumps({"description": "Umbrella", "weight": 0.8}),
            )
        )
        shipment = _shipment(shipment_id)
        assert len(shipment.packages) == 2
        assert shipment.find_package(package_id).sub_tracking_id.endswith("-B")

    def test_sender_updates_a_package(self):
        shipment_id = _book()
        package_id = str(_shipment(shipment_id).packages[0].id)
        _process(
            UpdatePackage(
                actor_id="sender-1",
                actor_role="sender",
                shipment_id=shipment_id,
                package_id=package_id,
                changes=json.dumps({"description": "Heavy box", "weight": 9.0}),
            )
        )
        package = _shipment(shipment_id).find_package(package_id)
        assert package.description == "Heavy box"
        assert package.weight == 9.0

    def test_package_edits_stop_after_pickup(self):
        shipment_id = _book(count=2)
        _pick_up(shipment_id)
        package_id = str(_shipment(shipment_id).packages[0].id)
        with pytest.raises(InvalidState):
            _process(
                RemovePackage(
                    actor_id="sender-1",
                    actor_role="sender",
                    shipment_id=shipment_id,
                    package_id=package_id,
                )
            )

    def test_agent_cannot_delete_packages(self):
        shipment_id = _book(count=2)
        package_id = str(_shipment(shipment_id).packages[0].id)
        with pytest.raises(AccessDenied):
            _process(
                RemovePackage(
                    actor_id="agent-1",
                    actor_role="agent",
                    shipment_id=shipment_id,
                    package_id=package_id,
                )
            )

    def test_photo_count_is_returned(self):
        shipment_id = _book()
        package_id = str(_shipment(shipment_id).packages[0].id)
        count = _process(
            AddPackagePhoto(
                actor_id="agent-1",
                actor_role="agent",
                shipment_id=shipment_id,
                package_id=package_id,
                photo="front.jpg",
            )
        )
        assert count == 1


class TestReassignAgent:
    def test_admin_reassigns_agent_and_old_agent_loses_access(self):
        shipment_id = _book()
        _process(ReassignAgent(actor_id="root", actor_role="admin", shipment_id=shipment_id, agent_id="agent-2"))
        assert _shipment(shipment_id).agent_id == "agent-2"

        with pytest.raises(AccessDenied):
            _pick_up(shipment_id)

    def test_agent_cannot_reassign(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            _process(
                ReassignAgent(actor_id="agent-1", actor_role="agent", shipment_id=shipment_id, agent_id="agent-3")
            )


class TestDeleteShipment:
    def test_sender_deletes_booked_shipment(self):
        shipment_id = _book()
        _process(DeleteShipment(actor_id="sender-1", actor_role="sender", shipment_id=shipment_id))
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Shipment).get(shipment_id)

    def test_picked_up_shipment_cannot_be_deleted(self):
        shipment_id = _book()
        _pick_up(shipment_id)
        with pytest.raises(InvalidState):
            _process(DeleteShipment(actor_id="sender-1", actor_role="sender", shipment_id=shipment_id))
        assert _shipment(shipment_id).status == "picked_up"

    def test_other_sender_cannot_delete(self):
        shipment_id = _book()
        with pytest.raises(AccessDenied):
            _process(DeleteShipment(actor_id="sender-2", actor_role="sender", shipment_id=shipment_id))

    def test_shipment_with_a_payment_is_kept(self):
        shipment_id = _book()
        _process(
            CreatePayment(
                actor_id="sender-1",
                actor_role="sender",
                shipment_id=shipment_id,
                payment_type="shipment_fee",
                payment_method="cash",
                amount=20,
            )
        )

        with pytest.raises(InvalidState) as exc:
            _process(DeleteShipment(actor_id="sender-1", actor_role="sender", shipment_id=shipment_id))
        assert exc.value.message == "Shipments with payments cannot be deleted"
        assert _shipment(shipment_id).status == "booked"

    def test_shipment_with_a_delivery_assignment_is_kept(self):
        shipment_id = _book()
        _process(
            CreateAssignment(
                actor_id="agent-1",
                actor_role="agent",
                shipment_id=shipment_id,
                driver_id="driver-1",
                assignment_type="delivery",
            )
        )

        with pytest.raises(InvalidState) as exc:
            _process(DeleteShipment(actor_id="sender-1", actor_role="sender", shipment_id=shipment_id))
        assert exc.value.message == "Shipments with driver assignments cannot be deleted"
        assert _shipment(shipment_id).status == "booked"
