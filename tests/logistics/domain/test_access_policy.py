"""Tests for the access policy."""

from types import SimpleNamespace

import pytest
from logistics.shared.access import (
    Actor,
    Capability,
    Role,
    authorize,
    authorize_assignment_driver,
    can,
    is_bound,
)
from logistics.shared.errors import AccessDenied, ValidationFailed

SHIPMENT = SimpleNamespace(
    id="shipment-1",
    sender_id="sender-1",
    receiver_id="receiver-1",
    agent_id="agent-1",
    driver_id="driver-1",
)


class TestActor:
    def test_missing_identity_is_denied(self):
        with pytest.raises(AccessDenied):
            Actor.of(None, "sender")

    def test_unknown_role_is_a_validation_failure(self):
        with pytest.raises(ValidationFailed):
            Actor.of("someone", "superuser")

    def test_admin_flag(self):
        assert Actor.of("root", "admin").is_admin
        assert not Actor.of("sender-1", Role.SENDER).is_admin


class TestCapabilities:
    def test_admin_holds_every_capability(self):
        admin = Actor.of("root", "admin")
        assert all(can(admin, capability) for capability in Capability)

    @pytest.mark.parametrize(
        "role, capability, allowed",
        [
            ("sender", Capability.BOOK_SHIPMENT, True),
            ("sender", Capability.TRANSITION_STATUS, False),
            ("receiver", Capability.VIEW_SHIPMENT, True),
            ("receiver", Capability.EDIT_PACKAGE, False),
            ("agent", Capability.MANAGE_ASSIGNMENT, True),
            ("agent", Capability.RECORD_HANDOVER, False),
            ("driver", Capability.RECORD_HANDOVER, True),
            ("driver", Capability.REFUND_PAYMENT, False),
        ],
    )
    def test_role_table(self, role, capability, allowed):
        assert can(Actor.of("x", role), capability) is allowed


class TestBinding:
    @pytest.mark.parametrize(
        "actor_id, role, bound",
        [
            ("sender-1", "sender", True),
            ("receiver-1", "receiver", True),
            ("agent-1", "agent", True),
            ("driver-1", "driver", True),
            ("sender-2", "sender", False),
            ("sender-1", "receiver", False),
        ],
    )
    def test_bound_slot_matches_role(self, actor_id, role, bound):
        assert is_bound(Actor.of(actor_id, role), SHIPMENT) is bound

    def test_admin_is_never_bound_but_always_authorized(self):
        admin = Actor.of("root", "admin")
        assert not is_bound(admin, SHIPMENT)
        authorize(admin, Capability.DELETE_SHIPMENT, SHIPMENT)

    def test_unbound_sender_is_denied(self):
        with pytest.raises(AccessDenied):
            authorize(Actor.of("sender-2", "sender"), Capability.VIEW_SHIPMENT, SHIPMENT)

    def test_bound_role_without_capability_is_denied(self):
        with pytest.raises(AccessDenied):
            authorize(Actor.of("receiver-1", "receiver"), Capability.TRANSITION_STATUS, SHIPMENT)

    def test_rebinding_takes_effect_immediately(self):
        shipment = SimpleNamespace(**vars(SHIPMENT))
        driver = Actor.of("driver-1", "driver")
        authorize(driver, Capability.RECORD_HANDOVER, shipment)

        shipment.driver_id = "driver-2"
        with pytest.raises(AccessDenied):
            authorize(driver, Capability.RECORD_HANDOVER, shipment)


class TestAssignmentDriver:
    ASSIGNMENT = SimpleNamespace(id="assignment-1", driver_id="driver-1")

    def test_named_driver_may_work(self):
        authorize_assignment_driver(Actor.of("driver-1", "driver"), self.ASSIGNMENT)

    def test_other_driver_is_denied(self):
        with pytest.raises(AccessDenied):
            authorize_assignment_driver(Actor.of("driver-2", "driver"), self.ASSIGNMENT)

    def test_admin_only_when_allowed(self):
        admin = Actor.of("root", "admin")
        with pytest.raises(AccessDenied):
            authorize_assignment_driver(admin, self.ASSIGNMENT)
        authorize_assignment_driver(admin, self.ASSIGNMENT, allow_admin=True)
