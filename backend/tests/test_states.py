"""Tests for transition tables and actor contexts (no DB dependency)."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dockdirect.actors import (
    SYSTEM,
    AdminActor,
    DriverActor,
    ShipperActor,
    actor_for,
    require_role,
)
from dockdirect.errors import ForbiddenError, InvalidTransitionError, LoadNoLongerOpenError, ValidationError
from dockdirect.states import (
    BID_TRANSITIONS,
    CONTRACT_TRANSITIONS,
    LOAD_TRANSITIONS,
    LoadStatus,
    can_transition,
    parse_load_status,
)


class TestLoadTransitions:

    @pytest.mark.parametrize(
        "current,target",
        [
            ("open", "assigned"),
            ("open", "cancelled"),
            ("assigned", "in_transit"),
            ("assigned", "cancelled"),
            ("in_transit", "completed"),
        ],
    )
    def test_legal_edges(self, current, target):
        assert can_transition(LOAD_TRANSITIONS, current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("open", "completed"),
            ("open", "in_transit"),
            ("in_transit", "cancelled"),
            ("completed", "open"),
            ("cancelled", "open"),
            ("assigned", "open"),
        ],
    )
    def test_illegal_edges(self, current, target):
        assert not can_transition(LOAD_TRANSITIONS, current, target)

    def test_terminal_states_have_no_exits(self):
        assert LOAD_TRANSITIONS[LoadStatus.COMPLETED] == set()
        assert LOAD_TRANSITIONS[LoadStatus.CANCELLED] == set()

    def test_parse_status(self):
        assert parse_load_status("in_transit") is LoadStatus.IN_TRANSIT
        with pytest.raises(ValueError):
            parse_load_status("delivered")


class TestBidAndContractTransitions:

    def test_rejected_bid_is_final(self):
        assert not can_transition(BID_TRANSITIONS, "rejected", "accepted")
        assert not can_transition(BID_TRANSITIONS, "rejected", "pending")

    def test_contract_edges(self):
        assert can_transition(CONTRACT_TRANSITIONS, "pending", "signed")
        assert can_transition(CONTRACT_TRANSITIONS, "pending", "void")
        assert not can_transition(CONTRACT_TRANSITIONS, "signed", "void")
        assert not can_transition(CONTRACT_TRANSITIONS, "void", "signed")


class TestActors:

    def test_actor_for_roles(self):
        assert actor_for("u1", "shipper") == ShipperActor("u1")
        assert actor_for("u2", "driver") == DriverActor("u2")
        assert actor_for("u3", "admin") == AdminActor("u3")

    def test_unknown_role(self):
        with pytest.raises(ForbiddenError):
            actor_for("u1", "broker")
        with pytest.raises(ForbiddenError):
            actor_for("", "shipper")

    def test_system_cannot_be_claimed(self):
        with pytest.raises(ForbiddenError):
            actor_for("system", "system")
        assert SYSTEM.user_id == "system"

    def test_require_role(self):
        require_role(DriverActor("d"), DriverActor, AdminActor)
        with pytest.raises(ForbiddenError) as exc:
            require_role(ShipperActor("s"), DriverActor, AdminActor)
        assert "driver or admin" in exc.value.message.lower()


class TestErrors:

    def test_error_payloads(self):
        err = InvalidTransitionError("load", "open", "completed")
        assert err.to_dict()["transition"] == {"entity_type": "load", "from": "open", "to": "completed"}
        assert 'open" -> "completed' in err.message

        validation = ValidationError(["a", "b"])
        assert validation.to_dict()["violations"] == ["a", "b"]
        assert validation.http_status == 400

        lost = LoadNoLongerOpenError("gone")
        assert lost.to_dict() == {"error": "LoadNoLongerOpenError", "detail": "gone", "retryable": True}
