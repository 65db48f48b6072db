"""End-to-end marketplace scenarios and cross-entity invariants."""

import json
import os
import sys

import pytest
from sqlalchemy.exc import DataError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import load_fields
from dockdirect.errors import (
    DuplicateBidError,
    ForbiddenError,
    InvalidTransitionError,
    LoadNoLongerOpenError,
    ValidationError,
)
from dockdirect.models import AuditEntry, Bid, Contract, Load
from dockdirect.states import ASSIGNED_STATUSES


def assert_invariants(db):
    """Properties that must hold after any sequence of operations."""
    db.expire_all()
    for load in db.query(Load).all():
        bids = db.query(Bid).filter(Bid.load_id == load.id).all()
        accepted = [b for b in bids if b.status == "accepted"]
        assert len(accepted) <= 1
        assert (load.assigned_driver_id is not None) == (load.status in {s.value for s in ASSIGNED_STATUSES})
        if accepted:
            assert load.status in {s.value for s in ASSIGNED_STATUSES}
            assert load.assigned_driver_id == accepted[0].driver_id
        drivers = [b.driver_id for b in bids]
        assert len(drivers) == len(set(drivers))
        active = [
            c for c in db.query(Contract).filter(Contract.load_id == load.id) if c.status != "void"
        ]
        assert len(active) <= 1
    for contract in db.query(Contract).all():
        both = contract.shipper_signed_at is not None and contract.driver_signed_at is not None
        assert (contract.status == "signed") == both


class TestMarketplaceFlow:
    """A load from posting to delivery."""

    def test_post_bid_accept_sign_deliver(self, facade, shipper, driver1, driver2, driver3, admin, db):
        load = facade.post_load(shipper, **load_fields(rate_cents=240000, pallet_count=22))
        bid1 = facade.submit_bid(driver1, load.id, 235000)
        bid2 = facade.submit_bid(driver2, load.id, 245000)
        facade.submit_bid(driver3, load.id, 250000)
        assert_invariants(db)

        load, _ = facade.accept_bid(shipper, bid2.id)
        assert (load.status, load.assigned_driver_id) == ("assigned", driver2.user_id)
        assert db.get(Bid, bid1.id).status == "rejected"
        assert_invariants(db)

        contract = facade.create_contract(shipper, load.id, driver2.user_id, "Standard terms")
        facade.sign_contract(shipper, contract.id, "Walmart Distribution")
        facade.sign_contract(driver2, contract.id, "Sarah Chen")
        assert db.get(Load, load.id).status == "in_transit"
        assert_invariants(db)

        done = facade.update_load_status(driver2, load.id, "completed")
        assert done.status == "completed"
        assert_invariants(db)

        trail = facade.audit_trail(admin, "load", load.id)
        assert [e.action for e in trail].count("LOAD_STATUS_UPDATED") == 3
        assert "LOAD_CREATED" in [e.action for e in trail]

    def test_failed_attempts_leave_no_trace(self, facade, shipper, driver1, driver2, load, db):
        bid1 = facade.submit_bid(driver1, load.id, 235000)
        bid2 = facade.submit_bid(driver2, load.id, 245000)
        before = db.query(AuditEntry).count()
        with pytest.raises(DuplicateBidError):
            facade.submit_bid(driver1, load.id, 1000)
        assert db.query(AuditEntry).count() == before

        facade.accept_bid(shipper, bid1.id)
        before = db.query(AuditEntry).count()
        with pytest.raises(LoadNoLongerOpenError):
            facade.accept_bid(shipper, bid2.id)
        with pytest.raises(InvalidTransitionError):
            facade.update_load_status(shipper, load.id, "completed")
        with pytest.raises(ValidationError):
            facade.post_load(shipper, **load_fields(pallet_count=99))

        assert db.query(AuditEntry).count() == before
        assert_invariants(db)

    def test_audit_snapshots_capture_before_and_after(self, facade, shipper, driver1, admin, load):
        bid = facade.submit_bid(driver1, load.id, 235000)
        facade.accept_bid(shipper, bid.id)

        entry = next(
            e for e in facade.audit_trail(admin, "load", load.id) if e.action == "LOAD_STATUS_UPDATED"
        )
        assert json.loads(entry.before_snapshot) == {"status": "open", "assigned_driver_id": None}
        assert json.loads(entry.after_snapshot) == {
            "status": "assigned",
            "assigned_driver_id": driver1.user_id,
        }
        assert entry.actor_user_id == shipper.user_id

    def test_audit_trail_is_admin_only(self, facade, shipper, admin, load):
        with pytest.raises(ForbiddenError):
            facade.audit_trail(shipper, "load", load.id)
        with pytest.raises(ValidationError):
            facade.audit_trail(admin, "user", "anyone")

    def test_independent_loads_do_not_interfere(self, facade, shipper, driver1, driver2, db):
        load_a = facade.post_load(shipper, **load_fields())
        load_b = facade.post_load(shipper, **load_fields())
        bid_a = facade.submit_bid(driver1, load_a.id, 235000)
        bid_b = facade.submit_bid(driver1, load_b.id, 236000)
        facade.submit_bid(driver2, load_b.id, 237000)

        facade.accept_bid(shipper, bid_a.id)

        assert db.get(Load, load_b.id).status == "open"
        assert db.get(Bid, bid_b.id).status == "pending"
        facade.accept_bid(shipper, bid_b.id)
        assert_invariants(db)

    def test_value_rejected_by_store_is_a_validation_error(self, facade, db):
        """Column overflow reported by the database never leaks as a raw store error."""

        def overflow():
            raise DataError(
                "INSERT INTO loads ...",
                {},
                Exception("value too long for type character varying(500)"),
            )

        with pytest.raises(ValidationError):
            facade._transaction(overflow)
        assert db.query(Load).count() == 0
