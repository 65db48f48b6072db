"""Status values and transition tables for loads, bids and contracts.

Load lifecycle:
    open → assigned → in_transit → completed
    open | assigned → cancelled

Bid lifecycle:
    pending → accepted | rejected
    accepted → rejected (only when the assigned load is cancelled)

Contract lifecycle:
    pending → signed | void

Pure data: nothing here touches the database. The services decide who
may request a transition; these tables only say which edges exist.
"""

from __future__ import annotations

import enum


class LoadStatus(str, enum.Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BidStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ContractStatus(str, enum.Enum):
    PENDING = "pending"
    SIGNED = "signed"
    VOID = "void"


class LoadType(str, enum.Enum):
    DRY = "dry"
    REFRIGERATED = "refrigerated"
    HAZMAT = "hazmat"
    FLATBED = "flatbed"
    STEP_DECK = "step_deck"


# Valid transitions: {from_state: {allowed_to_states}}
LOAD_TRANSITIONS: dict[LoadStatus, set[LoadStatus]] = {
    LoadStatus.OPEN: {LoadStatus.ASSIGNED, LoadStatus.CANCELLED},
    LoadStatus.ASSIGNED: {LoadStatus.IN_TRANSIT, LoadStatus.CANCELLED},
    LoadStatus.IN_TRANSIT: {LoadStatus.COMPLETED},
    # Terminal states — no outgoing transitions
    LoadStatus.COMPLETED: set(),
    LoadStatus.CANCELLED: set(),
}

BID_TRANSITIONS: dict[BidStatus, set[BidStatus]] = {
    BidStatus.PENDING: {BidStatus.ACCEPTED, BidStatus.REJECTED},
    BidStatus.ACCEPTED: {BidStatus.REJECTED},
    BidStatus.REJECTED: set(),
}

CONTRACT_TRANSITIONS: dict[ContractStatus, set[ContractStatus]] = {
    ContractStatus.PENDING: {ContractStatus.SIGNED, ContractStatus.VOID},
    ContractStatus.SIGNED: set(),
    ContractStatus.VOID: set(),
}

# Statuses in which a load must carry an assigned driver
ASSIGNED_STATUSES = frozenset(
    {LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT, LoadStatus.COMPLETED}
)


def parse_load_status(value: str) -> LoadStatus:
    """Coerce a raw status string, raising ValueError for unknown values."""
    try:
        return LoadStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in LoadStatus)
        raise ValueError(f"Unknown load status '{value}'. Allowed: [{allowed}]")


def can_transition(table: dict, current: str, target: str) -> bool:
    """True if ``current -> target`` is an edge of ``table``."""
    for source, targets in table.items():
        if source.value == current:
            return any(t.value == target for t in targets)
    return False
