"""Bid service — submitting bids and resolving them into a single winner."""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from dockdirect.actors import Actor, AdminActor, DriverActor, ShipperActor
from dockdirect.config import settings
from dockdirect.errors import (
    DuplicateBidError,
    ForbiddenError,
    InvalidTransitionError,
    LoadNoLongerOpenError,
    LoadNotOpenError,
    ValidationError,
)
from dockdirect.models.bid import Bid
from dockdirect.models.load import Load
from dockdirect.services import audit_service, document_service
from dockdirect.states import BID_TRANSITIONS, BidStatus, LoadStatus, can_transition
from dockdirect.store import (
    as_utc,
    claim_open_load,
    compare_and_set_load_status,
    get_or_404,
    lock_load,
    snapshot,
    utcnow,
)

logger = logging.getLogger(__name__)


def _validate_bid(
    amount_cents,
    message: Optional[str],
    estimated_pickup_time: Optional[datetime],
    estimated_delivery_time: Optional[datetime],
) -> list[str]:
    errors = []
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool) or amount_cents <= 0:
        errors.append("Bid amount must be a positive amount in cents")
    elif amount_cents > settings.MAX_RATE_CENTS:
        errors.append(f"Bid amount must not exceed {settings.MAX_RATE_CENTS} cents")
    if message is not None and len(message) > settings.BID_MESSAGE_MAX_LENGTH:
        errors.append(
            f"Bid message must be at most {settings.BID_MESSAGE_MAX_LENGTH} characters"
        )
    if estimated_pickup_time and estimated_delivery_time:
        if as_utc(estimated_delivery_time) < as_utc(estimated_pickup_time):
            errors.append("Estimated delivery must not be before estimated pickup")
    return errors


def _bidding_closed(load: Load) -> bool:
    """Declarative window check: bids are taken until the pickup date."""
    if not settings.ENFORCE_BIDDING_WINDOW or load.pickup_date is None:
        return False
    return utcnow() >= as_utc(load.pickup_date)


def submit_bid(
    db: Session,
    actor: Actor,
    load_id: str,
    amount_cents: int,
    message: Optional[str] = None,
    estimated_pickup_time: Optional[datetime] = None,
    estimated_delivery_time: Optional[datetime] = None,
) -> Bid:
    """Place a pending bid on an open load. One bid per driver per load."""
    if not isinstance(actor, DriverActor):
        raise ForbiddenError("Only drivers can bid on loads")

    load = lock_load(db, load_id)
    if load.status != LoadStatus.OPEN.value:
        raise LoadNotOpenError(f"Load {load_id} is not open for bidding (status: {load.status})")
    if _bidding_closed(load):
        raise LoadNotOpenError(f"Bidding on load {load_id} closed at pickup time")

    existing = (
        db.query(Bid)
        .filter(Bid.load_id == load_id, Bid.driver_id == actor.user_id)
        .first()
    )
    if existing:
        raise DuplicateBidError(f"Driver {actor.user_id} has already bid on load {load_id}")

    errors = _validate_bid(amount_cents, message, estimated_pickup_time, estimated_delivery_time)
    if errors:
        raise ValidationError(errors)

    # First write of the transaction: fails if the load left open after our read
    if not claim_open_load(db, load):
        db.refresh(load)
        raise LoadNotOpenError(
            f"Load {load_id} is no longer open for bidding (status: {load.status})"
        )

    bid = Bid(
        id=str(uuid.uuid4()),
        load_id=load_id,
        driver_id=actor.user_id,
        bid_amount_cents=amount_cents,
        message=message,
        status=BidStatus.PENDING.value,
        estimated_pickup_time=estimated_pickup_time,
        estimated_delivery_time=estimated_delivery_time,
    )
    db.add(bid)
    # A concurrent duplicate surfaces here as an IntegrityError on uq_bid_load_driver
    db.flush()

    audit_service.record(
        db,
        actor,
        audit_service.BID_CREATED,
        "bid",
        bid.id,
        after=snapshot(bid),
    )
    logger.info("Bid created: %s by %s on load %s", bid.id, actor.user_id, load_id)
    return bid


def accept_bid(db: Session, actor: Actor, bid_id: str) -> tuple[Load, Bid]:
    """Accept one bid and reject every other pending bid on the same load.

    Steps, all within the caller's transaction:
    1. Re-read the bid and lock the load row
    2. Check ownership and that the load is still open
    3. Conditionally move the load open -> assigned (the winner check)
    4. Mark the bid accepted, reject the rivals
    5. Audit every affected entity and request a rate confirmation

    Losing the race at step 3 raises LoadNoLongerOpenError before anything
    else has been written.
    """
    if not isinstance(actor, ShipperActor):
        raise ForbiddenError("Only shippers can accept bids")

    bid = get_or_404(db, Bid, bid_id, "bid")
    db.refresh(bid)
    load = lock_load(db, bid.load_id)

    if load.shipper_id != actor.user_id:
        raise ForbiddenError("Only the load's shipper can accept its bids")
    if load.status != LoadStatus.OPEN.value:
        raise LoadNoLongerOpenError(
            f"Load {load.id} is no longer open (status: {load.status})"
        )
    if not can_transition(BID_TRANSITIONS, bid.status, BidStatus.ACCEPTED.value):
        raise InvalidTransitionError("bid", bid.status, BidStatus.ACCEPTED.value)

    load_before = snapshot(load, ["status", "assigned_driver_id"])
    won = compare_and_set_load_status(
        db,
        load,
        expected_status=LoadStatus.OPEN.value,
        new_status=LoadStatus.ASSIGNED.value,
        assigned_driver_id=bid.driver_id,
    )
    if not won:
        logger.warning("Lost acceptance race for load %s (bid %s)", load.id, bid.id)
        raise LoadNoLongerOpenError(f"Load {load.id} was assigned or cancelled concurrently")

    audit_service.record(
        db,
        actor,
        audit_service.LOAD_STATUS_UPDATED,
        "load",
        load.id,
        before=load_before,
        after=snapshot(load, ["status", "assigned_driver_id"]),
    )

    bid.status = BidStatus.ACCEPTED.value
    audit_service.record(
        db,
        actor,
        audit_service.BID_ACCEPTED,
        "bid",
        bid.id,
        before={"status": BidStatus.PENDING.value},
        after={"status": bid.status},
    )

    rivals = (
        db.query(Bid)
        .filter(
            Bid.load_id == load.id,
            Bid.id != bid.id,
            Bid.status == BidStatus.PENDING.value,
        )
        .all()
    )
    for rival in rivals:
        rival.status = BidStatus.REJECTED.value
        audit_service.record(
            db,
            actor,
            audit_service.BID_REJECTED,
            "bid",
            rival.id,
            before={"status": BidStatus.PENDING.value},
            after={"status": rival.status, "reason": "another_bid_accepted"},
        )

    document_service.request_document(db, actor, load.id, document_service.RATE_CONFIRM)
    db.flush()

    logger.info(
        "Bid accepted: %s by %s (load %s, %d rivals rejected)",
        bid.id,
        actor.user_id,
        load.id,
        len(rivals),
    )
    return load, bid


def get_bid(db: Session, bid_id: str) -> Bid:
    return get_or_404(db, Bid, bid_id, "bid")


def accepted_bid_for(db: Session, load_id: str) -> Optional[Bid]:
    return (
        db.query(Bid)
        .filter(Bid.load_id == load_id, Bid.status == BidStatus.ACCEPTED.value)
        .first()
    )


def list_bids_for_load(db: Session, actor: Actor, load_id: str) -> list[Bid]:
    """Bids on a load: all of them for its shipper or an admin, own bid for a driver."""
    load = get_or_404(db, Load, load_id, "load")
    query = db.query(Bid).filter(Bid.load_id == load_id)
    if isinstance(actor, DriverActor):
        query = query.filter(Bid.driver_id == actor.user_id)
    elif isinstance(actor, ShipperActor):
        if load.shipper_id != actor.user_id:
            raise ForbiddenError("Only the load's shipper can view its bids")
    elif not isinstance(actor, AdminActor):
        raise ForbiddenError("Insufficient permissions")
    return query.order_by(Bid.bid_amount_cents.asc(), Bid.created_at.asc()).all()
