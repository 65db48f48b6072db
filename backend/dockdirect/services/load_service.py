"""Load service — creation, status transitions and cancellation of loads."""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from dockdirect.actors import Actor, AdminActor, DriverActor, ShipperActor, SystemActor
from dockdirect.config import settings
from dockdirect.errors import ForbiddenError, InvalidTransitionError, ValidationError
from dockdirect.models.bid import Bid
from dockdirect.models.load import Load
from dockdirect.services import audit_service
from dockdirect.states import (
    LOAD_TRANSITIONS,
    BidStatus,
    LoadStatus,
    LoadType,
    can_transition,
    parse_load_status,
)
from dockdirect.store import as_utc, get_or_404, lock_load, snapshot

logger = logging.getLogger(__name__)

# Fields a shipper may set when posting a load
LOAD_FIELDS = (
    "title",
    "origin_address",
    "destination_address",
    "pallet_count",
    "weight",
    "load_type",
    "rate_cents",
    "description",
    "payment_terms",
    "special_requirements",
    "is_urgent",
    "pickup_date",
    "delivery_date",
)

_STATUS_FIELDS = ["status", "assigned_driver_id"]

# (field, label, required, settings attribute holding the column width)
_TEXT_FIELDS = (
    ("origin_address", "Origin address", True, "ADDRESS_MAX_LENGTH"),
    ("destination_address", "Destination address", True, "ADDRESS_MAX_LENGTH"),
    ("weight", "Weight", True, "WEIGHT_MAX_LENGTH"),
    ("title", "Title", False, "TITLE_MAX_LENGTH"),
    ("payment_terms", "Payment terms", False, "PAYMENT_TERMS_MAX_LENGTH"),
    ("description", "Description", False, None),
    ("special_requirements", "Special requirements", False, None),
)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _text_errors(fields: dict) -> list[str]:
    errors = []
    for name, label, required, limit_name in _TEXT_FIELDS:
        value = fields.get(name)
        if _is_blank(value):
            if required:
                errors.append(f"{label} is required")
            continue
        if not isinstance(value, str):
            errors.append(f"{label} must be text")
            continue
        if limit_name is not None:
            limit = getattr(settings, limit_name)
            if len(value.strip()) > limit:
                errors.append(f"{label} must be at most {limit} characters")
    return errors


def validate_load_fields(fields: dict) -> list[str]:
    """Return every violated constraint (empty list = valid)."""
    errors = _text_errors(fields)

    pallet_count = fields.get("pallet_count")
    if not _is_positive_int(pallet_count) or pallet_count > settings.MAX_PALLET_COUNT:
        errors.append(f"Pallet count must be between 1 and {settings.MAX_PALLET_COUNT}")

    rate_cents = fields.get("rate_cents")
    if not _is_positive_int(rate_cents):
        errors.append("Rate must be a positive amount in cents")
    elif rate_cents > settings.MAX_RATE_CENTS:
        errors.append(f"Rate must not exceed {settings.MAX_RATE_CENTS} cents")

    load_type = fields.get("load_type") or LoadType.DRY.value
    if not isinstance(load_type, str) or load_type not in {t.value for t in LoadType}:
        allowed = ", ".join(t.value for t in LoadType)
        errors.append(f"Load type must be one of: {allowed}")

    pickup = fields.get("pickup_date")
    delivery = fields.get("delivery_date")
    for name, value in (("Pickup date", pickup), ("Delivery date", delivery)):
        if value is not None and not isinstance(value, datetime):
            errors.append(f"{name} must be a datetime")
    if isinstance(pickup, datetime) and isinstance(delivery, datetime):
        if as_utc(delivery) < as_utc(pickup):
            errors.append("Delivery date must not be before pickup date")

    unknown = set(fields) - set(LOAD_FIELDS)
    if unknown:
        errors.append(f"Unknown load fields: {', '.join(sorted(unknown))}")

    return errors


def create_load(db: Session, actor: Actor, fields: dict) -> Load:
    """Create a load in ``open`` status for the posting shipper."""
    if not isinstance(actor, ShipperActor):
        raise ForbiddenError("Only shippers can post loads")

    errors = validate_load_fields(fields)
    if errors:
        raise ValidationError(errors)

    load = Load(
        id=str(uuid.uuid4()),
        shipper_id=actor.user_id,
        assigned_driver_id=None,
        title=fields.get("title"),
        origin_address=fields["origin_address"].strip(),
        destination_address=fields["destination_address"].strip(),
        pallet_count=fields["pallet_count"],
        weight=fields["weight"].strip(),
        load_type=fields.get("load_type") or LoadType.DRY.value,
        rate_cents=fields["rate_cents"],
        description=fields.get("description"),
        payment_terms=fields.get("payment_terms"),
        special_requirements=fields.get("special_requirements"),
        status=LoadStatus.OPEN.value,
        is_urgent=bool(fields.get("is_urgent", False)),
        pickup_date=fields.get("pickup_date"),
        delivery_date=fields.get("delivery_date"),
    )
    db.add(load)
    db.flush()

    audit_service.record(
        db,
        actor,
        audit_service.LOAD_CREATED,
        "load",
        load.id,
        after=snapshot(load),
    )
    logger.info("Load created: %s by %s", load.id, actor.user_id)
    return load


def get_load(db: Session, load_id: str) -> Load:
    return get_or_404(db, Load, load_id, "load")


def _may_update(actor: Actor, load: Load) -> bool:
    if isinstance(actor, (AdminActor, SystemActor)):
        return True
    if isinstance(actor, ShipperActor):
        return load.shipper_id == actor.user_id
    if isinstance(actor, DriverActor):
        return load.assigned_driver_id is not None and load.assigned_driver_id == actor.user_id
    return False


def _may_cancel(actor: Actor, load: Load) -> bool:
    if isinstance(actor, (AdminActor, SystemActor)):
        return True
    return isinstance(actor, ShipperActor) and load.shipper_id == actor.user_id


def update_status(db: Session, actor: Actor, load_id: str, new_status: str) -> Load:
    """Apply an explicit status change requested by a participant.

    ``open -> assigned`` only happens through bid acceptance, so asking for
    it here is rejected as an illegal transition. Cancellation is routed
    through ``cancel`` so that open bids are closed out with the load.
    """
    load = get_load(db, load_id)
    try:
        target = parse_load_status(new_status)
    except ValueError as e:
        raise ValidationError([str(e)])

    if not _may_update(actor, load):
        raise ForbiddenError("Only the load's shipper, its assigned driver or an admin may update it")

    if target == LoadStatus.CANCELLED:
        return cancel(db, actor, load_id)

    if target == LoadStatus.ASSIGNED or not can_transition(LOAD_TRANSITIONS, load.status, target.value):
        raise InvalidTransitionError("load", load.status, target.value)

    before = snapshot(load, _STATUS_FIELDS)
    load.status = target.value
    db.flush()

    audit_service.record(
        db,
        actor,
        audit_service.LOAD_STATUS_UPDATED,
        "load",
        load.id,
        before=before,
        after=snapshot(load, _STATUS_FIELDS),
    )
    logger.info("Load status updated: %s %s -> %s by %s", load.id, before["status"], load.status, actor.user_id)
    return load


def cancel(db: Session, actor: Actor, load_id: str) -> Load:
    """Cancel a load and close out everything hanging off it.

    Pending bids become rejected. If the load had already been assigned,
    the accepted bid is rejected too, the driver is unassigned and any
    pending contract is voided.
    """
    # Imported here: contract_service depends on this module
    from dockdirect.services import contract_service

    load = lock_load(db, load_id)
    if not _may_cancel(actor, load):
        raise ForbiddenError("Only the load's shipper or an admin may cancel it")
    if not can_transition(LOAD_TRANSITIONS, load.status, LoadStatus.CANCELLED.value):
        raise InvalidTransitionError("load", load.status, LoadStatus.CANCELLED.value)

    before = snapshot(load, _STATUS_FIELDS)

    live_bids = (
        db.query(Bid)
        .filter(
            Bid.load_id == load.id,
            Bid.status.in_([BidStatus.PENDING.value, BidStatus.ACCEPTED.value]),
        )
        .all()
    )
    for bid in live_bids:
        bid_before = {"status": bid.status}
        bid.status = BidStatus.REJECTED.value
        audit_service.record(
            db,
            actor,
            audit_service.BID_REJECTED,
            "bid",
            bid.id,
            before=bid_before,
            after={"status": bid.status, "reason": "load_cancelled"},
        )

    contract_service.void_pending_for_load(db, actor, load.id)

    load.status = LoadStatus.CANCELLED.value
    load.assigned_driver_id = None
    db.flush()

    audit_service.record(
        db,
        actor,
        audit_service.LOAD_STATUS_UPDATED,
        "load",
        load.id,
        before=before,
        after=snapshot(load, _STATUS_FIELDS),
    )
    logger.info(
        "Load cancelled: %s by %s (%d bids rejected)", load.id, actor.user_id, len(live_bids)
    )
    return load


def list_open_loads(db: Session) -> list[Load]:
    """Loads still accepting bids, urgent ones first."""
    return (
        db.query(Load)
        .filter(Load.status == LoadStatus.OPEN.value)
        .order_by(Load.is_urgent.desc(), Load.created_at.desc())
        .all()
    )


def list_loads_for(db: Session, actor: Actor, status: Optional[str] = None) -> list[Load]:
    """Loads visible to ``actor``.

    Shippers see their own loads, drivers see open loads plus the ones
    assigned to them, admins see everything.
    """
    query = db.query(Load)
    if isinstance(actor, ShipperActor):
        query = query.filter(Load.shipper_id == actor.user_id)
    elif isinstance(actor, DriverActor):
        query = query.filter(
            (Load.status == LoadStatus.OPEN.value) | (Load.assigned_driver_id == actor.user_id)
        )
    elif not isinstance(actor, AdminActor):
        raise ForbiddenError("Insufficient permissions")
    if status:
        query = query.filter(Load.status == status)
    return query.order_by(Load.created_at.desc()).all()


def can_view(actor: Actor, load: Load) -> bool:
    if isinstance(actor, (AdminActor, SystemActor)):
        return True
    if isinstance(actor, ShipperActor):
        return load.shipper_id == actor.user_id
    if isinstance(actor, DriverActor):
        return load.status == LoadStatus.OPEN.value or load.assigned_driver_id == actor.user_id
    return False
