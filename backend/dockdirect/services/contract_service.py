"""Contract service — creation, dual signatures and voiding of contracts."""

import logging
import secrets
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from dockdirect.actors import SYSTEM, Actor, AdminActor, DriverActor, ShipperActor, SystemActor
from dockdirect.config import settings
from dockdirect.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    LoadNotAssignedError,
    ValidationError,
)
from dockdirect.models.contract import Contract
from dockdirect.models.load import Load
from dockdirect.services import audit_service, bid_service, document_service, load_service
from dockdirect.states import CONTRACT_TRANSITIONS, ContractStatus, LoadStatus, can_transition
from dockdirect.store import get_or_404, snapshot, utcnow

logger = logging.getLogger(__name__)

_SIGNATURE_FIELDS = [
    "status",
    "shipper_signed_at",
    "shipper_signature",
    "driver_signed_at",
    "driver_signature",
]


def generate_contract_number() -> str:
    """Human-readable, collision-resistant number, e.g. ``CON-2026-9F3A61C2``.

    Random rather than sequential so contracts on unrelated loads never
    contend on a shared counter.
    """
    year = utcnow().year
    return f"{settings.CONTRACT_NUMBER_PREFIX}-{year}-{secrets.token_hex(4).upper()}"


def active_contract_for(db: Session, load_id: str) -> Optional[Contract]:
    """The load's non-void contract, if any."""
    return (
        db.query(Contract)
        .filter(Contract.load_id == load_id, Contract.status != ContractStatus.VOID.value)
        .first()
    )


def create_contract(
    db: Session,
    actor: Actor,
    load_id: str,
    driver_id: str,
    terms: str,
    rate_cents: Optional[int] = None,
) -> Contract:
    """Draft a pending contract between a load's shipper and its assigned driver."""
    if not isinstance(actor, ShipperActor):
        raise ForbiddenError("Only shippers can create contracts")

    load = get_or_404(db, Load, load_id, "load")
    if load.shipper_id != actor.user_id:
        raise ForbiddenError("Only the load's shipper can create its contract")
    if load.status != LoadStatus.ASSIGNED.value or load.assigned_driver_id != driver_id:
        raise LoadNotAssignedError(
            f"Load {load_id} is not assigned to driver {driver_id} (status: {load.status})"
        )
    if active_contract_for(db, load_id) is not None:
        raise ConflictError(f"Load {load_id} already has an active contract")

    if rate_cents is None:
        accepted = bid_service.accepted_bid_for(db, load_id)
        rate_cents = accepted.bid_amount_cents if accepted else load.rate_cents

    errors = []
    if terms is None or not terms.strip():
        errors.append("Contract terms are required")
    if not isinstance(rate_cents, int) or isinstance(rate_cents, bool) or rate_cents <= 0:
        errors.append("Contract rate must be a positive amount in cents")
    if errors:
        raise ValidationError(errors)

    contract = Contract(
        id=str(uuid.uuid4()),
        load_id=load_id,
        shipper_id=load.shipper_id,
        driver_id=driver_id,
        contract_number=generate_contract_number(),
        terms=terms.strip(),
        rate_cents=rate_cents,
        status=ContractStatus.PENDING.value,
    )
    db.add(contract)
    db.flush()

    audit_service.record(
        db,
        actor,
        audit_service.CONTRACT_CREATED,
        "contract",
        contract.id,
        after=snapshot(contract),
    )
    logger.info("Contract created: %s (%s) for load %s", contract.id, contract.contract_number, load_id)
    return contract


def get_contract(db: Session, contract_id: str) -> Contract:
    return get_or_404(db, Contract, contract_id, "contract")


def _signing_party(actor: Actor, contract: Contract) -> str:
    if isinstance(actor, ShipperActor) and actor.user_id == contract.shipper_id:
        return "shipper"
    if isinstance(actor, DriverActor) and actor.user_id == contract.driver_id:
        return "driver"
    raise ForbiddenError("Only the contract's shipper or driver can sign it")


def sign(db: Session, actor: Actor, contract_id: str, signature_text: str) -> Contract:
    """Add the actor's signature; the second signature makes the contract binding.

    Re-signing by a party that already signed changes nothing and records
    nothing. When both parties have signed, the contract becomes ``signed``
    and its load moves to ``in_transit`` in the same transaction.
    """
    contract = get_contract(db, contract_id)
    db.refresh(contract)
    party = _signing_party(actor, contract)

    if getattr(contract, f"{party}_signed_at") is not None:
        return contract
    if not can_transition(CONTRACT_TRANSITIONS, contract.status, ContractStatus.SIGNED.value):
        raise InvalidTransitionError("contract", contract.status, ContractStatus.SIGNED.value)
    if signature_text is None or not signature_text.strip():
        raise ValidationError(["Signature is required"])
    if len(signature_text.strip()) > settings.SIGNATURE_MAX_LENGTH:
        raise ValidationError(
            [f"Signature must be at most {settings.SIGNATURE_MAX_LENGTH} characters"]
        )

    before = snapshot(contract, _SIGNATURE_FIELDS)
    setattr(contract, f"{party}_signed_at", utcnow())
    setattr(contract, f"{party}_signature", signature_text.strip())

    completed = contract.shipper_signed_at is not None and contract.driver_signed_at is not None
    if completed:
        contract.status = ContractStatus.SIGNED.value
    # Version check: a concurrent counter-signature raises StaleDataError here
    db.flush()

    audit_service.record(
        db,
        actor,
        audit_service.CONTRACT_SIGNED,
        "contract",
        contract.id,
        before=before,
        after=dict(snapshot(contract, _SIGNATURE_FIELDS), party=party),
    )
    logger.info("Contract %s signed by %s (%s)", contract.contract_number, party, actor.user_id)

    if completed:
        load = load_service.get_load(db, contract.load_id)
        if load.status == LoadStatus.ASSIGNED.value:
            load_service.update_status(db, SYSTEM, load.id, LoadStatus.IN_TRANSIT.value)
        document_service.request_document(
            db, SYSTEM, contract.load_id, document_service.CONTRACT, contract_id=contract.id
        )
        logger.info("Contract fully executed: %s", contract.contract_number)

    return contract


def _void(db: Session, actor: Actor, contract: Contract) -> Contract:
    before = snapshot(contract, ["status", "voided_at"])
    contract.status = ContractStatus.VOID.value
    contract.voided_at = utcnow()
    db.flush()
    audit_service.record(
        db,
        actor,
        audit_service.CONTRACT_VOIDED,
        "contract",
        contract.id,
        before=before,
        after=snapshot(contract, ["status", "voided_at"]),
    )
    logger.info("Contract voided: %s by %s", contract.contract_number, actor.user_id)
    return contract


def void_contract(db: Session, actor: Actor, contract_id: str) -> Contract:
    """Explicitly cancel a pending contract (its shipper or an admin)."""
    contract = get_contract(db, contract_id)
    db.refresh(contract)
    is_owner = isinstance(actor, ShipperActor) and actor.user_id == contract.shipper_id
    if not (is_owner or isinstance(actor, (AdminActor, SystemActor))):
        raise ForbiddenError("Only the contract's shipper or an admin can void it")
    if not can_transition(CONTRACT_TRANSITIONS, contract.status, ContractStatus.VOID.value):
        raise InvalidTransitionError("contract", contract.status, ContractStatus.VOID.value)
    return _void(db, actor, contract)


def void_pending_for_load(db: Session, actor: Actor, load_id: str) -> list[Contract]:
    """Void every pending contract of a load that is being cancelled."""
    pending = (
        db.query(Contract)
        .filter(Contract.load_id == load_id, Contract.status == ContractStatus.PENDING.value)
        .all()
    )
    return [_void(db, actor, contract) for contract in pending]


def can_view(actor: Actor, contract: Contract) -> bool:
    if isinstance(actor, (AdminActor, SystemActor)):
        return True
    if isinstance(actor, ShipperActor):
        return contract.shipper_id == actor.user_id
    if isinstance(actor, DriverActor):
        return contract.driver_id == actor.user_id
    return False


def list_contracts_for(db: Session, actor: Actor) -> list[Contract]:
    query = db.query(Contract)
    if isinstance(actor, ShipperActor):
        query = query.filter(Contract.shipper_id == actor.user_id)
    elif isinstance(actor, DriverActor):
        query = query.filter(Contract.driver_id == actor.user_id)
    elif not isinstance(actor, AdminActor):
        raise ForbiddenError("Insufficient permissions")
    return query.order_by(Contract.created_at.desc()).all()
