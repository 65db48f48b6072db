"""Matching facade — the single entry point into the load/bid/contract engine.

Every public method checks the actor's role once, runs the lifecycle
services inside one transaction, and either commits the whole operation
or rolls all of it back. Business rule violations surface as
``dockdirect.errors`` kinds; store connectivity failures propagate as-is.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from dockdirect.actors import Actor, AdminActor, DriverActor, ShipperActor, require_role
from dockdirect.errors import (
    ConflictError,
    DuplicateBidError,
    EngineError,
    ForbiddenError,
    ValidationError,
)
from dockdirect.models.audit_log import AuditEntry
from dockdirect.models.bid import Bid
from dockdirect.models.contract import Contract
from dockdirect.models.load import Load
from dockdirect.services import (
    audit_service,
    bid_service,
    contract_service,
    document_service,
    load_service,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUDITED_ENTITY_TYPES = ("load", "bid", "contract", "document")


class MatchingFacade:
    """Load/bid/contract operations for one request-scoped session."""

    def __init__(self, db: Session):
        self.db = db

    # ── Transaction boundary ────────────────────────────────────────────────

    def _transaction(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` and commit, or roll everything back on failure."""
        try:
            result = operation()
            self.db.commit()
        except EngineError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            if "uq_bid_load_driver" in str(e.orig) or "bids.load_id, bids.driver_id" in str(e.orig):
                raise DuplicateBidError("Driver has already bid on this load")
            logger.warning("Integrity conflict: %s", e.orig)
            raise ConflictError("The record was changed by another request; retry")
        except DataError as e:
            self.db.rollback()
            logger.warning("Value rejected by the store: %s", e.orig)
            raise ValidationError(["A value does not fit the stored field"])
        except StaleDataError:
            self.db.rollback()
            logger.warning("Optimistic version check failed")
            raise ConflictError("The record was changed by another request; retry")
        except Exception:
            self.db.rollback()
            raise
        return result

    # ── Loads ───────────────────────────────────────────────────────────────

    def post_load(self, actor: Actor, **fields) -> Load:
        require_role(actor, ShipperActor)
        load = self._transaction(lambda: load_service.create_load(self.db, actor, fields))
        self.db.refresh(load)
        return load

    def list_open_loads(self, actor: Actor) -> list[Load]:
        require_role(actor, DriverActor, AdminActor)
        return load_service.list_open_loads(self.db)

    def list_loads(self, actor: Actor, status: Optional[str] = None) -> list[Load]:
        require_role(actor, ShipperActor, DriverActor, AdminActor)
        return load_service.list_loads_for(self.db, actor, status=status)

    def get_load(self, actor: Actor, load_id: str) -> Load:
        require_role(actor, ShipperActor, DriverActor, AdminActor)
        load = load_service.get_load(self.db, load_id)
        if not load_service.can_view(actor, load):
            raise ForbiddenError("Insufficient permissions")
        return load

    def update_load_status(self, actor: Actor, load_id: str, status: str) -> Load:
        require_role(actor, ShipperActor, DriverActor, AdminActor)
        load = self._transaction(
            lambda: load_service.update_status(self.db, actor, load_id, status)
        )
        self.db.refresh(load)
        return load

    def cancel_load(self, actor: Actor, load_id: str) -> Load:
        require_role(actor, ShipperActor, AdminActor)
        load = self._transaction(lambda: load_service.cancel(self.db, actor, load_id))
        self.db.refresh(load)
        return load

    # ── Bids ────────────────────────────────────────────────────────────────

    def submit_bid(
        self,
        actor: Actor,
        load_id: str,
        amount_cents: int,
        message: Optional[str] = None,
        estimated_pickup_time: Optional[datetime] = None,
        estimated_delivery_time: Optional[datetime] = None,
    ) -> Bid:
        require_role(actor, DriverActor)
        bid = self._transaction(
            lambda: bid_service.submit_bid(
                self.db,
                actor,
                load_id,
                amount_cents,
                message=message,
                estimated_pickup_time=estimated_pickup_time,
                estimated_delivery_time=estimated_delivery_time,
            )
        )
        self.db.refresh(bid)
        return bid

    def list_bids(self, actor: Actor, load_id: str) -> list[Bid]:
        require_role(actor, ShipperActor, DriverActor, AdminActor)
        return bid_service.list_bids_for_load(self.db, actor, load_id)

    def accept_bid(self, actor: Actor, bid_id: str) -> tuple[Load, Bid]:
        require_role(actor, ShipperActor)
        load, bid = self._transaction(lambda: bid_service.accept_bid(self.db, actor, bid_id))
        self.db.refresh(load)
        self.db.refresh(bid)
        return load, bid

    # ── Contracts ───────────────────────────────────────────────────────────

    def create_contract(
        self,
        actor: Actor,
        load_id: str,
        driver_id: str,
        terms: str,
        rate_cents: Optional[int] = None,
    ) -> Contract:
        require_role(actor, ShipperActor)
        contract = self._transaction(
            lambda: contract_service.create_contract(
                self.db, actor, load_id, driver_id, terms, rate_cents=rate_cents
            )
        )
        self.db.refresh(contract)
        return contract

    def sign_contract(self, actor: Actor, contract_id: str, signature: str) -> Contract:
        require_role(actor, ShipperActor, DriverActor)
        contract = self._transaction(
            lambda: contract_service.sign(self.db, actor, contract_id, signature)
        )
        self.db.refresh(contract)
        return contract

    def void_contract(self, actor: Actor, contract_id: str) -> Contract:
        require_role(actor, ShipperActor, AdminActor)
        contract = self._transaction(
            lambda: contract_service.void_contract(self.db, actor, contract_id)
        )
        self.db.refresh(contract)
        return contract

    def get_contract(self, actor: Actor, contract_id: str) -> Contract:
        require_role(actor, ShipperActor, DriverActor, AdminActor)
        contract = contract_service.get_contract(self.db, contract_id)
        if not contract_service.can_view(actor, contract):
            raise ForbiddenError("Insufficient permissions")
        return contract

    def list_contracts(self, actor: Actor) -> list[Contract]:
        require_role(actor, ShipperActor, DriverActor, AdminActor)
        return contract_service.list_contracts_for(self.db, actor)

    # ── Audit / documents ───────────────────────────────────────────────────

    def audit_trail(self, actor: Actor, entity_type: str, entity_id: str) -> list[AuditEntry]:
        require_role(actor, AdminActor)
        if entity_type not in AUDITED_ENTITY_TYPES:
            raise ValidationError([f"Unknown audited entity type '{entity_type}'"])
        return audit_service.entries_for(self.db, entity_type, entity_id)

    def document_requests(self, actor: Actor, load_id: str):
        load = self.get_load(actor, load_id)
        return document_service.documents_for_load(self.db, load.id)
