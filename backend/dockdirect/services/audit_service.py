"""Audit recorder — appends immutable entries inside the caller's transaction."""

import json
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from dockdirect.actors import Actor
from dockdirect.models.audit_log import AuditEntry

LOAD_CREATED = "LOAD_CREATED"
LOAD_STATUS_UPDATED = "LOAD_STATUS_UPDATED"
BID_CREATED = "BID_CREATED"
BID_ACCEPTED = "BID_ACCEPTED"
BID_REJECTED = "BID_REJECTED"
CONTRACT_CREATED = "CONTRACT_CREATED"
CONTRACT_SIGNED = "CONTRACT_SIGNED"
CONTRACT_VOIDED = "CONTRACT_VOIDED"
DOCUMENT_REQUESTED = "DOCUMENT_REQUESTED"


def record(
    db: Session,
    actor: Actor,
    action: str,
    entity_type: str,
    entity_id: str,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
) -> AuditEntry:
    """Stage an audit entry.

    Never commits: the entry becomes durable together with the change it
    describes, and disappears with it on rollback.
    """
    entry = AuditEntry(
        id=str(uuid.uuid4()),
        actor_user_id=actor.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before_snapshot=json.dumps(before) if before is not None else None,
        after_snapshot=json.dumps(after) if after is not None else None,
    )
    db.add(entry)
    return entry


def entries_for(db: Session, entity_type: str, entity_id: str) -> list[AuditEntry]:
    """Audit trail for one entity, oldest first."""
    return (
        db.query(AuditEntry)
        .filter(AuditEntry.entity_type == entity_type, AuditEntry.entity_id == entity_id)
        .order_by(AuditEntry.created_at.asc())
        .all()
    )
