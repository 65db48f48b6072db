"""Audit trail response schemas."""

import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AuditEntryResponse(BaseModel):
    id: str
    actor_user_id: str
    action: str
    entity_type: str
    entity_id: str
    before: Optional[dict]
    after: Optional[dict]
    created_at: datetime

    @classmethod
    def from_entry(cls, entry) -> "AuditEntryResponse":
        return cls(
            id=entry.id,
            actor_user_id=entry.actor_user_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            before=json.loads(entry.before_snapshot) if entry.before_snapshot else None,
            after=json.loads(entry.after_snapshot) if entry.after_snapshot else None,
            created_at=entry.created_at,
        )
