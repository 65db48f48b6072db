"""Audit entry model — immutable record of every state change."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text

from dockdirect.database import Base


class AuditEntry(Base):
    __tablename__ = "audit_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    actor_user_id = Column(String(36), nullable=False)
    action = Column(String(50), nullable=False)  # LOAD_CREATED | BID_ACCEPTED | CONTRACT_SIGNED | ...
    entity_type = Column(String(20), nullable=False, index=True)  # load | bid | contract | document
    entity_id = Column(String(36), nullable=False, index=True)
    before_snapshot = Column(Text, nullable=True)  # JSON string
    after_snapshot = Column(Text, nullable=True)   # JSON string
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
