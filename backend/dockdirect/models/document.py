"""Document request model — records that a file should be produced.

Rendering and storing the file belongs to the document service; the
engine only leaves a request behind in the same transaction.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey

from dockdirect.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    load_id = Column(String(36), ForeignKey("loads.id"), nullable=False, index=True)
    contract_id = Column(String(36), ForeignKey("contracts.id"), nullable=True)
    doc_type = Column(String(30), nullable=False)  # rate_confirm | contract
    status = Column(String(20), nullable=False, default="requested")
    requested_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
