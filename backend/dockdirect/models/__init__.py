"""SQLAlchemy ORM models."""

from dockdirect.models.load import Load
from dockdirect.models.bid import Bid
from dockdirect.models.contract import Contract
from dockdirect.models.document import Document
from dockdirect.models.audit_log import AuditEntry

__all__ = [
    "Load",
    "Bid",
    "Contract",
    "Document",
    "AuditEntry",
]
