"""Document requests — the engine's hand-off to the document collaborator."""

import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from dockdirect.actors import Actor
from dockdirect.models.document import Document
from dockdirect.services import audit_service

logger = logging.getLogger(__name__)

RATE_CONFIRM = "rate_confirm"
CONTRACT = "contract"


def request_document(
    db: Session,
    actor: Actor,
    load_id: str,
    doc_type: str,
    contract_id: Optional[str] = None,
) -> Document:
    """Record that a document should be produced for a load."""
    document = Document(
        id=str(uuid.uuid4()),
        load_id=load_id,
        contract_id=contract_id,
        doc_type=doc_type,
        status="requested",
        requested_by=actor.user_id,
    )
    db.add(document)
    audit_service.record(
        db,
        actor,
        audit_service.DOCUMENT_REQUESTED,
        "document",
        document.id,
        after={
            "load_id": load_id,
            "contract_id": contract_id,
            "doc_type": doc_type,
            "status": "requested",
        },
    )
    logger.info("Document requested: %s for load %s", doc_type, load_id)
    return document


def documents_for_load(db: Session, load_id: str) -> list[Document]:
    return (
        db.query(Document)
        .filter(Document.load_id == load_id)
        .order_by(Document.created_at.asc())
        .all()
    )
