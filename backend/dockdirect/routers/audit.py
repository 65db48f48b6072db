"""Audit router — read-only access to the audit trail (admin only)."""

from fastapi import APIRouter, Depends

from dockdirect.actors import Actor
from dockdirect.middleware.auth import get_current_actor
from dockdirect.routers.deps import get_matching
from dockdirect.schemas.audit import AuditEntryResponse
from dockdirect.services.matching import MatchingFacade

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/{entity_type}/{entity_id}", response_model=list[AuditEntryResponse])
def audit_trail(
    entity_type: str,
    entity_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    entries = matching.audit_trail(actor, entity_type, entity_id)
    return [AuditEntryResponse.from_entry(e) for e in entries]
