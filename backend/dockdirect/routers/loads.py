"""Loads router — posting, listing, status updates, cancellation and bidding."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dockdirect.actors import Actor
from dockdirect.middleware.auth import get_current_actor
from dockdirect.routers.deps import get_matching
from dockdirect.schemas.bid import BidCreate, BidResponse
from dockdirect.schemas.load import (
    DocumentResponse,
    LoadCreate,
    LoadListResponse,
    LoadResponse,
    LoadStatusUpdate,
)
from dockdirect.services.matching import MatchingFacade

router = APIRouter(prefix="/api/loads", tags=["loads"])


@router.post("", response_model=LoadResponse, status_code=201)
def post_load(
    req: LoadCreate,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Post a new load (shipper only)."""
    load = matching.post_load(actor, **req.model_dump(exclude_unset=True))
    return LoadResponse.model_validate(load)


@router.get("", response_model=LoadListResponse)
def list_loads(
    status: Optional[str] = Query(None),
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Loads visible to the caller."""
    loads = matching.list_loads(actor, status=status)
    return LoadListResponse(
        loads=[LoadResponse.model_validate(load) for load in loads],
        total=len(loads),
    )


@router.get("/open", response_model=LoadListResponse)
def list_open_loads(
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Loads open for bidding (drivers and admins)."""
    loads = matching.list_open_loads(actor)
    return LoadListResponse(
        loads=[LoadResponse.model_validate(load) for load in loads],
        total=len(loads),
    )


@router.get("/{load_id}", response_model=LoadResponse)
def get_load(
    load_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    return LoadResponse.model_validate(matching.get_load(actor, load_id))


@router.patch("/{load_id}/status", response_model=LoadResponse)
def update_load_status(
    load_id: str,
    req: LoadStatusUpdate,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Move a load along its lifecycle."""
    load = matching.update_load_status(actor, load_id, req.status)
    return LoadResponse.model_validate(load)


@router.post("/{load_id}/cancel", response_model=LoadResponse)
def cancel_load(
    load_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Cancel a load and reject its open bids (shipper or admin)."""
    return LoadResponse.model_validate(matching.cancel_load(actor, load_id))


@router.post("/{load_id}/bids", response_model=BidResponse, status_code=201)
def submit_bid(
    load_id: str,
    req: BidCreate,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Bid on an open load (driver only)."""
    bid = matching.submit_bid(
        actor,
        load_id,
        req.amount_cents,
        message=req.message,
        estimated_pickup_time=req.estimated_pickup_time,
        estimated_delivery_time=req.estimated_delivery_time,
    )
    return BidResponse.model_validate(bid)


@router.get("/{load_id}/bids", response_model=list[BidResponse])
def list_bids(
    load_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    return [BidResponse.model_validate(bid) for bid in matching.list_bids(actor, load_id)]


@router.get("/{load_id}/documents", response_model=list[DocumentResponse])
def list_document_requests(
    load_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Documents the engine has asked the document service to produce."""
    return [DocumentResponse.model_validate(d) for d in matching.document_requests(actor, load_id)]
