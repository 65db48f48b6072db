"""Bids router — bid acceptance."""

from fastapi import APIRouter, Depends

from dockdirect.actors import Actor
from dockdirect.middleware.auth import get_current_actor
from dockdirect.routers.deps import get_matching
from dockdirect.schemas.bid import BidAcceptResponse, BidResponse
from dockdirect.schemas.load import LoadResponse
from dockdirect.services.matching import MatchingFacade

router = APIRouter(prefix="/api/bids", tags=["bids"])


@router.post("/{bid_id}/accept", response_model=BidAcceptResponse)
def accept_bid(
    bid_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Accept a bid; every other pending bid on the load is rejected."""
    load, bid = matching.accept_bid(actor, bid_id)
    return BidAcceptResponse(
        load=LoadResponse.model_validate(load),
        bid=BidResponse.model_validate(bid),
    )
