"""Contracts router — drafting, signing and voiding contracts."""

from fastapi import APIRouter, Depends

from dockdirect.actors import Actor
from dockdirect.middleware.auth import get_current_actor
from dockdirect.routers.deps import get_matching
from dockdirect.schemas.contract import ContractCreate, ContractResponse, ContractSign
from dockdirect.services.matching import MatchingFacade

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.post("", response_model=ContractResponse, status_code=201)
def create_contract(
    req: ContractCreate,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Draft a contract for an assigned load (shipper only)."""
    contract = matching.create_contract(
        actor, req.load_id, req.driver_id, req.terms, rate_cents=req.rate_cents
    )
    return ContractResponse.model_validate(contract)


@router.get("", response_model=list[ContractResponse])
def list_contracts(
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    return [ContractResponse.model_validate(c) for c in matching.list_contracts(actor)]


@router.get("/{contract_id}", response_model=ContractResponse)
def get_contract(
    contract_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    return ContractResponse.model_validate(matching.get_contract(actor, contract_id))


@router.post("/{contract_id}/sign", response_model=ContractResponse)
def sign_contract(
    contract_id: str,
    req: ContractSign,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    """Sign as shipper or driver. Signing twice is a no-op."""
    contract = matching.sign_contract(actor, contract_id, req.signature)
    return ContractResponse.model_validate(contract)


@router.post("/{contract_id}/void", response_model=ContractResponse)
def void_contract(
    contract_id: str,
    matching: MatchingFacade = Depends(get_matching),
    actor: Actor = Depends(get_current_actor),
):
    return ContractResponse.model_validate(matching.void_contract(actor, contract_id))
