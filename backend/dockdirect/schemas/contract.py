"""Contract request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ContractCreate(BaseModel):
    load_id: str
    driver_id: str
    terms: str
    rate_cents: Optional[int] = None  # defaults to the accepted bid amount


class ContractSign(BaseModel):
    signature: str


class ContractResponse(BaseModel):
    id: str
    load_id: str
    shipper_id: str
    driver_id: str
    contract_number: str
    terms: str
    rate_cents: int
    status: str  # pending | signed | void
    shipper_signed_at: Optional[datetime]
    shipper_signature: Optional[str]
    driver_signed_at: Optional[datetime]
    driver_signature: Optional[str]
    voided_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
