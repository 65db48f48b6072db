"""Load request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LoadCreate(BaseModel):
    # Range checks live in the load service so every violation is reported at once
    title: Optional[str] = None
    origin_address: str = ""
    destination_address: str = ""
    pallet_count: int = 0
    weight: str = ""
    load_type: str = "dry"  # dry | refrigerated | hazmat | flatbed | step_deck
    rate_cents: int = 0
    description: Optional[str] = None
    payment_terms: Optional[str] = None
    special_requirements: Optional[str] = None
    is_urgent: bool = False
    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None


class LoadStatusUpdate(BaseModel):
    status: str  # assigned | in_transit | completed | cancelled


class LoadResponse(BaseModel):
    id: str
    shipper_id: str
    assigned_driver_id: Optional[str]
    title: Optional[str]
    origin_address: str
    destination_address: str
    pallet_count: int
    weight: str
    load_type: str
    rate_cents: int
    description: Optional[str]
    payment_terms: Optional[str]
    special_requirements: Optional[str]
    status: str
    is_urgent: bool
    pickup_date: Optional[datetime]
    delivery_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoadListResponse(BaseModel):
    loads: list[LoadResponse]
    total: int


class DocumentResponse(BaseModel):
    id: str
    load_id: str
    contract_id: Optional[str]
    doc_type: str
    status: str
    requested_by: str
    created_at: datetime

    class Config:
        from_attributes = True
