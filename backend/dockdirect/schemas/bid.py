"""Bid request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from dockdirect.schemas.load import LoadResponse


class BidCreate(BaseModel):
    amount_cents: int
    message: Optional[str] = None
    estimated_pickup_time: Optional[datetime] = None
    estimated_delivery_time: Optional[datetime] = None


class BidResponse(BaseModel):
    id: str
    load_id: str
    driver_id: str
    bid_amount_cents: int
    message: Optional[str]
    status: str  # pending | accepted | rejected
    estimated_pickup_time: Optional[datetime]
    estimated_delivery_time: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class BidAcceptResponse(BaseModel):
    load: LoadResponse
    bid: BidResponse
