"""Bid model — a driver's offer to carry a load."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, UniqueConstraint

from dockdirect.database import Base


class Bid(Base):
    __tablename__ = "bids"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    load_id = Column(String(36), ForeignKey("loads.id"), nullable=False, index=True)
    driver_id = Column(String(36), nullable=False, index=True)
    bid_amount_cents = Column(Integer, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending | accepted | rejected
    estimated_pickup_time = Column(DateTime, nullable=True)
    estimated_delivery_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("load_id", "driver_id", name="uq_bid_load_driver"),
    )
