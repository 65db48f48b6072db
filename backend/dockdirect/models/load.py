"""Load model — a freight shipment posted by a shipper."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text

from dockdirect.database import Base


class Load(Base):
    __tablename__ = "loads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    shipper_id = Column(String(36), nullable=False, index=True)
    assigned_driver_id = Column(String(36), nullable=True, index=True)
    title = Column(String(255), nullable=True)
    origin_address = Column(String(500), nullable=False)
    destination_address = Column(String(500), nullable=False)
    pallet_count = Column(Integer, nullable=False)
    weight = Column(String(100), nullable=False)  # free-form, e.g. "42,000 lbs"
    load_type = Column(String(20), nullable=False, default="dry")  # dry | refrigerated | hazmat | flatbed | step_deck
    rate_cents = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    payment_terms = Column(String(255), nullable=True)
    special_requirements = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="open", index=True)  # open | assigned | in_transit | completed | cancelled
    is_urgent = Column(Boolean, nullable=False, default=False)
    pickup_date = Column(DateTime, nullable=True)
    delivery_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    # Optimistic concurrency token, bumped on every UPDATE
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
