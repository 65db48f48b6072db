"""Contract model — bilateral agreement for an assigned load."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text

from dockdirect.database import Base


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    load_id = Column(String(36), ForeignKey("loads.id"), nullable=False, index=True)
    shipper_id = Column(String(36), nullable=False)
    driver_id = Column(String(36), nullable=False)
    contract_number = Column(String(32), unique=True, nullable=False)
    terms = Column(Text, nullable=False)
    rate_cents = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending | signed | void
    shipper_signed_at = Column(DateTime, nullable=True)
    shipper_signature = Column(String(255), nullable=True)
    driver_signed_at = Column(DateTime, nullable=True)
    driver_signature = Column(String(255), nullable=True)
    voided_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    # Bumped on every UPDATE so concurrent signatures cannot both win
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
