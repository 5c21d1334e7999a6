"""SQLAlchemy ORM models for the lead portal.

The matching engine only reads these tables; rows are written by the
intake, call-handling and order-purchase workflows.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    JSON,
    String,
    Text,
)

from lead_portal.domain.enums import OrderStatus
from lead_portal.infra.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class Order(Base):
    """A law firm's standing purchase request for leads."""

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lawyer_id = Column(String(36), nullable=False, index=True)
    target_states = Column(JSON, default=list)  # ["TX", "OK", ...]
    criteria = Column(JSON, nullable=True)  # loosely-typed rule document
    quota_total = Column(Integer, nullable=False, default=0)
    quota_filled = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=OrderStatus.OPEN.value, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------


class Lead(Base):
    """Canonical lead record created from a customer submission."""

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submission_id = Column(String(100), unique=True, nullable=True, index=True)
    customer_full_name = Column(String(255))
    phone_number = Column(String(50))
    lead_vendor = Column(String(255))
    state = Column(String(50))

    insured = Column(Boolean, nullable=True)
    prior_attorney_involved = Column(Boolean, nullable=True)
    currently_represented = Column(Boolean, nullable=True)
    is_injured = Column(Boolean, nullable=True)
    received_medical_treatment = Column(Boolean, nullable=True)
    accident_last_12_months = Column(Boolean, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)


class DailyDealFlow(Base):
    """One call-activity entry for a submission (the "deal")."""

    __tablename__ = "daily_deal_flow"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submission_id = Column(String(100), nullable=True, index=True)
    insured_name = Column(String(255))
    client_phone_number = Column(String(50))
    lead_vendor = Column(String(255))
    state = Column(String(50))
    status = Column(String(100))  # free text, e.g. "Signed Retainer"
    notes = Column(Text)
    assigned_attorney_id = Column(String(36), nullable=True, index=True)

    insured = Column(Boolean, nullable=True)
    prior_attorney_involved = Column(Boolean, nullable=True)
    currently_represented = Column(Boolean, nullable=True)
    is_injured = Column(Boolean, nullable=True)
    received_medical_treatment = Column(Boolean, nullable=True)
    accident_last_12_months = Column(Boolean, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
