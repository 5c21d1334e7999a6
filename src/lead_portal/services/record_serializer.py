"""ORM rows -> plain dicts for the scoring layer and API responses.

Timestamps stay as aware UTC ``datetime`` objects here; JSON encoding
happens in the route layer through the response schemas.
"""

from datetime import datetime, timezone
from typing import Optional

from lead_portal.domain.models import DailyDealFlow, Lead, Order
from lead_portal.services.recency_scorer import as_utc

FACT_FIELDS = (
    "insured",
    "prior_attorney_involved",
    "currently_represented",
    "is_injured",
    "received_medical_treatment",
    "accident_last_12_months",
)

DEAL_FIELDS = (
    "id",
    "submission_id",
    "insured_name",
    "client_phone_number",
    "state",
    "status",
    "assigned_attorney_id",
    "created_at",
) + FACT_FIELDS

# Columns of the latest deal-flow row layered over a stored lead
DEAL_FLOW_OVERLAY_FIELDS = ("submission_id", "state") + FACT_FIELDS


def serialize_order(order: Order) -> dict:
    return {
        "id": order.id,
        "lawyer_id": order.lawyer_id,
        "target_states": order.target_states if isinstance(order.target_states, list) else [],
        "criteria": order.criteria,
        "quota_total": order.quota_total or 0,
        "quota_filled": order.quota_filled or 0,
        "status": order.status,
        "expires_at": as_utc(order.expires_at),
        "created_at": as_utc(order.created_at),
    }


def serialize_order_summary(order: Order, now: Optional[datetime] = None) -> dict:
    """Order fields plus remaining quota, percent filled and expiry flag."""
    now = now or datetime.now(timezone.utc)
    data = serialize_order(order)
    total = data["quota_total"]
    filled = data["quota_filled"]
    data["remaining"] = max(0, total - filled)
    data["percent_filled"] = (
        0.0 if total <= 0 else max(0.0, min(100.0, filled / total * 100))
    )
    expires_at = data["expires_at"]
    data["is_expired"] = expires_at is not None and expires_at <= now
    return data


def serialize_deal(deal: DailyDealFlow) -> dict:
    data = {name: getattr(deal, name) for name in DEAL_FIELDS}
    data["created_at"] = as_utc(deal.created_at)
    return data


def serialize_lead(lead: Lead) -> dict:
    data = {name: getattr(lead, name) for name in FACT_FIELDS}
    data.update(
        id=lead.id,
        submission_id=lead.submission_id,
        state=lead.state,
        customer_full_name=lead.customer_full_name,
        phone_number=lead.phone_number,
    )
    return data
