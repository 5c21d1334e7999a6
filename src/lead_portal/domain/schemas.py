"""Pydantic v2 schemas for API request/response validation."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


# ---------------------------------------------------------------------------
# Recommendation requests
# ---------------------------------------------------------------------------


class LeadPayload(BaseModel):
    """Lead descriptor for open-order recommendations.

    Any fact sent here overrides the stored lead, so agents can preview
    matches while a form is still being edited.
    """

    model_config = ConfigDict(extra="ignore")

    submission_id: str | None = None
    lead_id: str | None = None

    state: str | None = None

    # Facts are taken as sent; anything but a real bool reads as unknown
    insured: Any = None
    prior_attorney_involved: Any = None
    currently_represented: Any = None
    is_injured: Any = None
    received_medical_treatment: Any = None
    accident_last_12_months: Any = None

    @field_validator("submission_id", "lead_id", "state", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        """Numeric ids and other scalars are kept in their string form."""
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def overrides(self) -> dict:
        """Fields the caller explicitly sent, minus the identifiers."""
        sent = self.model_dump(exclude_unset=True)
        sent.pop("lead_id", None)
        return sent


class OpenOrdersRequest(BaseModel):
    """Body of POST /recommend-open-orders."""

    model_config = ConfigDict(extra="ignore")

    lead: LeadPayload | None = None
    limit: Any = None


class DealsForOrderRequest(BaseModel):
    """Body of POST /recommend-deals-for-order."""

    model_config = ConfigDict(extra="ignore")

    order_id: Any = None
    limit: Any = None


# ---------------------------------------------------------------------------
# Recommendation responses
# ---------------------------------------------------------------------------


class OrderRecommendation(BaseModel):
    """One open order ranked for a lead."""

    order_id: str
    lawyer_id: str
    expires_at: datetime
    quota_total: int
    quota_filled: int
    remaining: int
    score: int
    reasons: list[str]


class ResolvedLead(BaseModel):
    """Identity of the lead the open-order ranking was computed for."""

    state: str | None = None
    submission_id: str | None = None
    lead_id: str | None = None


class OpenOrdersResponse(BaseModel):
    lead: ResolvedLead
    recommendations: list[OrderRecommendation]


class DealRecommendation(BaseModel):
    """One unassigned deal ranked for an order, carrying the full deal row."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    submission_id: str | None = None
    insured_name: str | None = None
    client_phone_number: str | None = None
    state: str | None = None
    status: str | None = None
    assigned_attorney_id: str | None = None
    created_at: datetime | None = None

    insured: bool | None = None
    prior_attorney_involved: bool | None = None
    currently_represented: bool | None = None
    is_injured: bool | None = None
    received_medical_treatment: bool | None = None
    accident_last_12_months: bool | None = None

    lead_id: str | None = None
    score: int
    reasons: list[str]


class DealsForOrderResponse(BaseModel):
    order_id: str
    recommendations: list[DealRecommendation]


# ---------------------------------------------------------------------------
# Order fulfillment
# ---------------------------------------------------------------------------


class OrderSummary(BaseModel):
    """Order row plus fulfillment progress."""

    id: str
    lawyer_id: str
    target_states: list
    criteria: dict | None = None
    quota_total: int
    quota_filled: int
    remaining: int
    percent_filled: float
    status: str
    is_expired: bool
    expires_at: datetime
    created_at: datetime | None = None


class DealAssignability(BaseModel):
    """Whether a deal may be handed to an attorney's order."""

    deal_id: str
    assignable: bool
    reason: str | None = None
