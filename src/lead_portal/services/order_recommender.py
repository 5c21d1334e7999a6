"""Open-orders-for-lead recommendations.

Given one lead (optionally with unsaved edits), rank the open orders that
would want it.

Scoring per candidate order:
    * State match              +60  (mismatch is recorded, NOT excluded)
    * Criteria boost           +10 insured_only / +2 uninsured_ok
    * Expiry priority          0-30 (sooner expiry scores higher)
    * Remaining quota          min(10, remaining)

Orders failing the criteria are dropped.  When at least one order scores
``MIN_SCORE`` or more, only those are returned; otherwise every candidate
is, so a weak lead still gets suggestions.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lead_portal.domain.enums import OrderStatus, StateFilterMode
from lead_portal.domain.models import DailyDealFlow, Lead, Order
from lead_portal.domain.schemas import LeadPayload
from lead_portal.services.criteria_evaluator import evaluate_criteria
from lead_portal.services.errors import DataFetchError
from lead_portal.services.lead_merge import merge_lead_record
from lead_portal.services.recency_scorer import as_utc, expiry_priority_score
from lead_portal.services.record_serializer import (
    DEAL_FLOW_OVERLAY_FIELDS,
    serialize_lead,
    serialize_order,
)
from lead_portal.services.state_filter import check_state, normalize_state, normalize_state_set

logger = logging.getLogger(__name__)

MIN_SCORE = 50
QUOTA_BONUS_CAP = 10

DEFAULT_LIMIT = 10
MAX_LIMIT = 25


# ---------------------------------------------------------------------------
# Pure ranking
# ---------------------------------------------------------------------------


def remaining_quota(order: Mapping) -> int:
    return (order.get("quota_total") or 0) - (order.get("quota_filled") or 0)


def is_open_order(order: Mapping, now: datetime) -> bool:
    expires_at = as_utc(order.get("expires_at"))
    return (
        order.get("status") == OrderStatus.OPEN.value
        and expires_at is not None
        and expires_at > now
    )


def score_order(order: Mapping, lead: Mapping, lead_state: str, now: datetime) -> Optional[dict]:
    """Score one order for the merged lead; ``None`` when criteria exclude it."""
    crit = evaluate_criteria(order.get("criteria"), lead)
    if not crit.eligible:
        return None

    reasons: list[str] = []
    score = 0

    state = check_state(
        normalize_state_set(order.get("target_states")), lead_state, StateFilterMode.SOFT_PENALTY
    )
    score += state.score
    if state.reason:
        reasons.append(state.reason)

    score += crit.score_boost
    reasons.extend(crit.reasons)

    exp = expiry_priority_score(order.get("expires_at"), now=now)
    score += exp.score
    reasons.append(f"Expires in ~{exp.days} day(s)")

    remaining = remaining_quota(order)
    score += min(QUOTA_BONUS_CAP, max(0, remaining))
    reasons.append(f"Remaining quota: {remaining}")

    return {
        "order_id": order["id"],
        "lawyer_id": order.get("lawyer_id"),
        "expires_at": as_utc(order.get("expires_at")),
        "quota_total": order.get("quota_total") or 0,
        "quota_filled": order.get("quota_filled") or 0,
        "remaining": remaining,
        "score": score,
        "reasons": reasons,
    }


def rank_open_orders(
    orders: Iterable[Mapping],
    lead: Mapping,
    *,
    limit: int = DEFAULT_LIMIT,
    now: Optional[datetime] = None,
) -> list[dict]:
    """Rank open orders with quota left for *lead* (a merged lead record)."""
    now = now or datetime.now(timezone.utc)
    lead_state = normalize_state(lead.get("state"))

    candidates = [o for o in orders if is_open_order(o, now) and remaining_quota(o) > 0]

    recs = []
    for order in candidates:
        rec = score_order(order, lead, lead_state, now)
        if rec is None:
            continue
        logger.debug(
            "[recommend-open-orders] order=%s score=%d reasons=%s",
            rec["order_id"], rec["score"], rec["reasons"],
        )
        recs.append(rec)

    recs.sort(key=lambda r: (-r["score"], r["expires_at"]))

    above_threshold = [r for r in recs if r["score"] >= MIN_SCORE]
    return (above_threshold or recs)[:limit]


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------


class OpenOrderRecommender:
    """Resolves the lead, loads open orders, then ranks them."""

    async def recommend(
        self,
        payload: LeadPayload,
        limit: int,
        db: AsyncSession,
        now: Optional[datetime] = None,
    ) -> dict:
        """Rank open orders for the lead described by *payload*.

        Raises:
            DataFetchError: If the open-orders read fails.  Lead and
                deal-flow lookups are best-effort and never raise.
        """
        now = now or datetime.now(timezone.utc)
        logger.info(
            "[recommend-open-orders] lead_id=%s submission_id=%s limit=%d",
            payload.lead_id, payload.submission_id, limit,
        )

        stored = await self._load_lead(db, payload)
        submission_id = payload.submission_id or (stored or {}).get("submission_id")
        deal_flow = await self._load_latest_deal_flow(db, submission_id)

        merged = merge_lead_record(stored, deal_flow, payload.overrides())
        lead_state = normalize_state(merged.get("state"))
        if not lead_state:
            logger.info("[recommend-open-orders] lead state unknown; scoring on expiry/quota only")

        try:
            result = await db.execute(
                select(Order).where(
                    Order.status == OrderStatus.OPEN.value,
                    Order.expires_at > now,
                )
            )
            orders = [serialize_order(o) for o in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("[recommend-open-orders] orders fetch error: %s", e)
            raise DataFetchError(str(e)) from e

        recommendations = rank_open_orders(orders, merged, limit=limit, now=now)
        logger.info(
            "[recommend-open-orders] %d open orders, %d recommended",
            len(orders), len(recommendations),
        )

        return {
            "lead": {
                "state": lead_state or None,
                "submission_id": merged.get("submission_id") or payload.submission_id,
                "lead_id": (stored or {}).get("id") or payload.lead_id,
            },
            "recommendations": recommendations,
        }

    async def _load_lead(self, db: AsyncSession, payload: LeadPayload) -> Optional[dict]:
        if payload.lead_id:
            stmt = select(Lead).where(Lead.id == payload.lead_id)
        elif payload.submission_id:
            stmt = select(Lead).where(Lead.submission_id == payload.submission_id)
        else:
            return None

        try:
            result = await db.execute(stmt)
            lead = result.scalars().first()
        except SQLAlchemyError as e:
            logger.warning("[recommend-open-orders] leads fetch error: %s", e)
            return None
        return serialize_lead(lead) if lead else None

    async def _load_latest_deal_flow(
        self, db: AsyncSession, submission_id: Optional[str]
    ) -> Optional[dict]:
        if not submission_id:
            return None
        try:
            result = await db.execute(
                select(DailyDealFlow)
                .where(DailyDealFlow.submission_id == submission_id)
                .order_by(DailyDealFlow.created_at.desc())
                .limit(1)
            )
            row = result.scalars().first()
        except SQLAlchemyError as e:
            logger.warning("[recommend-open-orders] daily_deal_flow fetch error: %s", e)
            return None
        if row is None:
            return None
        return {name: getattr(row, name) for name in DEAL_FLOW_OVERLAY_FIELDS}
