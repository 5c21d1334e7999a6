"""Deals-for-order recommendations.

Given one order, rank the unassigned deals that would satisfy it.

Scoring per surviving deal:
    * State match              +60  (mismatch EXCLUDES the deal)
    * Criteria boost           +10 insured_only / +2 uninsured_ok
    * Unassigned deal          +10
    * Recency                  0-20 (decays with lead age)

The ranking functions are pure and work on plain dicts; ``DealRecommender``
does the reads and hands the rows over.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lead_portal.domain.enums import StateFilterMode
from lead_portal.domain.models import DailyDealFlow, Lead, Order
from lead_portal.services.criteria_evaluator import OrderCriteria, evaluate_criteria
from lead_portal.services.deal_eligibility import matches_allowed_status
from lead_portal.services.errors import DataFetchError, OrderNotFoundError
from lead_portal.services.recency_scorer import recency_score
from lead_portal.services.record_serializer import serialize_deal, serialize_order
from lead_portal.services.state_filter import check_state, normalize_state, normalize_state_set

logger = logging.getLogger(__name__)

UNASSIGNED_BONUS = 10

# Most recent unassigned deal-flow rows considered per request
DEAL_CANDIDATE_CAP = 500

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


# ---------------------------------------------------------------------------
# Pure ranking
# ---------------------------------------------------------------------------


def score_deal(
    deal: dict,
    target_set: set[str],
    criteria: OrderCriteria,
    now: datetime,
) -> Optional[tuple[int, list[str]]]:
    """Return ``(score, reasons)`` for an eligible deal, or ``None`` if excluded."""
    if deal.get("assigned_attorney_id"):
        return None
    if not matches_allowed_status(deal.get("status")):
        return None

    reasons: list[str] = []
    score = 0

    state = check_state(target_set, normalize_state(deal.get("state")), StateFilterMode.EXCLUDING)
    if state.excluded:
        return None
    score += state.score
    if state.reason:
        reasons.append(state.reason)

    crit = evaluate_criteria(criteria, deal)
    if not crit.eligible:
        return None
    score += crit.score_boost
    reasons.extend(crit.reasons)

    score += UNASSIGNED_BONUS
    reasons.append("Unassigned deal")

    rec = recency_score(deal.get("created_at"), now=now)
    score += rec.score
    reasons.append(f"Recency: {rec.days} day(s) ago")

    return score, reasons


def select_deals(order: dict, deals: Iterable[dict], now: datetime) -> list[dict]:
    """Score every deal against *order*, dropping the excluded ones.

    Input order is preserved.
    """
    target_set = normalize_state_set(order.get("target_states"))
    criteria = OrderCriteria.from_document(order.get("criteria"))

    selected = []
    for deal in deals:
        result = score_deal(deal, target_set, criteria, now)
        if result is None:
            continue
        score, reasons = result
        selected.append({**deal, "score": score, "reasons": reasons})
    return selected


def rank_deals(selected: list[dict], lead_ids: dict[str, str], limit: int) -> list[dict]:
    """Attach lead ids, sort by score (stable for ties) and truncate."""
    ranked = []
    for rec in selected:
        submission_id = str(rec["submission_id"]) if rec.get("submission_id") else ""
        ranked.append({**rec, "lead_id": lead_ids.get(submission_id) if submission_id else None})
    ranked.sort(key=lambda r: r["score"], reverse=True)
    return ranked[:limit]


def rank_deals_for_order(
    order: dict,
    deals: Iterable[dict],
    *,
    lead_ids: Optional[dict[str, str]] = None,
    limit: int = DEFAULT_LIMIT,
    now: Optional[datetime] = None,
) -> list[dict]:
    now = now or datetime.now(timezone.utc)
    return rank_deals(select_deals(order, deals, now), lead_ids or {}, limit)


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------


class DealRecommender:
    """Loads an order and its candidate deals, then ranks them."""

    async def recommend(
        self,
        order_id: str,
        limit: int,
        db: AsyncSession,
        now: Optional[datetime] = None,
    ) -> dict:
        """Rank unassigned deals for *order_id*.

        Raises:
            OrderNotFoundError: If the order does not exist.
            DataFetchError: If the order or deal read fails.
        """
        now = now or datetime.now(timezone.utc)
        logger.info("[recommend-deals-for-order] order=%s limit=%d", order_id, limit)

        try:
            order = await db.get(Order, order_id)
        except SQLAlchemyError as e:
            logger.error("[recommend-deals-for-order] order fetch error: %s", e)
            raise DataFetchError(str(e)) from e
        if order is None:
            raise OrderNotFoundError(order_id)

        try:
            result = await db.execute(
                select(DailyDealFlow)
                .where(DailyDealFlow.assigned_attorney_id.is_(None))
                .order_by(DailyDealFlow.created_at.desc())
                .limit(DEAL_CANDIDATE_CAP)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("[recommend-deals-for-order] deal fetch error: %s", e)
            raise DataFetchError(str(e)) from e

        deals = [serialize_deal(r) for r in rows]
        selected = select_deals(serialize_order(order), deals, now)
        logger.info(
            "[recommend-deals-for-order] %d deals fetched, %d eligible",
            len(deals), len(selected),
        )

        lead_ids = await self._lead_ids_by_submission(
            db, {str(d["submission_id"]) for d in selected if d.get("submission_id")}
        )
        recommendations = rank_deals(selected, lead_ids, limit)

        return {"order_id": order_id, "recommendations": recommendations}

    async def _lead_ids_by_submission(
        self, db: AsyncSession, submission_ids: set[str]
    ) -> dict[str, str]:
        """Map submission ids to canonical lead ids; failures yield no mappings."""
        if not submission_ids:
            return {}
        try:
            result = await db.execute(
                select(Lead.id, Lead.submission_id).where(
                    Lead.submission_id.in_(sorted(submission_ids))
                )
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.warning("[recommend-deals-for-order] lead id lookup failed: %s", e)
            return {}

        return {
            str(submission_id): str(lead_id)
            for lead_id, submission_id in rows
            if lead_id and submission_id
        }
