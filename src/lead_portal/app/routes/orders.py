"""Order fulfillment API routes.

Read-only views backing the order fulfillment and assignment pages:
order progress, and whether a deal may be assigned into an order.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lead_portal.domain.models import DailyDealFlow, Order
from lead_portal.domain.schemas import DealAssignability, OrderSummary
from lead_portal.infra.database import get_db
from lead_portal.services.deal_eligibility import assignability
from lead_portal.services.record_serializer import serialize_order_summary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])
deals_router = APIRouter(prefix="/api/deals", tags=["orders"])


@router.get("", response_model=list[OrderSummary])
async def list_orders(
    status: str | None = Query(None, description="OPEN, FULFILLED, CLOSED or EXPIRED"),
    db: AsyncSession = Depends(get_db),
):
    """List orders newest first with fulfillment progress."""
    stmt = select(Order).order_by(Order.created_at.desc())
    if status:
        stmt = stmt.where(Order.status == status.strip().upper())

    result = await db.execute(stmt)
    return [serialize_order_summary(o) for o in result.scalars().all()]


@router.get("/{order_id}", response_model=OrderSummary)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    """Single order with fulfillment progress."""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return serialize_order_summary(order)


@deals_router.get("/{deal_id}/assignability", response_model=DealAssignability)
async def get_deal_assignability(deal_id: str, db: AsyncSession = Depends(get_db)):
    """Whether a deal is unassigned and in a sellable lifecycle status."""
    deal = await db.get(DailyDealFlow, deal_id)
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")

    assignable, reason = assignability(deal.assigned_attorney_id, deal.status)
    if not assignable:
        logger.info("Deal %s not assignable: %s", deal_id, reason)
    return {"deal_id": deal.id, "assignable": assignable, "reason": reason}
