"""Lead/order recommendation API routes.

Two read-only matchers, one per direction:

    POST /recommend-deals-for-order   order -> ranked unassigned deals
    POST /recommend-open-orders       lead  -> ranked open orders

Both answer a bare OPTIONS with a permissive CORS preflight and report
failures as ``{"error": message}``.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from lead_portal.domain.schemas import (
    DealsForOrderRequest,
    DealsForOrderResponse,
    OpenOrdersRequest,
    OpenOrdersResponse,
)
from lead_portal.infra.database import get_db
from lead_portal.services import deal_recommender, order_recommender
from lead_portal.services.deal_recommender import DealRecommender
from lead_portal.services.errors import RecommendationError
from lead_portal.services.order_recommender import OpenOrderRecommender
from lead_portal.services.request_limits import clamp_limit

logger = logging.getLogger(__name__)
router = APIRouter(tags=["recommendations"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

deal_recommender_service = DealRecommender()
open_order_recommender_service = OpenOrderRecommender()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _read_json(request: Request) -> dict:
    """Parse the body as a JSON object; anything else is an empty body."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=CORS_HEADERS)


def _error(message: str, status_code: int) -> JSONResponse:
    return _json({"error": message}, status_code=status_code)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.options("/recommend-deals-for-order")
@router.options("/recommend-open-orders")
async def recommendation_preflight():
    """CORS preflight."""
    return Response(status_code=204, headers=CORS_HEADERS)


_NON_POST_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


@router.api_route("/recommend-deals-for-order", methods=_NON_POST_METHODS, include_in_schema=False)
@router.api_route("/recommend-open-orders", methods=_NON_POST_METHODS, include_in_schema=False)
async def recommendation_method_not_allowed():
    return _error("POST only", 405)


@router.post("/recommend-deals-for-order")
async def recommend_deals_for_order(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Rank unassigned, sellable deals for an order.

    Body: ``{"order_id": str, "limit": int (1-100, default 50)}``.
    """
    body = DealsForOrderRequest.model_validate(await _read_json(request))

    order_id = str(body.order_id if body.order_id is not None else "").strip()
    if not order_id:
        return _error("Missing order_id", 400)

    limit = clamp_limit(body.limit, deal_recommender.DEFAULT_LIMIT, deal_recommender.MAX_LIMIT)

    try:
        result = await deal_recommender_service.recommend(order_id, limit, db)
    except RecommendationError as e:
        return _error(str(e), e.status_code)

    return _json(DealsForOrderResponse.model_validate(result).model_dump(mode="json"))


@router.post("/recommend-open-orders")
async def recommend_open_orders(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Rank open orders with quota left for a lead.

    Body: ``{"lead": {...}, "limit": int (1-25, default 10)}``.  Facts sent
    in ``lead`` override the stored record.
    """
    try:
        body = OpenOrdersRequest.model_validate(await _read_json(request))
    except ValidationError as e:
        logger.info("[recommend-open-orders] invalid lead payload: %s", e)
        return _error("Invalid lead payload", 400)

    if body.lead is None:
        return _error("Missing lead payload", 400)

    limit = clamp_limit(body.limit, order_recommender.DEFAULT_LIMIT, order_recommender.MAX_LIMIT)

    try:
        result = await open_order_recommender_service.recommend(body.lead, limit, db)
    except RecommendationError as e:
        return _error(str(e), e.status_code)

    return _json(OpenOrdersResponse.model_validate(result).model_dump(mode="json"))
