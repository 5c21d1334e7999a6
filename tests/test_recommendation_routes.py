"""HTTP tests for the recommendation endpoints.

Tier 1: request handling (CORS, methods, validation)
Tier 2: full flow against an in-memory database
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from lead_portal.app.routes import recommendations
from lead_portal.services.errors import DataFetchError
from lead_portal.services.request_limits import clamp_limit

CORS_ORIGIN = "Access-Control-Allow-Origin"


# ===========================================================================
# Tier 1: limit parsing
# ===========================================================================


class TestClampLimit:

    @pytest.mark.parametrize("raw,expected", [
        (None, 50), (0, 1), (-5, 1), (7, 7), ("12", 12), (7.9, 7),
        (1000, 100), ("lots", 50), (True, 50), (float("nan"), 50),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_limit(raw, default=50, maximum=100) == expected


# ===========================================================================
# Tier 1: request handling
# ===========================================================================


class TestRequestHandling:

    @pytest.mark.parametrize("path", ["/recommend-deals-for-order", "/recommend-open-orders"])
    async def test_options_preflight(self, api_client, path):
        async with api_client() as client:
            resp = await client.options(path)

        assert resp.status_code == 204
        assert resp.headers[CORS_ORIGIN] == "*"
        assert resp.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
        assert "x-client-info" in resp.headers["Access-Control-Allow-Headers"]

    @pytest.mark.parametrize("path", ["/recommend-deals-for-order", "/recommend-open-orders"])
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_only_post_allowed(self, api_client, path, method):
        async with api_client() as client:
            resp = await client.request(method, path)

        assert resp.status_code == 405
        assert resp.json() == {"error": "POST only"}
        assert resp.headers[CORS_ORIGIN] == "*"

    @pytest.mark.parametrize("body", [{}, {"order_id": ""}, {"order_id": "   "}, {"order_id": None}])
    async def test_missing_order_id(self, api_client, body):
        async with api_client() as client:
            resp = await client.post("/recommend-deals-for-order", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing order_id"}
        assert resp.headers[CORS_ORIGIN] == "*"

    async def test_unparseable_body_is_missing_order_id(self, api_client):
        async with api_client() as client:
            resp = await client.post(
                "/recommend-deals-for-order",
                content=b"{not json",
                headers={"Content-Type": "application/json"},
            )
        assert resp.status_code == 400

    async def test_unknown_order(self, api_client):
        async with api_client() as client:
            resp = await client.post("/recommend-deals-for-order", json={"order_id": "nope"})

        assert resp.status_code == 404
        assert resp.json() == {"error": "Order not found"}

    @pytest.mark.parametrize("body", [{}, {"lead": None}, {"limit": 5}])
    async def test_missing_lead(self, api_client, body):
        async with api_client() as client:
            resp = await client.post("/recommend-open-orders", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing lead payload"}

    async def test_numeric_submission_id_accepted(self, api_client):
        async with api_client() as client:
            resp = await client.post("/recommend-open-orders", json={"lead": {"submission_id": 12345}})

        assert resp.status_code == 200
        assert resp.json()["lead"]["submission_id"] == "12345"

    async def test_malformed_lead(self, api_client):
        async with api_client() as client:
            resp = await client.post("/recommend-open-orders", json={"lead": "SUB-1"})
        assert resp.status_code == 400

    async def test_deals_fetch_failure_is_500(self, api_client):
        with patch.object(
            recommendations.deal_recommender_service,
            "recommend",
            new_callable=AsyncMock,
            side_effect=DataFetchError("canceling statement due to statement timeout"),
        ):
            async with api_client() as client:
                resp = await client.post("/recommend-deals-for-order", json={"order_id": "o-1"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "canceling statement due to statement timeout"}

    async def test_orders_fetch_failure_is_500(self, api_client):
        with patch.object(
            recommendations.open_order_recommender_service,
            "recommend",
            new_callable=AsyncMock,
            side_effect=DataFetchError("permission denied for table orders"),
        ):
            async with api_client() as client:
                resp = await client.post("/recommend-open-orders", json={"lead": {}})

        assert resp.status_code == 500
        assert resp.json() == {"error": "permission denied for table orders"}

    async def test_limit_is_clamped_before_service(self, api_client):
        mock = AsyncMock(return_value={"order_id": "o-1", "recommendations": []})
        with patch.object(recommendations.deal_recommender_service, "recommend", mock):
            async with api_client() as client:
                await client.post("/recommend-deals-for-order", json={"order_id": " o-1 ", "limit": 900})

        order_id, limit, _db = mock.await_args.args
        assert order_id == "o-1"
        assert limit == 100


# ===========================================================================
# Tier 2: full flow
# ===========================================================================


class TestDealsForOrderFlow:

    async def test_returns_ranked_deals(self, api_client, make_order, make_deal, make_lead):
        order = await make_order(target_states=["TX"], criteria={"insured": "insured_only"})
        lead = await make_lead(submission_id="SUB-A")
        await make_deal(submission_id="SUB-A", state="TX", insured=True, insured_name="Ann")
        await make_deal(submission_id="SUB-B", state="OK", insured=True)
        await make_deal(submission_id="SUB-C", state="TX", insured=False)
        await make_deal(submission_id="SUB-E", state="tx", insured=True, age=timedelta(days=4),
                        status="Returned To Center - DQ")

        async with api_client() as client:
            resp = await client.post("/recommend-deals-for-order", json={"order_id": order.id})

        assert resp.status_code == 200
        assert resp.headers[CORS_ORIGIN] == "*"
        data = resp.json()
        assert data["order_id"] == order.id
        recs = data["recommendations"]
        assert [r["submission_id"] for r in recs] == ["SUB-A", "SUB-E"]

        top = recs[0]
        assert top["lead_id"] == lead.id
        assert top["insured_name"] == "Ann"
        assert top["score"] == 100
        assert top["reasons"][0] == "State match: TX"
        assert recs[1]["reasons"][-1] == "Recency: 4 day(s) ago"
        assert recs[1]["lead_id"] is None

    async def test_limit(self, api_client, make_order, make_deal):
        order = await make_order()
        for _ in range(3):
            await make_deal()

        async with api_client() as client:
            resp = await client.post(
                "/recommend-deals-for-order", json={"order_id": order.id, "limit": 2},
            )

        assert len(resp.json()["recommendations"]) == 2

    async def test_idempotent(self, api_client, make_order, make_deal):
        order = await make_order(target_states=["TX", "OK"])
        for i, state in enumerate(["TX", "OK", "NM", "TX"]):
            await make_deal(state=state, age=timedelta(days=i))

        async with api_client() as client:
            first = await client.post("/recommend-deals-for-order", json={"order_id": order.id})
            second = await client.post("/recommend-deals-for-order", json={"order_id": order.id})

        assert first.json() == second.json()


class TestOpenOrdersFlow:

    async def test_returns_ranked_orders(self, api_client, make_order, make_lead):
        lead = await make_lead(submission_id="SUB-9", state="fl")
        x = await make_order(target_states=["FL"], quota_total=10, quota_filled=5,
                             expires_in=timedelta(days=1), lawyer_id="lawyer-x")
        await make_order(target_states=["GA"], quota_total=10, quota_filled=5,
                         expires_in=timedelta(days=1))

        async with api_client() as client:
            resp = await client.post(
                "/recommend-open-orders", json={"lead": {"submission_id": "SUB-9"}},
            )

        assert resp.status_code == 200
        data = resp.json()
        assert data["lead"] == {"state": "FL", "submission_id": "SUB-9", "lead_id": lead.id}
        recs = data["recommendations"]
        assert len(recs) == 1
        rec = recs[0]
        assert rec["order_id"] == x.id
        assert rec["lawyer_id"] == "lawyer-x"
        assert rec["quota_total"] == 10
        assert rec["quota_filled"] == 5
        assert rec["remaining"] == 5
        assert rec["score"] == 60 + 23 + 5
        assert rec["reasons"][0] == "State match: FL"
        assert rec["expires_at"]

    async def test_live_override_changes_ranking(self, api_client, make_order, make_lead):
        lead = await make_lead(state="FL")
        await make_order(target_states=["FL"])
        ga = await make_order(target_states=["GA"])

        async with api_client() as client:
            resp = await client.post(
                "/recommend-open-orders",
                json={"lead": {"lead_id": lead.id, "state": "GA"}, "limit": 1},
            )

        recs = resp.json()["recommendations"]
        assert [r["order_id"] for r in recs] == [ga.id]

    async def test_string_fact_is_not_a_bool(self, api_client, make_order):
        await make_order(target_states=["FL"], criteria={"insured": "insured_only"})

        async with api_client() as client:
            resp = await client.post(
                "/recommend-open-orders", json={"lead": {"state": "FL", "insured": "true"}},
            )

        assert resp.status_code == 200
        assert resp.json()["recommendations"] == []

    async def test_unrecognised_fact_reads_as_unknown(self, api_client, make_order):
        order = await make_order(target_states=["FL"])

        async with api_client() as client:
            resp = await client.post(
                "/recommend-open-orders", json={"lead": {"state": "FL", "insured": "maybe"}},
            )

        assert resp.status_code == 200
        assert [r["order_id"] for r in resp.json()["recommendations"]] == [order.id]
