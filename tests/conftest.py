"""Shared test infrastructure for the Lead Portal test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- make_order / make_lead / make_deal: row factories
- api_client: factory for an HTTPX AsyncClient bound to the API routers
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from lead_portal.infra.database import Base

import lead_portal.domain.models  # noqa: F401

from lead_portal.domain.models import DailyDealFlow, Lead, Order


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_order(db_session):
    """Factory that creates an Order row.

    Usage:
        order = await make_order(target_states=["TX"], criteria={"insured": "insured_only"})
    """
    async def _factory(
        target_states: list | None = None,
        criteria: dict | None = None,
        quota_total: int = 10,
        quota_filled: int = 0,
        status: str = "OPEN",
        expires_in: timedelta = timedelta(days=7),
        lawyer_id: str = "lawyer-1",
        created_at: datetime | None = None,
    ) -> Order:
        now = datetime.now(timezone.utc)
        order = Order(
            id=str(uuid.uuid4()),
            lawyer_id=lawyer_id,
            target_states=target_states if target_states is not None else [],
            criteria=criteria,
            quota_total=quota_total,
            quota_filled=quota_filled,
            status=status,
            expires_at=now + expires_in,
            created_at=created_at or now,
        )
        db_session.add(order)
        await db_session.flush()
        return order

    return _factory


@pytest.fixture
def make_lead(db_session):
    """Factory that creates a Lead row."""
    async def _factory(
        submission_id: str | None = None,
        state: str | None = "TX",
        customer_full_name: str = "Test Customer",
        **facts,
    ) -> Lead:
        lead = Lead(
            id=str(uuid.uuid4()),
            submission_id=submission_id or f"SUB-{uuid.uuid4().hex[:8]}",
            customer_full_name=customer_full_name,
            phone_number="(555) 111-2222",
            state=state,
            **facts,
        )
        db_session.add(lead)
        await db_session.flush()
        return lead

    return _factory


@pytest.fixture
def make_deal(db_session):
    """Factory that creates a DailyDealFlow row.

    Usage:
        deal = await make_deal(state="TX", status="Signed Retainer", insured=True)
    """
    async def _factory(
        submission_id: str | None = None,
        state: str | None = "TX",
        status: str | None = "Signed Retainer",
        assigned_attorney_id: str | None = None,
        age: timedelta = timedelta(0),
        insured_name: str = "Test Customer",
        **facts,
    ) -> DailyDealFlow:
        deal = DailyDealFlow(
            id=str(uuid.uuid4()),
            submission_id=submission_id or f"SUB-{uuid.uuid4().hex[:8]}",
            insured_name=insured_name,
            client_phone_number="(555) 111-2222",
            state=state,
            status=status,
            assigned_attorney_id=assigned_attorney_id,
            created_at=datetime.now(timezone.utc) - age,
            **facts,
        )
        db_session.add(deal)
        await db_session.flush()
        return deal

    return _factory


# ---------------------------------------------------------------------------
# API client factory
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client(db_session):
    """Build an HTTPX AsyncClient wired to a test FastAPI app.

    Uses a fresh FastAPI app with only the portal routers, skipping the
    production lifespan (no file database is created).
    """
    from fastapi import FastAPI
    from lead_portal.app.routes.orders import deals_router, router as orders_router
    from lead_portal.app.routes.recommendations import router as recommendations_router
    from lead_portal.infra.database import get_db

    def _factory() -> AsyncClient:
        test_app = FastAPI()
        test_app.include_router(recommendations_router)
        test_app.include_router(orders_router)
        test_app.include_router(deals_router)

        async def _override_get_db():
            yield db_session

        test_app.dependency_overrides[get_db] = _override_get_db

        return AsyncClient(
            transport=ASGITransport(app=test_app),
            base_url="http://testserver",
        )

    return _factory
