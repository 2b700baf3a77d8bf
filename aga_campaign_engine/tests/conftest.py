"""Pytest configuration and fixtures for the campaign engine tests.

This module provides fixtures for:
- Database: a throwaway SQLite file per test (aiosqlite), schema from the models
- Change feed: the in-process feed, so no Redis is needed
- HTTP client: httpx AsyncClient over ASGITransport with overridden dependencies
- Seeding: campaigns, runs and metrics rows for an owner
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CHANGE_FEED_BACKEND", "local")
os.environ.setdefault("SECRET_KEY", "test-secret-key-do-not-use-in-production")
os.environ.setdefault("WORKFLOW_CALLBACK_SECRET", "test-workflow-secret")
os.environ.setdefault("WORKFLOW_WEBHOOK_URL", "http://workflow.test/webhook/enrich")

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import aga.models.campaign  # noqa
import aga.models.metrics  # noqa
import aga.models.run  # noqa
import aga.models.user  # noqa
from aga.core.database import Base, get_db, get_session_factory
from aga.core.security import create_access_token
from aga.models.campaign import Campaign, CampaignLead, LeadSource
from aga.models.metrics import ClientMetrics
from aga.models.run import Run, RunStatusValue
from aga.services.change_feed import LocalChangeFeed, get_change_feed
from aga.services.profiles import UserContext

OWNER_ID = "user-owner-1"
OTHER_ID = "user-other-2"


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
async def engine(tmp_path):
    """Async SQLite engine on a file, so concurrent sessions get their own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'aga_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# -----------------------------------------------------------------------------
# Domain Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def feed() -> LocalChangeFeed:
    return LocalChangeFeed()


@pytest.fixture
def owner() -> UserContext:
    return UserContext(user_id=OWNER_ID, email="owner@example.com")


@pytest.fixture
def power_owner() -> UserContext:
    return UserContext(user_id=OWNER_ID, email="owner@example.com", is_power_user=True)


@pytest.fixture
def seed(session_factory):
    """Insert a campaign with its lead placeholder, run and optional metrics row."""

    async def _seed(
        name: str,
        user_id: str = OWNER_ID,
        status: str = RunStatusValue.IN_QUEUE,
        metrics: Optional[tuple] = None,
        minutes_ago: int = 0,
    ) -> dict:
        created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        campaign_id = uuid.uuid4()
        run_id = str(uuid.uuid4())
        async with session_factory() as session:
            session.add(Campaign(
                id=campaign_id,
                user_auth_id=user_id,
                name=name,
                source=LeadSource.LABELS[LeadSource.APOLLO],
                lead_count=500,
                completed_count=0,
                created_at=created_at,
            ))
            session.add(CampaignLead(campaign_id=campaign_id, lead_data={}, apollo_cache={}))
            session.add(Run(
                run_id=run_id,
                status=status,
                lead_count=500,
                source=LeadSource.LABELS[LeadSource.APOLLO],
                campaign_name=name,
                user_auth_id=user_id,
                created_at=created_at,
            ))
            if metrics is not None:
                leads, hours, money = metrics
                session.add(ClientMetrics(
                    user_auth_id=user_id,
                    run_id=run_id,
                    num_personalized_leads=leads,
                    hours_saved=hours,
                    money_saved=money,
                ))
            await session.commit()
        return {"campaign_id": campaign_id, "run_id": run_id, "name": name}

    return _seed


# -----------------------------------------------------------------------------
# HTTP Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def app(session_factory, feed):
    """The FastAPI app bound to the test database and the in-process feed."""
    from aga.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_change_feed] = lambda: feed
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict:
    token = create_access_token(OWNER_ID, email="owner@example.com")
    return {"Authorization": f"Bearer {token}"}
