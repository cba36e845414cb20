"""Shared test fixtures for the Fundability API test suite."""

import uuid
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.modules.fundability.store import InMemoryAssessmentStore, get_store

SAMPLE_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
OTHER_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def store() -> InMemoryAssessmentStore:
    """Fresh in-memory store seeded with the opportunity catalog."""
    return InMemoryAssessmentStore()


@pytest.fixture
async def client(store: InMemoryAssessmentStore) -> AsyncGenerator[AsyncClient]:
    """Unauthenticated client; ASGITransport skips lifespan, so the store is injected."""
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_store, None)


@pytest.fixture
async def authenticated_client(client: AsyncClient) -> AsyncClient:
    """Client carrying the gateway identity header for SAMPLE_USER_ID."""
    client.headers["X-User-ID"] = str(SAMPLE_USER_ID)
    return client


# ── Sample responses ──────────────────────────────────────────────────────

STRONG_RESPONSES = {
    "ein": True,
    "business-type": "LLC",
    "state-registration": True,
    "business-license": True,
    "business-age": 36,
    "business-credit-established": True,
    "credit-monitoring": True,
    "duns-number": True,
    "personal-credit-score": "750-799",
    "trade-references": 5,
    "business-bank-account": True,
    "separate-finances": True,
    "accounting-system": True,
    "annual-revenue": 300000,
    "business-website": True,
    "business-email": True,
    "business-phone": True,
    "industry": "Retail",
    "business-insurance": True,
    "industry-licenses-compliance": True,
    "financial-statements": True,
}


@pytest.fixture
def strong_responses() -> dict:
    return dict(STRONG_RESPONSES)
