"""Shared test fixtures.

Engine tests run against InMemoryLedgerStore; API tests drive the FastAPI app
through httpx's ASGITransport with in-memory services and a stub price feed.
"""

from collections.abc import AsyncIterator, Iterable
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_ledger.infrastructure.memory_store import InMemoryLedgerStore
from src.pm_market.domain.models import effective_price
from src.pm_matching.application.service import EngineServices, build_services, init_services


class StubPriceFeed:
    """PriceFeedProtocol stand-in holding a mutable yes-price snapshot."""

    def __init__(self, yes_prices: dict[str, Decimal] | None = None) -> None:
        self.yes_prices: dict[str, Decimal] = dict(yes_prices or {})
        self.calls: list[set[str]] = []

    async def get_prices(self, market_ids: Iterable[str]) -> dict[str, Decimal]:
        wanted = set(market_ids)
        self.calls.append(wanted)
        result: dict[str, Decimal] = {}
        for market_id in wanted:
            price = effective_price(self.yes_prices, market_id)
            if price is not None:
                result[market_id] = price
        return result


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def feed() -> StubPriceFeed:
    return StubPriceFeed()


@pytest.fixture
def services(store: InMemoryLedgerStore, feed: StubPriceFeed) -> EngineServices:
    return build_services(store, feed, poll_interval_seconds=0.01)


@pytest.fixture
async def user(store: InMemoryLedgerStore) -> str:
    await store.create_user("user-1", "Alice", Decimal("100.00"))
    return "user-1"


@pytest.fixture
async def client(services: EngineServices) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for the FastAPI app, wired to in-memory services."""
    init_services(services)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        init_services(None)
