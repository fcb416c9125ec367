"""Unit tests for FillScheduler — one tick, start/stop lifecycle, failure tolerance."""

import asyncio
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.pm_common.enums import FillOutcome
from src.pm_ledger.infrastructure.memory_store import InMemoryLedgerStore
from src.pm_matching.application.service import EngineServices
from src.pm_matching.engine.scheduler import FillScheduler


class TestRunOnce:
    async def test_fetches_prices_only_for_pending_markets(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        feed.yes_prices.update({"m1": Decimal("0.35"), "m2": Decimal("0.90")})
        await services.order_book.place_limit(
            user, "m1", "M", "BUY", Decimal("20"), Decimal("0.40")
        )

        results = await services.scheduler.run_once()

        assert [r.outcome for r in results] == [FillOutcome.FILLED]
        assert feed.calls == [{"m1"}]
        assert await store.read_balance(user) == Decimal("93.00")

    async def test_nothing_pending_skips_the_feed(
        self, services: EngineServices, feed: Any
    ) -> None:
        assert await services.scheduler.run_once() == []
        assert feed.calls == []

    async def test_scoped_to_one_user(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        await store.create_user("user-2", None, Decimal("100.00"))
        feed.yes_prices["m1"] = Decimal("0.10")
        book = services.order_book
        await book.place_limit(user, "m1", "M", "BUY", Decimal("1"), Decimal("0.40"))
        other = await book.place_limit("user-2", "m1", "M", "BUY", Decimal("1"), Decimal("0.40"))

        results = await services.scheduler.run_once(user)

        assert len(results) == 1
        stored = await store.get_order(other.id)
        assert stored is not None and stored.status == "PENDING"


class TestLifecycle:
    async def test_start_and_stop(self, services: EngineServices) -> None:
        scheduler = services.scheduler
        scheduler.start()
        assert scheduler.running
        scheduler.start()  # second start is a no-op
        await asyncio.sleep(0.03)
        await scheduler.stop()
        assert not scheduler.running

    async def test_stop_without_start(self, services: EngineServices) -> None:
        await services.scheduler.stop()
        assert not services.scheduler.running

    async def test_failed_tick_does_not_kill_the_loop(self) -> None:
        calls = 0

        async def pending(user_id: str | None = None) -> list[Any]:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("db down")
            return []

        order_book = AsyncMock()
        order_book.pending_orders.side_effect = pending
        scheduler = FillScheduler(AsyncMock(), order_book, AsyncMock(), interval_seconds=0.01)

        scheduler.start()
        await asyncio.sleep(0.05)
        assert scheduler.running
        await scheduler.stop()
        assert calls >= 2

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            FillScheduler(AsyncMock(), AsyncMock(), AsyncMock(), interval_seconds=0)
