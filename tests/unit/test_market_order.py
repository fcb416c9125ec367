"""Unit tests for MarketOrderExecutor — immediate trades at the live price."""

import logging
from decimal import Decimal
from typing import Any
from unittest.mock import patch

import pytest

from src.pm_common.errors import (
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidOrderError,
    PriceUnavailableError,
    StoreWriteFailureError,
)
from src.pm_ledger.infrastructure.memory_store import InMemoryLedgerStore
from src.pm_matching.application.service import EngineServices


class TestMarketBuy:
    async def test_buy_debits_and_opens_position(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        feed.yes_prices["m1"] = Decimal("0.35")

        result = await services.market_orders.execute(user, "m1", "M", "BUY", Decimal("20"))

        assert result.price == Decimal("0.35")
        assert result.total_amount == Decimal("7.00")
        assert result.balance_after == Decimal("93.00")
        assert result.position is not None and result.position.shares == Decimal("20")
        [tx] = await store.list_transactions(user, 10)
        assert tx.id == result.transaction_id

    async def test_buy_no_side(
        self, services: EngineServices, feed: Any, user: str
    ) -> None:
        feed.yes_prices["m1"] = Decimal("0.80")
        result = await services.market_orders.execute(user, "m1_no", "M", "BUY", Decimal("10"))
        assert result.price == Decimal("0.20")
        assert result.total_amount == Decimal("2.00")

    async def test_unaffordable_buy_changes_nothing(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        feed.yes_prices["m1"] = Decimal("0.50")
        with pytest.raises(InsufficientFundsError):
            await services.market_orders.execute(user, "m1", "M", "BUY", Decimal("201"))
        assert await store.read_balance(user) == Decimal("100.00")
        assert await store.list_transactions(user, 10) == []

    async def test_failed_booking_refunds_debit(
        self,
        services: EngineServices,
        store: InMemoryLedgerStore,
        feed: Any,
        user: str,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        feed.yes_prices["m1"] = Decimal("0.50")
        with patch.object(
            store, "append_transaction", side_effect=StoreWriteFailureError("disk full")
        ):
            with caplog.at_level(logging.ERROR):
                with pytest.raises(StoreWriteFailureError):
                    await services.market_orders.execute(user, "m1", "M", "BUY", Decimal("10"))

        assert await store.read_balance(user) == Decimal("100.00")
        assert await store.get_position(user, "m1") is None
        assert any("refunding" in r.getMessage() for r in caplog.records)

    async def test_unexpected_booking_error_is_wrapped(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        feed.yes_prices["m1"] = Decimal("0.50")
        with patch.object(store, "upsert_position", side_effect=RuntimeError("boom")):
            with pytest.raises(StoreWriteFailureError):
                await services.market_orders.execute(user, "m1", "M", "BUY", Decimal("10"))
        assert await store.read_balance(user) == Decimal("100.00")

    async def test_missing_price_rejected(
        self, services: EngineServices, user: str
    ) -> None:
        with pytest.raises(PriceUnavailableError):
            await services.market_orders.execute(user, "m1", "M", "BUY", Decimal("1"))

    async def test_zero_price_rejected(
        self, services: EngineServices, feed: Any, user: str
    ) -> None:
        feed.yes_prices["m1"] = Decimal("0")
        with pytest.raises(PriceUnavailableError):
            await services.market_orders.execute(user, "m1", "M", "BUY", Decimal("1"))


class TestMarketSell:
    async def test_sell_credits_proceeds(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        await store.upsert_position(user, "m1", "M", Decimal("10"), Decimal("0.50"))
        feed.yes_prices["m1"] = Decimal("0.65")

        result = await services.market_orders.execute(user, "m1", "M", "SELL", Decimal("4"))

        assert result.total_amount == Decimal("2.60")
        assert result.balance_after == Decimal("102.60")
        assert result.position is not None
        assert result.position.shares == Decimal("6")
        assert result.position.avg_entry_price == Decimal("0.50")

    async def test_oversell_rejected(
        self, services: EngineServices, store: InMemoryLedgerStore, feed: Any, user: str
    ) -> None:
        await store.upsert_position(user, "m1", "M", Decimal("2"), Decimal("0.50"))
        feed.yes_prices["m1"] = Decimal("0.65")
        with pytest.raises(InsufficientSharesError):
            await services.market_orders.execute(user, "m1", "M", "SELL", Decimal("3"))
        assert await store.read_balance(user) == Decimal("100.00")


@pytest.mark.parametrize(("direction", "shares"), [("BUY", "0"), ("HOLD", "1")])
async def test_invalid_requests(
    services: EngineServices, user: str, direction: str, shares: str
) -> None:
    with pytest.raises(InvalidOrderError):
        await services.market_orders.execute(user, "m1", "M", direction, Decimal(shares))
