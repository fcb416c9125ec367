"""Unit tests for PositionLedger — weighted average entry price and closing."""

from decimal import Decimal

import pytest

from src.pm_account.domain.position_ledger import PositionLedger
from src.pm_common.errors import InsufficientSharesError, InvalidOrderError
from src.pm_ledger.infrastructure.memory_store import InMemoryLedgerStore


@pytest.fixture
def ledger(store: InMemoryLedgerStore) -> PositionLedger:
    return PositionLedger(store)


class TestBuy:
    async def test_first_buy_opens_position_at_fill_price(self, ledger: PositionLedger) -> None:
        pos = await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("20"), Decimal("0.35"))
        assert pos is not None
        assert pos.shares == Decimal("20")
        assert pos.avg_entry_price == Decimal("0.35")

    async def test_weighted_average(self, ledger: PositionLedger) -> None:
        await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("10"), Decimal("0.50"))
        pos = await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("20"), Decimal("0.35"))
        assert pos is not None
        assert pos.shares == Decimal("30")
        assert pos.avg_entry_price == Decimal("0.4")

    async def test_average_independent_of_fill_order(self, store: InMemoryLedgerStore) -> None:
        a, b = PositionLedger(store), PositionLedger(store)
        await a.apply_fill("u1", "m1", "M", "BUY", Decimal("7"), Decimal("0.21"))
        await a.apply_fill("u1", "m1", "M", "BUY", Decimal("3"), Decimal("0.66"))
        await b.apply_fill("u2", "m1", "M", "BUY", Decimal("3"), Decimal("0.66"))
        await b.apply_fill("u2", "m1", "M", "BUY", Decimal("7"), Decimal("0.21"))

        first = await store.get_position("u1", "m1")
        second = await store.get_position("u2", "m1")
        assert first is not None and second is not None
        assert first.avg_entry_price == second.avg_entry_price == Decimal("0.345")


class TestSell:
    async def test_partial_sell_keeps_average(self, ledger: PositionLedger) -> None:
        await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("10"), Decimal("0.50"))
        pos = await ledger.apply_fill("u", "m1", "M", "SELL", Decimal("4"), Decimal("0.90"))
        assert pos is not None
        assert pos.shares == Decimal("6")
        assert pos.avg_entry_price == Decimal("0.50")

    async def test_selling_everything_removes_position(
        self, ledger: PositionLedger, store: InMemoryLedgerStore
    ) -> None:
        await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("10"), Decimal("0.50"))
        pos = await ledger.apply_fill("u", "m1", "M", "SELL", Decimal("10"), Decimal("0.65"))
        assert pos is None
        assert await store.get_position("u", "m1") is None
        assert await ledger.shares_held("u", "m1") == Decimal("0")

    async def test_oversell_rejected(self, ledger: PositionLedger) -> None:
        await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("2"), Decimal("0.50"))
        with pytest.raises(InsufficientSharesError):
            await ledger.apply_fill("u", "m1", "M", "SELL", Decimal("3"), Decimal("0.50"))

    async def test_sell_without_position_rejected(self, ledger: PositionLedger) -> None:
        with pytest.raises(InsufficientSharesError):
            await ledger.apply_fill("u", "m1", "M", "SELL", Decimal("1"), Decimal("0.50"))

    async def test_clamped_oversell_closes_position(
        self, ledger: PositionLedger, store: InMemoryLedgerStore
    ) -> None:
        await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("5"), Decimal("0.50"))
        pos = await ledger.apply_fill(
            "u", "m1", "M", "SELL", Decimal("10"), Decimal("0.60"), clamp=True
        )
        assert pos is None
        assert await store.get_position("u", "m1") is None

    async def test_clamped_sell_without_position_is_a_no_op(self, ledger: PositionLedger) -> None:
        pos = await ledger.apply_fill(
            "u", "m1", "M", "SELL", Decimal("1"), Decimal("0.50"), clamp=True
        )
        assert pos is None


async def test_non_positive_shares_rejected(ledger: PositionLedger) -> None:
    with pytest.raises(InvalidOrderError):
        await ledger.apply_fill("u", "m1", "M", "BUY", Decimal("0"), Decimal("0.50"))
