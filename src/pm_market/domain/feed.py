"""PriceFeed Protocol — the only thing the engine needs from a price source."""

from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol


class PriceFeedProtocol(Protocol):
    async def get_prices(self, market_ids: Iterable[str]) -> dict[str, Decimal]:
        """Current yes-price in [0, 1] per known, open market.

        Unknown or closed markets are simply absent; "_no" targets are keyed by
        their own id with the complementary price already applied.
        """
        ...
