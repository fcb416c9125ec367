"""GammaPriceFeed — pulls live odds from the Gamma events API over httpx.

One GET per configured event slug, issued concurrently. A slug that fails
(network, non-2xx, bad JSON) is logged and skipped; the rest of the snapshot
is still returned. Nothing here raises into the fill sweep.
"""

import asyncio
import json
import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from src.pm_market.domain.models import FeedMarket, effective_price

logger = logging.getLogger(__name__)


def _json_list(value: Any) -> list[Any]:
    """Gamma encodes list fields as JSON strings; anything unparsable becomes []."""
    if isinstance(value, list):
        return value
    if not isinstance(value, str):
        return []
    try:
        parsed = json.loads(value)
    except ValueError:
        return []
    return parsed if isinstance(parsed, list) else []


def _price(value: Any) -> Decimal | None:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return price if price.is_finite() else None


def parse_market(raw: dict[str, Any]) -> FeedMarket:
    prices = [_price(p) for p in _json_list(raw.get("outcomePrices"))]
    return FeedMarket(
        id=str(raw.get("id", "")),
        question=str(raw.get("question") or ""),
        group_item_title=str(raw.get("groupItemTitle") or ""),
        outcomes=[str(o) for o in _json_list(raw.get("outcomes"))],
        # an unparsable price drops the market from the snapshot rather than guessing
        outcome_prices=[p for p in prices if p is not None] if None not in prices else [],
        active=bool(raw.get("active")),
        closed=bool(raw.get("closed")),
    )


def parse_event(raw: dict[str, Any]) -> list[FeedMarket]:
    markets = [parse_market(m) for m in raw.get("markets") or [] if isinstance(m, dict)]
    return [m for m in markets if m.id and m.is_open]


class GammaPriceFeed:
    """PriceFeedProtocol implementation backed by the public Gamma API."""

    def __init__(
        self,
        base_url: str,
        event_slugs: Sequence[str],
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url
        self._event_slugs = list(event_slugs)
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _fetch_event(self, slug: str) -> dict[str, Any] | None:
        try:
            resp = await self._client.get(self._base_url, params={"slug": slug})
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("price feed: event %s unavailable: %s", slug, exc)
            return None
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else None

    async def fetch_markets(self) -> list[FeedMarket]:
        events = await asyncio.gather(*(self._fetch_event(s) for s in self._event_slugs))
        markets: list[FeedMarket] = []
        for event in events:
            if event is not None:
                markets.extend(parse_event(event))
        return markets

    async def snapshot(self) -> dict[str, Decimal]:
        """Every open target's yes-price, keyed by target id (no "_no" entries)."""
        prices: dict[str, Decimal] = {}
        for market in await self.fetch_markets():
            prices.update(market.yes_prices())
        logger.debug("price feed: %d targets priced", len(prices))
        return prices

    async def get_prices(self, market_ids: Iterable[str]) -> dict[str, Decimal]:
        wanted = set(market_ids)
        if not wanted:
            return {}
        yes_prices = await self.snapshot()
        result: dict[str, Decimal] = {}
        for market_id in wanted:
            price = effective_price(yes_prices, market_id)
            if price is not None:
                result[market_id] = price
        return result
