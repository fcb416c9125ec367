"""PositionLedger — share counts and weighted-average entry price.

Used identically by limit-order settlement and immediate market orders:

  BUY   new_shares = old + shares
        new_avg    = (old * old_avg + shares * price) / new_shares
  SELL  new_shares = old - shares   (avg unchanged; row deleted at <= 0)
"""

import logging
from decimal import Decimal

from src.pm_common.enums import OrderType
from src.pm_common.errors import InsufficientSharesError, InvalidOrderError
from src.pm_common.money import ZERO
from src.pm_ledger.domain.models import Position
from src.pm_ledger.domain.store import LedgerStoreProtocol

logger = logging.getLogger(__name__)


class PositionLedger:
    def __init__(self, store: LedgerStoreProtocol) -> None:
        self._store = store

    async def get(self, user_id: str, market_id: str) -> Position | None:
        return await self._store.get_position(user_id, market_id)

    async def shares_held(self, user_id: str, market_id: str) -> Decimal:
        pos = await self._store.get_position(user_id, market_id)
        return pos.shares if pos else ZERO

    async def apply_fill(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        direction: str,
        shares: Decimal,
        price: Decimal,
        clamp: bool = False,
    ) -> Position | None:
        """Apply one fill; returns the resulting position, or None once it is closed.

        A SELL larger than the holding raises InsufficientSharesError unless
        clamp is set, in which case the position is closed out. Settlement of
        an already FILLED order uses clamp because it cannot be undone.
        """
        if shares <= ZERO:
            raise InvalidOrderError(f"shares must be positive, got {shares}")
        existing = await self._store.get_position(user_id, market_id)

        if direction == OrderType.BUY:
            old_shares = existing.shares if existing else ZERO
            old_avg = existing.avg_entry_price if existing else ZERO
            new_shares = old_shares + shares
            new_avg = (old_shares * old_avg + shares * price) / new_shares
            return await self._store.upsert_position(
                user_id, market_id, market_name, new_shares, new_avg
            )

        if direction != OrderType.SELL:
            raise InvalidOrderError(f"unknown direction {direction!r}")
        held = existing.shares if existing else ZERO
        if existing is None or shares > held:
            if not clamp:
                raise InsufficientSharesError(
                    f"{market_id}: selling {shares}, holding {held}"
                )
            logger.warning(
                "user %s settled SELL of %s %s while holding %s; position closed",
                user_id, shares, market_id, held,
            )
            if existing is None:
                return None
        remaining = held - shares
        if remaining <= ZERO:
            await self._store.delete_position(user_id, market_id)
            return None
        return await self._store.upsert_position(
            user_id, market_id, existing.market_name, remaining, existing.avg_entry_price
        )
