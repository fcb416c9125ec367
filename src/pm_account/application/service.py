"""AccountApplicationService — thin composition layer over the engine services.

Read-only: balances, the transaction log, positions with live valuation, and
the leaderboard. Live prices come from the feed; an unreachable feed degrades
to positions without a current price rather than failing the request.
"""

import logging
from decimal import Decimal

from src.pm_account.application.schemas import (
    BalanceResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    PositionListResponse,
    PositionResponse,
    TransactionItem,
    TransactionListResponse,
)
from src.pm_account.domain.leaderboard import build_leaderboard
from src.pm_common.errors import PositionNotFoundError
from src.pm_common.money import money_to_display
from src.pm_ledger.domain.models import User
from src.pm_matching.application.service import EngineServices

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(self, services: EngineServices) -> None:
        self._services = services

    async def _live_prices(self, market_ids: set[str]) -> dict[str, Decimal]:
        if not market_ids:
            return {}
        try:
            return await self._services.feed.get_prices(market_ids)
        except Exception:
            logger.warning("price feed unavailable; valuing without prices", exc_info=True)
            return {}

    async def get_balance(self, user: User) -> BalanceResponse:
        balance = await self._services.balances.read(user.id)
        return BalanceResponse.from_balance(user.id, user.display_name, balance)

    async def list_transactions(self, user_id: str, limit: int) -> TransactionListResponse:
        txs = await self._services.store.list_transactions(user_id, limit)
        items = [TransactionItem.from_domain(t) for t in txs]
        return TransactionListResponse(items=items, total=len(items))

    async def list_positions(self, user_id: str) -> PositionListResponse:
        positions = await self._services.store.list_positions(user_id)
        prices = await self._live_prices({p.market_id for p in positions})
        items = [PositionResponse.from_domain(p, prices.get(p.market_id)) for p in positions]
        return PositionListResponse(items=items, total=len(items))

    async def get_position(self, user_id: str, market_id: str) -> PositionResponse:
        pos = await self._services.positions.get(user_id, market_id)
        if pos is None:
            raise PositionNotFoundError(market_id)
        prices = await self._live_prices({market_id})
        return PositionResponse.from_domain(pos, prices.get(market_id))

    async def leaderboard(self) -> LeaderboardResponse:
        store = self._services.store
        users = await store.list_users()
        positions = await store.list_positions(None)
        prices = await self._live_prices({p.market_id for p in positions})
        board = build_leaderboard(users, positions, prices)
        items = [
            LeaderboardEntry(
                rank=rank,
                user_id=row.user_id,
                display_name=row.display_name,
                balance=row.balance,
                position_value=row.position_value,
                unrealized_pnl=row.unrealized_pnl,
                total_value=row.total_value,
                total_value_display=money_to_display(row.total_value),
                position_count=row.position_count,
            )
            for rank, row in enumerate(board, start=1)
        ]
        return LeaderboardResponse(items=items, total=len(items))
