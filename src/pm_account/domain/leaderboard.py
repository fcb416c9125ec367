"""Leaderboard projection — read-only portfolio valuation of every user.

    position_value = Σ shares × price
    unrealized_pnl = Σ shares × (price − avg_entry_price)
    total_value    = balance + position_value

A position whose market has no live price is valued at 0.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from src.pm_common.money import ZERO, round2
from src.pm_ledger.domain.models import Position, User

ANONYMOUS = "Anonymous"


@dataclass
class PortfolioValue:
    user_id: str
    display_name: str
    balance: Decimal
    position_value: Decimal
    unrealized_pnl: Decimal
    total_value: Decimal
    position_count: int


def value_portfolio(
    user: User, positions: Iterable[Position], prices: Mapping[str, Decimal]
) -> PortfolioValue:
    position_value = ZERO
    unrealized = ZERO
    count = 0
    for pos in positions:
        price = prices.get(pos.market_id, ZERO)
        position_value += pos.shares * price
        unrealized += pos.shares * (price - pos.avg_entry_price)
        count += 1
    return PortfolioValue(
        user_id=user.id,
        display_name=user.display_name or ANONYMOUS,
        balance=user.balance,
        position_value=round2(position_value),
        unrealized_pnl=round2(unrealized),
        total_value=round2(user.balance + position_value),
        position_count=count,
    )


def build_leaderboard(
    users: Iterable[User],
    positions: Iterable[Position],
    prices: Mapping[str, Decimal],
) -> list[PortfolioValue]:
    """Value every user, highest total value first."""
    by_user: dict[str, list[Position]] = defaultdict(list)
    for pos in positions:
        by_user[pos.user_id].append(pos)
    board = [value_portfolio(u, by_user.get(u.id, []), prices) for u in users]
    board.sort(key=lambda p: p.total_value, reverse=True)
    return board
