"""Pydantic schemas for the account, positions and leaderboard APIs.

Money and prices are serialised as decimal strings; *_display fields carry
the formatted dollar amount for UIs.
"""

from decimal import Decimal

from pydantic import BaseModel

from src.pm_common.datetime_utils import to_iso
from src.pm_common.money import money_to_display
from src.pm_ledger.domain.models import Position, Transaction


class BalanceResponse(BaseModel):
    user_id: str
    display_name: str | None
    balance: Decimal
    balance_display: str

    @classmethod
    def from_balance(
        cls, user_id: str, display_name: str | None, balance: Decimal
    ) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            display_name=display_name,
            balance=balance,
            balance_display=money_to_display(balance),
        )


class TransactionItem(BaseModel):
    id: int | None
    market_id: str
    market_name: str
    action_type: str
    shares: Decimal
    price_per_share: Decimal
    total_amount: Decimal
    total_amount_display: str
    created_at: str | None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            market_id=tx.market_id,
            market_name=tx.market_name,
            action_type=tx.action_type,
            shares=tx.shares,
            price_per_share=tx.price_per_share,
            total_amount=tx.total_amount,
            total_amount_display=money_to_display(tx.total_amount),
            created_at=to_iso(tx.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
    total: int


class PositionResponse(BaseModel):
    market_id: str
    market_name: str
    shares: Decimal
    avg_entry_price: Decimal
    cost_basis: Decimal
    current_price: Decimal | None = None
    market_value: Decimal | None = None
    unrealized_pnl: Decimal | None = None

    @classmethod
    def from_domain(
        cls, pos: Position, current_price: Decimal | None = None
    ) -> "PositionResponse":
        value = pnl = None
        if current_price is not None:
            value = pos.shares * current_price
            pnl = pos.shares * (current_price - pos.avg_entry_price)
        return cls(
            market_id=pos.market_id,
            market_name=pos.market_name,
            shares=pos.shares,
            avg_entry_price=pos.avg_entry_price,
            cost_basis=pos.cost_basis,
            current_price=current_price,
            market_value=value,
            unrealized_pnl=pnl,
        )


class PositionListResponse(BaseModel):
    items: list[PositionResponse]
    total: int


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    display_name: str
    balance: Decimal
    position_value: Decimal
    unrealized_pnl: Decimal
    total_value: Decimal
    total_value_display: str
    position_count: int


class LeaderboardResponse(BaseModel):
    items: list[LeaderboardEntry]
    total: int
