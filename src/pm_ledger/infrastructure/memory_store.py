"""InMemoryLedgerStore — single-process implementation of LedgerStoreProtocol.

One asyncio.Lock serialises every call, which makes each call atomic in the
same sense as a single SQL statement: the order-status CAS and the balance CAS
can be raced by concurrent coroutines and exactly one wins. Values are copied
in and out so callers never alias stored rows.
"""

import asyncio
import itertools
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import OrderStatus
from src.pm_common.errors import UserNotFoundError
from src.pm_ledger.domain.models import LimitOrder, Position, Transaction, User

_TRANSITIONABLE_FIELDS = frozenset({"filled_at"})


class InMemoryLedgerStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: dict[str, User] = {}
        self._orders: dict[str, LimitOrder] = {}
        self._positions: dict[tuple[str, str], Position] = {}
        self._transactions: list[Transaction] = []
        self._transaction_ids = itertools.count(1)

    # --- users / balances ---

    async def create_user(
        self, user_id: str, display_name: str | None, balance: Decimal
    ) -> User:
        async with self._lock:
            user = self._users.setdefault(
                user_id,
                User(id=user_id, display_name=display_name, balance=balance, created_at=utc_now()),
            )
            return replace(user)

    async def get_user(self, user_id: str) -> User | None:
        async with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    async def list_users(self) -> list[User]:
        async with self._lock:
            return [replace(u) for u in self._users.values()]

    async def read_balance(self, user_id: str) -> Decimal:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            return user.balance

    async def write_balance(
        self, user_id: str, new_amount: Decimal, expected_amount: Decimal | None = None
    ) -> int:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return 0
            if expected_amount is not None and user.balance != expected_amount:
                return 0
            user.balance = new_amount
            return 1

    # --- orders ---

    async def insert_order(self, order: LimitOrder) -> LimitOrder:
        async with self._lock:
            if order.id in self._orders:
                raise ValueError(f"Duplicate order id: {order.id}")
            stored = replace(order, created_at=order.created_at or utc_now())
            self._orders[order.id] = stored
            return replace(stored)

    async def get_order(self, order_id: str) -> LimitOrder | None:
        async with self._lock:
            order = self._orders.get(order_id)
            return replace(order) if order else None

    async def list_orders(
        self,
        user_id: str | None,
        statuses: Sequence[str] | None = None,
        market_id: str | None = None,
    ) -> list[LimitOrder]:
        wanted = {OrderStatus(s).value for s in statuses} if statuses else None
        async with self._lock:
            rows = [
                replace(o)
                for o in self._orders.values()
                if (user_id is None or o.user_id == user_id)
                and (market_id is None or o.market_id == market_id)
                and (wanted is None or o.status in wanted)
            ]
        # insertion order is creation order; newest first like the SQL store
        return rows[::-1]

    async def transition_order_status(
        self,
        order_id: str,
        expected_status: str,
        new_status: str,
        extra_fields: Mapping[str, datetime | None] | None = None,
    ) -> int:
        extra = dict(extra_fields or {})
        unknown = set(extra) - _TRANSITIONABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot set {sorted(unknown)} during a status transition")
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != expected_status:
                return 0
            order.status = OrderStatus(new_status).value
            if extra.get("filled_at") is not None:
                order.filled_at = extra["filled_at"]
            return 1

    # --- positions ---

    async def get_position(self, user_id: str, market_id: str) -> Position | None:
        async with self._lock:
            pos = self._positions.get((user_id, market_id))
            return replace(pos) if pos else None

    async def list_positions(self, user_id: str | None) -> list[Position]:
        async with self._lock:
            return [
                replace(p)
                for (uid, _), p in sorted(self._positions.items())
                if user_id is None or uid == user_id
            ]

    async def upsert_position(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        avg_entry_price: Decimal,
    ) -> Position:
        async with self._lock:
            key = (user_id, market_id)
            existing = self._positions.get(key)
            pos = Position(
                user_id=user_id,
                market_id=market_id,
                market_name=existing.market_name if existing else market_name,
                shares=shares,
                avg_entry_price=avg_entry_price,
                updated_at=utc_now(),
            )
            self._positions[key] = pos
            return replace(pos)

    async def delete_position(self, user_id: str, market_id: str) -> None:
        async with self._lock:
            self._positions.pop((user_id, market_id), None)

    # --- transaction log ---

    async def append_transaction(self, record: Transaction) -> Transaction:
        async with self._lock:
            stored = replace(record, id=next(self._transaction_ids), created_at=utc_now())
            self._transactions.append(stored)
            return replace(stored)

    async def list_transactions(self, user_id: str, limit: int) -> list[Transaction]:
        async with self._lock:
            rows = [replace(t) for t in self._transactions if t.user_id == user_id]
        return rows[::-1][:limit]
