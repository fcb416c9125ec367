"""SqlLedgerStore — PostgreSQL implementation of LedgerStoreProtocol.

Each method opens its own session and commits one short transaction, so every
call is independently durable, exactly like the contract describes. Writes that
must not race are expressed as a single conditional UPDATE; a result of 0 rows
means the guard no longer held and the caller decides what that means.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import TextClause, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.pm_common.enums import OrderStatus
from src.pm_common.errors import InternalError, StoreWriteFailureError, UserNotFoundError
from src.pm_ledger.domain.models import LimitOrder, Position, Transaction, User

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL: users / balances
# ---------------------------------------------------------------------------

_INSERT_USER_SQL = text("""
    INSERT INTO users (id, display_name, balance)
    VALUES (:id, :display_name, :balance)
    ON CONFLICT (id) DO NOTHING
""")

_GET_USER_SQL = text("""
    SELECT id, display_name, balance, created_at
    FROM users WHERE id = :id
""")

_LIST_USERS_SQL = text("""
    SELECT id, display_name, balance, created_at
    FROM users ORDER BY created_at, id
""")

_WRITE_BALANCE_SQL = text("""
    UPDATE users
    SET balance = :new_amount, updated_at = NOW()
    WHERE id = :id
""")

_CAS_BALANCE_SQL = text("""
    UPDATE users
    SET balance = :new_amount, updated_at = NOW()
    WHERE id = :id AND balance = :expected_amount
""")

# ---------------------------------------------------------------------------
# SQL: limit orders
# ---------------------------------------------------------------------------

_ORDER_COLUMNS = """
    id, user_id, market_id, market_name, order_type, shares, limit_price,
    escrowed_amount, status, created_at, filled_at
"""

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO limit_orders (id, user_id, market_id, market_name, order_type,
        shares, limit_price, escrowed_amount, status)
    VALUES (:id, :user_id, :market_id, :market_name, :order_type,
        :shares, :limit_price, :escrowed_amount, :status)
    RETURNING {_ORDER_COLUMNS}
""")

_GET_ORDER_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM limit_orders WHERE id = :id
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM limit_orders
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
      AND (CAST(:market_id AS TEXT) IS NULL OR market_id = :market_id)
      AND (CAST(:statuses_csv AS TEXT) IS NULL
           OR status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ',')))
    ORDER BY created_at DESC, id DESC
""")

# The compare-and-set every fill and cancel goes through.
_TRANSITION_ORDER_SQL = text("""
    UPDATE limit_orders
    SET status = :new_status,
        filled_at = COALESCE(:filled_at, filled_at)
    WHERE id = :id AND status = :expected_status
""")

_TRANSITIONABLE_FIELDS = frozenset({"filled_at"})

# ---------------------------------------------------------------------------
# SQL: positions
# ---------------------------------------------------------------------------

_POSITION_COLUMNS = "user_id, market_id, market_name, shares, avg_entry_price, updated_at"

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions WHERE user_id = :user_id AND market_id = :market_id
""")

_LIST_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
    ORDER BY user_id, market_id
""")

_UPSERT_POSITION_SQL = text(f"""
    INSERT INTO positions (user_id, market_id, market_name, shares, avg_entry_price)
    VALUES (:user_id, :market_id, :market_name, :shares, :avg_entry_price)
    ON CONFLICT (user_id, market_id) DO UPDATE
        SET shares = EXCLUDED.shares,
            avg_entry_price = EXCLUDED.avg_entry_price,
            updated_at = NOW()
    RETURNING {_POSITION_COLUMNS}
""")

_DELETE_POSITION_SQL = text("""
    DELETE FROM positions WHERE user_id = :user_id AND market_id = :market_id
""")

# ---------------------------------------------------------------------------
# SQL: transactions (append-only)
# ---------------------------------------------------------------------------

_TRANSACTION_COLUMNS = """
    id, user_id, market_id, market_name, action_type, shares,
    price_per_share, total_amount, created_at
"""

_INSERT_TRANSACTION_SQL = text(f"""
    INSERT INTO transactions (user_id, market_id, market_name, action_type,
        shares, price_per_share, total_amount)
    VALUES (:user_id, :market_id, :market_name, :action_type,
        :shares, :price_per_share, :total_amount)
    RETURNING {_TRANSACTION_COLUMNS}
""")

_LIST_TRANSACTIONS_SQL = text(f"""
    SELECT {_TRANSACTION_COLUMNS}
    FROM transactions
    WHERE user_id = :user_id
    ORDER BY id DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_user(row: Any) -> User:
    return User(
        id=row.id,
        display_name=row.display_name,
        balance=row.balance,
        created_at=row.created_at,
    )


def _row_to_order(row: Any) -> LimitOrder:
    return LimitOrder(
        id=row.id,
        user_id=row.user_id,
        market_id=row.market_id,
        market_name=row.market_name,
        order_type=row.order_type,
        shares=row.shares,
        limit_price=row.limit_price,
        escrowed_amount=row.escrowed_amount,
        status=row.status,
        created_at=row.created_at,
        filled_at=row.filled_at,
    )


def _row_to_position(row: Any) -> Position:
    return Position(
        user_id=row.user_id,
        market_id=row.market_id,
        market_name=row.market_name,
        shares=row.shares,
        avg_entry_price=row.avg_entry_price,
        updated_at=row.updated_at,
    )


def _row_to_transaction(row: Any) -> Transaction:
    return Transaction(
        id=row.id,
        user_id=row.user_id,
        market_id=row.market_id,
        market_name=row.market_name,
        action_type=row.action_type,
        shares=row.shares,
        price_per_share=row.price_per_share,
        total_amount=row.total_amount,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SqlLedgerStore:
    """Concrete store — one session and one commit per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _fetchone(self, stmt: TextClause, params: dict[str, Any]) -> Any:
        async with self._session_factory() as db:
            return (await db.execute(stmt, params)).fetchone()

    async def _fetchall(self, stmt: TextClause, params: dict[str, Any]) -> list[Any]:
        async with self._session_factory() as db:
            return list((await db.execute(stmt, params)).fetchall())

    async def _write(
        self, stmt: TextClause, params: dict[str, Any], *, returning: bool = False
    ) -> Any:
        """Run one write in its own transaction; returns the row if RETURNING, else rowcount."""
        try:
            async with self._session_factory() as db, db.begin():
                result = await db.execute(stmt, params)
                if returning:
                    return result.fetchone()
                return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as exc:
            logger.error("ledger write failed: %s", exc)
            raise StoreWriteFailureError(type(exc).__name__) from exc

    # --- users / balances ---

    async def create_user(
        self, user_id: str, display_name: str | None, balance: Decimal
    ) -> User:
        await self._write(
            _INSERT_USER_SQL, {"id": user_id, "display_name": display_name, "balance": balance}
        )
        user = await self.get_user(user_id)
        if user is None:
            raise InternalError(f"User insert for {user_id} not visible after commit")
        return user

    async def get_user(self, user_id: str) -> User | None:
        row = await self._fetchone(_GET_USER_SQL, {"id": user_id})
        return _row_to_user(row) if row else None

    async def list_users(self) -> list[User]:
        return [_row_to_user(r) for r in await self._fetchall(_LIST_USERS_SQL, {})]

    async def read_balance(self, user_id: str) -> Decimal:
        user = await self.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user.balance

    async def write_balance(
        self, user_id: str, new_amount: Decimal, expected_amount: Decimal | None = None
    ) -> int:
        if expected_amount is None:
            return int(
                await self._write(_WRITE_BALANCE_SQL, {"id": user_id, "new_amount": new_amount})
            )
        return int(
            await self._write(
                _CAS_BALANCE_SQL,
                {"id": user_id, "new_amount": new_amount, "expected_amount": expected_amount},
            )
        )

    # --- orders ---

    async def insert_order(self, order: LimitOrder) -> LimitOrder:
        row = await self._write(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "user_id": order.user_id,
                "market_id": order.market_id,
                "market_name": order.market_name,
                "order_type": order.order_type,
                "shares": order.shares,
                "limit_price": order.limit_price,
                "escrowed_amount": order.escrowed_amount,
                "status": order.status,
            },
            returning=True,
        )
        if row is None:
            raise StoreWriteFailureError(f"order insert returned no row: {order.id}")
        return _row_to_order(row)

    async def get_order(self, order_id: str) -> LimitOrder | None:
        row = await self._fetchone(_GET_ORDER_SQL, {"id": order_id})
        return _row_to_order(row) if row else None

    async def list_orders(
        self,
        user_id: str | None,
        statuses: Sequence[str] | None = None,
        market_id: str | None = None,
    ) -> list[LimitOrder]:
        statuses_csv = ",".join(OrderStatus(s).value for s in statuses) if statuses else None
        rows = await self._fetchall(
            _LIST_ORDERS_SQL,
            {"user_id": user_id, "market_id": market_id, "statuses_csv": statuses_csv},
        )
        return [_row_to_order(r) for r in rows]

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
        return int(
            await self._write(
                _TRANSITION_ORDER_SQL,
                {
                    "id": order_id,
                    "expected_status": OrderStatus(expected_status).value,
                    "new_status": OrderStatus(new_status).value,
                    "filled_at": extra.get("filled_at"),
                },
            )
        )

    # --- positions ---

    async def get_position(self, user_id: str, market_id: str) -> Position | None:
        row = await self._fetchone(
            _GET_POSITION_SQL, {"user_id": user_id, "market_id": market_id}
        )
        return _row_to_position(row) if row else None

    async def list_positions(self, user_id: str | None) -> list[Position]:
        rows = await self._fetchall(_LIST_POSITIONS_SQL, {"user_id": user_id})
        return [_row_to_position(r) for r in rows]

    async def upsert_position(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        avg_entry_price: Decimal,
    ) -> Position:
        row = await self._write(
            _UPSERT_POSITION_SQL,
            {
                "user_id": user_id,
                "market_id": market_id,
                "market_name": market_name,
                "shares": shares,
                "avg_entry_price": avg_entry_price,
            },
            returning=True,
        )
        if row is None:
            raise StoreWriteFailureError(f"position upsert returned no row: {market_id}")
        return _row_to_position(row)

    async def delete_position(self, user_id: str, market_id: str) -> None:
        await self._write(_DELETE_POSITION_SQL, {"user_id": user_id, "market_id": market_id})

    # --- transaction log ---

    async def append_transaction(self, record: Transaction) -> Transaction:
        row = await self._write(
            _INSERT_TRANSACTION_SQL,
            {
                "user_id": record.user_id,
                "market_id": record.market_id,
                "market_name": record.market_name,
                "action_type": record.action_type,
                "shares": record.shares,
                "price_per_share": record.price_per_share,
                "total_amount": record.total_amount,
            },
            returning=True,
        )
        if row is None:
            raise StoreWriteFailureError("transaction insert returned no row")
        return _row_to_transaction(row)

    async def list_transactions(self, user_id: str, limit: int) -> list[Transaction]:
        rows = await self._fetchall(_LIST_TRANSACTIONS_SQL, {"user_id": user_id, "limit": limit})
        return [_row_to_transaction(r) for r in rows]
