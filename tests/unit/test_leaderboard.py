"""Unit tests for the leaderboard projection."""

from decimal import Decimal

from src.pm_account.domain.leaderboard import build_leaderboard, value_portfolio
from src.pm_ledger.domain.models import Position, User


def _user(user_id: str, balance: str, name: str | None = None) -> User:
    return User(id=user_id, display_name=name, balance=Decimal(balance))


def _pos(user_id: str, market_id: str, shares: str, avg: str) -> Position:
    return Position(
        user_id=user_id,
        market_id=market_id,
        market_name=market_id,
        shares=Decimal(shares),
        avg_entry_price=Decimal(avg),
    )


def test_value_portfolio() -> None:
    value = value_portfolio(
        _user("u1", "93.00", "Alice"),
        [_pos("u1", "m1", "20", "0.35"), _pos("u1", "m2_no", "10", "0.50")],
        {"m1": Decimal("0.50"), "m2_no": Decimal("0.40")},
    )
    assert value.position_value == Decimal("14.00")
    assert value.unrealized_pnl == Decimal("2.00")
    assert value.total_value == Decimal("107.00")
    assert value.position_count == 2


def test_missing_price_counts_as_zero() -> None:
    value = value_portfolio(_user("u1", "10.00"), [_pos("u1", "gone", "5", "0.40")], {})
    assert value.position_value == Decimal("0.00")
    assert value.unrealized_pnl == Decimal("-2.00")
    assert value.total_value == Decimal("10.00")


def test_sorted_by_total_value_with_anonymous_fallback() -> None:
    users = [_user("poor", "50.00", "Pat"), _user("rich", "90.00"), _user("mid", "80.00", "Mo")]
    positions = [_pos("mid", "m1", "100", "0.10"), _pos("rich", "m1", "1", "0.10")]

    board = build_leaderboard(users, positions, {"m1": Decimal("0.20")})

    assert [(row.user_id, row.total_value) for row in board] == [
        ("mid", Decimal("100.00")),
        ("rich", Decimal("90.20")),
        ("poor", Decimal("50.00")),
    ]
    assert board[1].display_name == "Anonymous"
    assert board[2].position_count == 0
