"""Tests for global enums."""

from src.pm_common.enums import ACTIVE_ORDER_STATUSES, OrderStatus, OrderType


def test_terminal_statuses() -> None:
    assert not OrderStatus.PENDING.is_terminal
    assert OrderStatus.FILLED.is_terminal
    assert OrderStatus.CANCELLED.is_terminal


def test_values_match_db_checks() -> None:
    assert {s.value for s in OrderStatus} == {"PENDING", "FILLED", "CANCELLED"}
    assert {t.value for t in OrderType} == {"BUY", "SELL"}


def test_active_statuses_hide_cancelled() -> None:
    assert OrderStatus.CANCELLED not in ACTIVE_ORDER_STATUSES
    assert OrderStatus("PENDING") in ACTIVE_ORDER_STATUSES
