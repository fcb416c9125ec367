"""Unit tests for the AppError hierarchy."""

from decimal import Decimal

from src.pm_common.errors import (
    AppError,
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidOrderError,
    InvalidTokenError,
    OrderNotFoundError,
    OrderNotPendingError,
    PositionNotFoundError,
    PriceUnavailableError,
    StoreWriteFailureError,
    UserNotFoundError,
)


def test_all_errors_are_app_errors() -> None:
    errors = [
        InvalidTokenError(),
        InsufficientFundsError(Decimal("8.00"), Decimal("5.00")),
        UserNotFoundError("u"),
        PriceUnavailableError("m"),
        InvalidOrderError("x"),
        OrderNotFoundError("o"),
        OrderNotPendingError("o", "FILLED"),
        InsufficientSharesError("x"),
        PositionNotFoundError("m"),
        StoreWriteFailureError("x"),
    ]
    for err in errors:
        assert isinstance(err, AppError)
        assert isinstance(err, Exception)


def test_codes_are_unique() -> None:
    codes = [
        InvalidTokenError().code,
        InsufficientFundsError(Decimal("1"), Decimal("0")).code,
        UserNotFoundError("u").code,
        PriceUnavailableError("m").code,
        InvalidOrderError("x").code,
        OrderNotFoundError("o").code,
        OrderNotPendingError("o", "FILLED").code,
        InsufficientSharesError("x").code,
        PositionNotFoundError("m").code,
        StoreWriteFailureError("x").code,
    ]
    assert len(codes) == len(set(codes))


def test_insufficient_funds_message_and_status() -> None:
    err = InsufficientFundsError(Decimal("8.00"), Decimal("5.00"))
    assert err.code == 2001
    assert err.http_status == 422
    assert "8.00" in err.message and "5.00" in err.message


def test_order_not_pending_is_conflict() -> None:
    err = OrderNotPendingError("o-1", "FILLED")
    assert err.http_status == 409
    assert "FILLED" in err.message


def test_store_write_failure_is_503() -> None:
    assert StoreWriteFailureError("x").http_status == 503
