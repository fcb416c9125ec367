"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account / balance
  3xxx: Market / price feed
  4xxx: Order
  5xxx: Position
  9xxx: System
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired access token", 401)


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required}, available {available}",
            422,
        )


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"User not found: {user_id}", 404)


# --- 3xxx: Market ---

class PriceUnavailableError(AppError):
    """Raised only for immediate orders; the fill sweep treats a missing price as a skip."""

    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"No live price for market: {market_id}", 422)


# --- 4xxx: Order ---

class InvalidOrderError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid order: {detail}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderNotPendingError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} is {status}, not PENDING", 409)


# --- 5xxx: Position ---

class InsufficientSharesError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Insufficient shares: {detail}", 422)


class PositionNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(5004, f"Position not found: {market_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreWriteFailureError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Store write failed: {detail}", 503)
