"""Unified error codes and custom exceptions.

Error code ranges:
  2xxx: Account / funds
  3xxx: Market / period
  4xxx: Order
  5xxx: Position
  9xxx: System
"""


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


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required:.4f} PILLS, available {available:.4f} PILLS",
            422,
        )


# --- 3xxx: Market ---

class CandidateNotFoundError(AppError):
    def __init__(self, candidate_id: str, period_id: str | None = None) -> None:
        where = f" in {period_id}" if period_id else ""
        super().__init__(3001, f"Candidate not found{where}: {candidate_id}", 404)


class MarketClosedError(AppError):
    def __init__(self, period_id: str) -> None:
        super().__init__(3002, f"Market is closed for trading: {period_id}", 422)


class AlreadyResolvedError(AppError):
    def __init__(self, period_id: str) -> None:
        super().__init__(3003, f"Market already resolved: {period_id}", 409)


class MarketNotEndedError(AppError):
    def __init__(self, period_id: str) -> None:
        super().__init__(3004, f"Market period has not ended yet: {period_id}", 422)


class InvalidPeriodError(AppError):
    def __init__(self, period_id: str) -> None:
        super().__init__(3005, f"Invalid period id: {period_id}", 400)


class InvalidRankingError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3006, f"Invalid ranking: {detail}", 422)


class ResolutionNotFoundError(AppError):
    def __init__(self, period_id: str) -> None:
        super().__init__(3007, f"Market not resolved yet: {period_id}", 404)


# --- 4xxx: Order ---

class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid amount: {detail}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderStateError(AppError):
    def __init__(self, order_id: str, status: str, target: str) -> None:
        super().__init__(
            4006, f"Order {order_id} in status {status} cannot become {target}", 409
        )


# --- 5xxx: Position ---

class InsufficientSharesError(AppError):
    def __init__(self, requested: float, owned: float) -> None:
        super().__init__(
            5001,
            f"Insufficient shares: requested {requested:.4f}, owned {owned:.4f}",
            422,
        )


class PositionNotFoundError(AppError):
    def __init__(self, user_id: str, candidate_id: str) -> None:
        super().__init__(
            5002, f"No position for user {user_id} in candidate {candidate_id}", 404
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
