"""Global enums — values match the DB CHECK constraints in alembic/versions."""

from enum import Enum


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderStatus(str, Enum):
    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TradeSide(str, Enum):
    """Direction of a KOL's own DEX trade (leaderboard input)."""
    BUY = "BUY"
    SELL = "SELL"


class LedgerEntryType(str, Enum):
    BET_DEBIT = "BET_DEBIT"          # buy order fill
    SELL_CREDIT = "SELL_CREDIT"      # sell order fill
    PAYOUT_CREDIT = "PAYOUT_CREDIT"  # resolution payout
