"""Domain models for pm_position — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class UserPosition:
    user_id: str
    period_id: str
    candidate_id: str
    shares_owned: float = 0.0
    average_price: float = 0.0     # PILLS per share paid
    total_invested: float = 0.0    # cost basis, PILLS
    current_value: float = 0.0     # shares_owned * last price
    unrealized_pnl: float = 0.0
    realized_pnl: float = 0.0      # accumulated on sells
    last_trade_at: datetime | None = None

    @property
    def is_closed(self) -> bool:
        return self.shares_owned <= 0


@dataclass
class UserPortfolio:
    user_id: str
    pills_balance: float
    positions: list[UserPosition] = field(default_factory=list)
    total_value: float = 0.0       # balance + open position value
    total_unrealized_pnl: float = 0.0
    total_realized_pnl: float = 0.0
