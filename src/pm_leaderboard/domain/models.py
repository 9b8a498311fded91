"""Domain models for pm_leaderboard — KOL trading activity and ranking."""

from dataclasses import dataclass
from datetime import datetime

# Sold tokens within 0.1% of bought tokens count as a fully exited trade.
COMPLETION_TOLERANCE = 0.001


@dataclass(frozen=True)
class TradeEvent:
    """One confirmed KOL swap, normalized from the ingestion feed."""

    candidate_id: str
    token_mint: str
    side: str  # BUY / SELL
    sol_amount: float
    token_amount: float
    timestamp: datetime
    signature: str


@dataclass
class CandidateTrade:
    """All of one KOL's swaps in one token, aggregated."""

    candidate_id: str
    token_mint: str
    sol_bought: float = 0.0
    sol_sold: float = 0.0
    tokens_bought: float = 0.0
    tokens_sold: float = 0.0
    started_at: datetime | None = None
    last_activity_at: datetime | None = None

    @property
    def pnl_sol(self) -> float:
        return self.sol_sold - self.sol_bought

    @property
    def is_complete(self) -> bool:
        tolerance = self.tokens_bought * COMPLETION_TOLERANCE
        return self.tokens_sold >= self.tokens_bought - tolerance


@dataclass
class LeaderboardEntry:
    candidate_id: str
    total_trades: int = 0      # completed trades
    total_pnl_sol: float = 0.0
    total_pnl_usd: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0      # percent
    active_trades: int = 0
    last_trade_at: datetime | None = None
    rank: int = 0
