"""Domain models for pm_resolution — frozen once created."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RankingEntry:
    candidate_id: str
    rank: int        # 1 = best trading P&L
    pnl_sol: float


@dataclass(frozen=True)
class MarketResolution:
    period_id: str
    winner: str
    final_ranking: tuple[RankingEntry, ...]
    payout_per_share: float   # PILLS per winning share
    total_winning_shares: float
    total_prize_pool: float   # sum of total_invested over all candidates
    house_fee: float
    resolved_at: datetime


@dataclass(frozen=True)
class Payout:
    user_id: str
    shares: float
    amount: float  # PILLS
