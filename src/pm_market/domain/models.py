"""Domain models for pm_market — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_period.domain.models import MarketPeriod

BASE_PRICE = 0.50


@dataclass
class CandidateShare:
    """AMM state for one candidate (KOL) within one period."""

    period_id: str
    candidate_id: str
    price_per_share: float = BASE_PRICE
    total_shares: float = 0.0
    total_invested: float = 0.0   # PILLS
    probability: float = 0.0      # derived, see PricingEngine.with_probabilities
    last_updated: datetime | None = None


@dataclass
class MarketSummary:
    period: MarketPeriod
    shares: list[CandidateShare]
    total_volume: float
    total_shares: float
    active_traders: int
    most_popular: str | None = None      # highest total_invested
    current_favorite: str | None = None  # highest probability
    probabilities: dict[str, float] = field(default_factory=dict)
