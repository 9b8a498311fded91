"""Domain models for pm_period — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class MarketPeriod:
    id: str                  # period_<start epoch ms>
    epoch_number: int        # start ms // period length ms
    start_time: datetime
    end_time: datetime       # exclusive
    is_active: bool          # now in [start, end)
    is_resolved: bool        # now >= end
    winner: str | None = None
    total_volume: float = 0.0  # PILLS invested across all candidates
