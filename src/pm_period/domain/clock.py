"""Period clock — fixed 24h betting epochs aligned to UTC midnight.

Periods are half-open intervals [start, end): at exactly 00:00:00Z the
previous day's period ends and the next one becomes active. Nothing here is
stored; a period is re-derived from any instant or from its id.
"""

from datetime import datetime, timedelta

from src.pm_common.datetime_utils import ensure_utc, from_epoch_ms, to_epoch_ms
from src.pm_common.errors import InvalidPeriodError
from src.pm_period.domain.models import MarketPeriod

PERIOD_LENGTH = timedelta(hours=24)
PERIOD_LENGTH_MS = 24 * 60 * 60 * 1000
PERIOD_ID_PREFIX = "period_"


def _build(start: datetime, now: datetime) -> MarketPeriod:
    end = start + PERIOD_LENGTH
    start_ms = to_epoch_ms(start)
    return MarketPeriod(
        id=f"{PERIOD_ID_PREFIX}{start_ms}",
        epoch_number=start_ms // PERIOD_LENGTH_MS,
        start_time=start,
        end_time=end,
        is_active=start <= now < end,
        is_resolved=now >= end,
    )


def current_period(now: datetime) -> MarketPeriod:
    """Return the period whose [start, end) contains `now`."""
    now = ensure_utc(now)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return _build(start, now)


def period_from_id(period_id: str, now: datetime) -> MarketPeriod:
    """Rebuild a period from its id, with active/resolved flags evaluated at `now`."""
    if not period_id.startswith(PERIOD_ID_PREFIX):
        raise InvalidPeriodError(period_id)
    raw = period_id[len(PERIOD_ID_PREFIX):]
    if not raw.isdigit():
        raise InvalidPeriodError(period_id)
    start_ms = int(raw)
    if start_ms % PERIOD_LENGTH_MS != 0:
        raise InvalidPeriodError(period_id)
    return _build(from_epoch_ms(start_ms), ensure_utc(now))


def next_period(period: MarketPeriod, now: datetime) -> MarketPeriod:
    return _build(period.end_time, ensure_utc(now))


def time_until_end(period: MarketPeriod, now: datetime) -> str:
    """Countdown label: '5h 12m', '12m', or 'Ended'."""
    remaining = period.end_time - ensure_utc(now)
    if remaining <= timedelta(0):
        return "Ended"
    total_minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
