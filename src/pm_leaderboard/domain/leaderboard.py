"""Leaderboard — ranks candidates by realized trading P&L within a period.

Only completed trades (tokens fully sold) count towards P&L; open trades are
reported as active. Ranking is by SOL P&L descending, ties by candidate id.
"""

from collections.abc import Iterable

from src.pm_common.enums import TradeSide
from src.pm_leaderboard.domain.exchange_rate import ExchangeRateProvider
from src.pm_leaderboard.domain.models import CandidateTrade, LeaderboardEntry, TradeEvent
from src.pm_period.domain.models import MarketPeriod
from src.pm_resolution.domain.models import RankingEntry


def aggregate_trades(events: Iterable[TradeEvent]) -> list[CandidateTrade]:
    """Group events into one CandidateTrade per (candidate, token), first-seen order."""
    trades: dict[tuple[str, str], CandidateTrade] = {}
    seen: set[tuple[str, str]] = set()
    for ev in sorted(events, key=lambda e: e.timestamp):
        # one transaction may touch several tokens; skip exact repeats only
        dedup_key = (ev.signature, ev.token_mint)
        if dedup_key in seen:
            continue
        seen.add(dedup_key)

        key = (ev.candidate_id, ev.token_mint)
        trade = trades.get(key)
        if trade is None:
            trade = CandidateTrade(candidate_id=ev.candidate_id, token_mint=ev.token_mint)
            trades[key] = trade
        if ev.side == TradeSide.BUY.value:
            trade.sol_bought += ev.sol_amount
            trade.tokens_bought += ev.token_amount
        else:
            trade.sol_sold += ev.sol_amount
            trade.tokens_sold += ev.token_amount
        if trade.started_at is None:
            trade.started_at = ev.timestamp
        trade.last_activity_at = ev.timestamp
    return list(trades.values())


def win_rate(winning: int, losing: int) -> float:
    total = winning + losing
    if total == 0:
        return 0.0
    return winning / total * 100


def build_leaderboard(
    events: Iterable[TradeEvent],
    period: MarketPeriod,
    rates: ExchangeRateProvider,
    candidate_ids: Iterable[str] = (),
) -> list[LeaderboardEntry]:
    sol_usd = rates.sol_usd()
    entries: dict[str, LeaderboardEntry] = {
        cid: LeaderboardEntry(candidate_id=cid) for cid in candidate_ids
    }

    for trade in aggregate_trades(events):
        if trade.started_at is None:
            continue
        if not (period.start_time <= trade.started_at < period.end_time):
            continue
        entry = entries.setdefault(
            trade.candidate_id, LeaderboardEntry(candidate_id=trade.candidate_id)
        )
        last = trade.last_activity_at
        if last is not None and (entry.last_trade_at is None or last > entry.last_trade_at):
            entry.last_trade_at = last
        if not trade.is_complete:
            entry.active_trades += 1
            continue
        pnl = trade.pnl_sol
        entry.total_trades += 1
        entry.total_pnl_sol += pnl
        entry.total_pnl_usd += pnl * sol_usd
        if pnl > 0:
            entry.winning_trades += 1
        else:
            entry.losing_trades += 1

    ranked = sorted(entries.values(), key=lambda e: (-e.total_pnl_sol, e.candidate_id))
    for i, entry in enumerate(ranked, start=1):
        entry.win_rate = win_rate(entry.winning_trades, entry.losing_trades)
        entry.rank = i
    return ranked


def to_final_ranking(entries: list[LeaderboardEntry]) -> list[RankingEntry]:
    return [
        RankingEntry(candidate_id=e.candidate_id, rank=e.rank, pnl_sol=e.total_pnl_sol)
        for e in sorted(entries, key=lambda e: e.rank)
    ]
