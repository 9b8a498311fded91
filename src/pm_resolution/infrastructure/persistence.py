"""ResolutionRepository — raw SQL persistence for market_resolutions."""
import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_resolution.domain.models import MarketResolution, RankingEntry

_GET_SQL = text("""
    SELECT period_id, winner, final_ranking, payout_per_share,
           total_winning_shares, total_prize_pool, house_fee, resolved_at
    FROM market_resolutions
    WHERE period_id = :period_id
""")

# No ON CONFLICT: the primary key rejects a second resolution for a period.
_INSERT_SQL = text("""
    INSERT INTO market_resolutions (period_id, winner, final_ranking,
        payout_per_share, total_winning_shares, total_prize_pool,
        house_fee, resolved_at)
    VALUES (:period_id, :winner, CAST(:final_ranking AS JSONB),
        :payout_per_share, :total_winning_shares, :total_prize_pool,
        :house_fee, :resolved_at)
""")


def _ranking_to_json(ranking: tuple[RankingEntry, ...]) -> str:
    return json.dumps(
        [{"candidate_id": e.candidate_id, "rank": e.rank, "pnl_sol": e.pnl_sol} for e in ranking]
    )


def _ranking_from_json(raw: Any) -> tuple[RankingEntry, ...]:
    # asyncpg hands JSONB back as text unless a codec is registered
    items = json.loads(raw) if isinstance(raw, str) else raw
    return tuple(
        RankingEntry(
            candidate_id=i["candidate_id"], rank=int(i["rank"]), pnl_sol=float(i["pnl_sol"])
        )
        for i in items
    )


def _row_to_resolution(row: Any) -> MarketResolution:
    return MarketResolution(
        period_id=row.period_id,
        winner=row.winner,
        final_ranking=_ranking_from_json(row.final_ranking),
        payout_per_share=float(row.payout_per_share),
        total_winning_shares=float(row.total_winning_shares),
        total_prize_pool=float(row.total_prize_pool),
        house_fee=float(row.house_fee),
        resolved_at=row.resolved_at,
    )


class ResolutionRepository:
    async def get(self, period_id: str, db: AsyncSession) -> MarketResolution | None:
        row = (await db.execute(_GET_SQL, {"period_id": period_id})).fetchone()
        if row is None:
            return None
        return _row_to_resolution(row)

    async def save(self, resolution: MarketResolution, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_SQL,
            {
                "period_id": resolution.period_id,
                "winner": resolution.winner,
                "final_ranking": _ranking_to_json(resolution.final_ranking),
                "payout_per_share": resolution.payout_per_share,
                "total_winning_shares": resolution.total_winning_shares,
                "total_prize_pool": resolution.total_prize_pool,
                "house_fee": resolution.house_fee,
                "resolved_at": resolution.resolved_at,
            },
        )
