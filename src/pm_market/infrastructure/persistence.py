"""CandidateShareRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import CandidateShare

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_LIST_BY_PERIOD_SQL = text("""
    SELECT period_id, candidate_id, price_per_share, total_shares,
           total_invested, probability, last_updated
    FROM candidate_shares
    WHERE period_id = :period_id
    ORDER BY candidate_id
""")

_UPSERT_SQL = text("""
    INSERT INTO candidate_shares (period_id, candidate_id, price_per_share,
        total_shares, total_invested, probability, last_updated)
    VALUES (:period_id, :candidate_id, :price_per_share,
        :total_shares, :total_invested, :probability, :last_updated)
    ON CONFLICT (period_id, candidate_id) DO UPDATE SET
        price_per_share = EXCLUDED.price_per_share,
        total_shares    = EXCLUDED.total_shares,
        total_invested  = EXCLUDED.total_invested,
        probability     = EXCLUDED.probability,
        last_updated    = EXCLUDED.last_updated
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_share(row: Any) -> CandidateShare:
    """NUMERIC columns arrive as Decimal; the domain works in float."""
    return CandidateShare(
        period_id=row.period_id,
        candidate_id=row.candidate_id,
        price_per_share=float(row.price_per_share),
        total_shares=float(row.total_shares),
        total_invested=float(row.total_invested),
        probability=float(row.probability),
        last_updated=row.last_updated,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CandidateShareRepository:
    """Concrete implementation of CandidateShareRepositoryProtocol using raw SQL."""

    async def list_by_period(self, period_id: str, db: AsyncSession) -> list[CandidateShare]:
        rows = (await db.execute(_LIST_BY_PERIOD_SQL, {"period_id": period_id})).fetchall()
        return [_row_to_share(r) for r in rows]

    async def upsert_many(self, shares: list[CandidateShare], db: AsyncSession) -> None:
        for s in shares:
            await db.execute(
                _UPSERT_SQL,
                {
                    "period_id": s.period_id,
                    "candidate_id": s.candidate_id,
                    "price_per_share": s.price_per_share,
                    "total_shares": s.total_shares,
                    "total_invested": s.total_invested,
                    "probability": s.probability,
                    "last_updated": s.last_updated,
                },
            )
