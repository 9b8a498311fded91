# src/pm_position/infrastructure/persistence.py
"""PositionRepository — raw SQL persistence for user_positions."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_position.domain.models import UserPosition

_SELECT_COLUMNS = """
    user_id, period_id, candidate_id, shares_owned, average_price,
    total_invested, current_value, unrealized_pnl, realized_pnl, last_trade_at
"""

_GET_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM user_positions
    WHERE user_id = :user_id AND period_id = :period_id AND candidate_id = :candidate_id
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM user_positions
    WHERE user_id = :user_id
      AND (CAST(:period_id AS TEXT) IS NULL OR period_id = :period_id)
    ORDER BY period_id DESC, candidate_id
""")

_LIST_BY_CANDIDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM user_positions
    WHERE period_id = :period_id AND candidate_id = :candidate_id
      AND shares_owned > 0
    ORDER BY user_id
""")

_COUNT_TRADERS_SQL = text("""
    SELECT COUNT(DISTINCT user_id)
    FROM user_positions
    WHERE period_id = :period_id
""")

_UPSERT_SQL = text("""
    INSERT INTO user_positions (user_id, period_id, candidate_id, shares_owned,
        average_price, total_invested, current_value, unrealized_pnl,
        realized_pnl, last_trade_at)
    VALUES (:user_id, :period_id, :candidate_id, :shares_owned,
        :average_price, :total_invested, :current_value, :unrealized_pnl,
        :realized_pnl, :last_trade_at)
    ON CONFLICT (user_id, period_id, candidate_id) DO UPDATE SET
        shares_owned   = EXCLUDED.shares_owned,
        average_price  = EXCLUDED.average_price,
        total_invested = EXCLUDED.total_invested,
        current_value  = EXCLUDED.current_value,
        unrealized_pnl = EXCLUDED.unrealized_pnl,
        realized_pnl   = EXCLUDED.realized_pnl,
        last_trade_at  = EXCLUDED.last_trade_at
""")


def _row_to_position(row: Any) -> UserPosition:
    return UserPosition(
        user_id=row.user_id,
        period_id=row.period_id,
        candidate_id=row.candidate_id,
        shares_owned=float(row.shares_owned),
        average_price=float(row.average_price),
        total_invested=float(row.total_invested),
        current_value=float(row.current_value),
        unrealized_pnl=float(row.unrealized_pnl),
        realized_pnl=float(row.realized_pnl),
        last_trade_at=row.last_trade_at,
    )


class PositionRepository:
    async def get(
        self, user_id: str, period_id: str, candidate_id: str, db: AsyncSession
    ) -> UserPosition | None:
        row = (
            await db.execute(
                _GET_SQL,
                {"user_id": user_id, "period_id": period_id, "candidate_id": candidate_id},
            )
        ).fetchone()
        if row is None:
            return None
        return _row_to_position(row)

    async def upsert(self, position: UserPosition, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_SQL,
            {
                "user_id": position.user_id,
                "period_id": position.period_id,
                "candidate_id": position.candidate_id,
                "shares_owned": position.shares_owned,
                "average_price": position.average_price,
                "total_invested": position.total_invested,
                "current_value": position.current_value,
                "unrealized_pnl": position.unrealized_pnl,
                "realized_pnl": position.realized_pnl,
                "last_trade_at": position.last_trade_at,
            },
        )

    async def list_by_user(
        self, user_id: str, period_id: str | None, db: AsyncSession
    ) -> list[UserPosition]:
        rows = (
            await db.execute(_LIST_BY_USER_SQL, {"user_id": user_id, "period_id": period_id})
        ).fetchall()
        return [_row_to_position(r) for r in rows]

    async def list_by_candidate(
        self, period_id: str, candidate_id: str, db: AsyncSession
    ) -> list[UserPosition]:
        rows = (
            await db.execute(
                _LIST_BY_CANDIDATE_SQL,
                {"period_id": period_id, "candidate_id": candidate_id},
            )
        ).fetchall()
        return [_row_to_position(r) for r in rows]

    async def count_traders(self, period_id: str, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_TRADERS_SQL, {"period_id": period_id})
        return int(result.scalar_one())
