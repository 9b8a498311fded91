# src/pm_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_order.domain.models import TradeOrder

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

# Orders are written once per terminal outcome; the upsert only ever moves
# status forward (enforced in TradeOrder) and stamps filled_at.
_SAVE_ORDER_SQL = text("""
    INSERT INTO trade_orders (id, user_id, period_id, candidate_id, side,
        quantity, price_per_share, total_value, status, failure_reason,
        created_at, filled_at)
    VALUES (:id, :user_id, :period_id, :candidate_id, :side,
        :quantity, :price_per_share, :total_value, :status, :failure_reason,
        :created_at, :filled_at)
    ON CONFLICT (id) DO UPDATE SET
        status = EXCLUDED.status,
        failure_reason = EXCLUDED.failure_reason,
        filled_at = EXCLUDED.filled_at
""")

_SELECT_COLUMNS = """
    id, user_id, period_id, candidate_id, side,
    quantity, price_per_share, total_value, status, failure_reason,
    created_at, filled_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM trade_orders WHERE id = :id
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM trade_orders
    WHERE user_id = :user_id
      AND (CAST(:period_id AS TEXT) IS NULL OR period_id = :period_id)
    ORDER BY created_at DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> TradeOrder:
    """Convert a DB result row to a TradeOrder domain object."""
    return TradeOrder(
        id=row.id,
        user_id=row.user_id,
        period_id=row.period_id,
        candidate_id=row.candidate_id,
        side=row.side,
        quantity=float(row.quantity),
        price_per_share=float(row.price_per_share),
        total_value=float(row.total_value),
        status=row.status,
        failure_reason=row.failure_reason,
        created_at=row.created_at,
        filled_at=row.filled_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: TradeOrder, db: AsyncSession) -> None:
        await db.execute(
            _SAVE_ORDER_SQL,
            {
                "id": order.id,
                "user_id": order.user_id,
                "period_id": order.period_id,
                "candidate_id": order.candidate_id,
                "side": order.side,
                "quantity": order.quantity,
                "price_per_share": order.price_per_share,
                "total_value": order.total_value,
                "status": order.status,
                "failure_reason": order.failure_reason,
                "created_at": order.created_at,
                "filled_at": order.filled_at,
            },
        )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> TradeOrder | None:
        row = (await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})).fetchone()
        if row is None:
            return None
        return _row_to_order(row)

    async def list_by_user(
        self,
        user_id: str,
        period_id: str | None,
        limit: int,
        db: AsyncSession,
    ) -> list[TradeOrder]:
        rows = (
            await db.execute(
                _LIST_ORDERS_SQL,
                {"user_id": user_id, "period_id": period_id, "limit": limit},
            )
        ).fetchall()
        return [_row_to_order(r) for r in rows]
