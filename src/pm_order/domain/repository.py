# src/pm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_order.domain.models import TradeOrder


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: TradeOrder, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> TradeOrder | None: ...

    async def list_by_user(
        self,
        user_id: str,
        period_id: str | None,
        limit: int,
        db: AsyncSession,
    ) -> list[TradeOrder]: ...
