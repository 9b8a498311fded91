# src/pm_position/domain/repository.py
"""PositionRepository Protocol — keyed by (user, period, candidate)."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_position.domain.models import UserPosition


class PositionRepositoryProtocol(Protocol):
    async def get(
        self, user_id: str, period_id: str, candidate_id: str, db: AsyncSession
    ) -> UserPosition | None: ...

    async def upsert(self, position: UserPosition, db: AsyncSession) -> None: ...

    async def list_by_user(
        self, user_id: str, period_id: str | None, db: AsyncSession
    ) -> list[UserPosition]: ...

    async def list_by_candidate(
        self, period_id: str, candidate_id: str, db: AsyncSession
    ) -> list[UserPosition]: ...

    async def count_traders(self, period_id: str, db: AsyncSession) -> int: ...
