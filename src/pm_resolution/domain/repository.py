# src/pm_resolution/domain/repository.py
"""ResolutionRepository Protocol — one immutable row per period."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_resolution.domain.models import MarketResolution


class ResolutionRepositoryProtocol(Protocol):
    async def get(self, period_id: str, db: AsyncSession) -> MarketResolution | None: ...

    async def save(self, resolution: MarketResolution, db: AsyncSession) -> None: ...
