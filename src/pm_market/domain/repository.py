# src/pm_market/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import CandidateShare


class CandidateShareRepositoryProtocol(Protocol):
    async def list_by_period(
        self, period_id: str, db: AsyncSession
    ) -> list[CandidateShare]: ...

    async def upsert_many(self, shares: list[CandidateShare], db: AsyncSession) -> None: ...
