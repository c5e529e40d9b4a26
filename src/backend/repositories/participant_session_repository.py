"""
Participant session repository.

Sessions are the de-duplication record: one per fingerprint, counted per
network hash for the network quota.
"""

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.participant_session import ParticipantSession


class ParticipantSessionRepository:
    """Repository for participant session database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def exists_by_fingerprint(self, fingerprint: str) -> bool:
        """Check if this fingerprint already completed voting (duplicate detection)."""
        result = await self.db.execute(
            select(func.count(ParticipantSession.id)).where(
                ParticipantSession.fingerprint == fingerprint
            )
        )
        count = result.scalar() or 0
        return count > 0

    async def count_by_network_hash(self, network_hash: str) -> int:
        """Number of participants that voted from this network."""
        result = await self.db.execute(
            select(func.count(ParticipantSession.id)).where(
                ParticipantSession.network_hash == network_hash
            )
        )
        return result.scalar() or 0

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(ParticipantSession.id)))
        return result.scalar() or 0

    async def delete_all(self) -> int:
        result = await self.db.execute(delete(ParticipantSession))
        return self._get_rowcount(result)
