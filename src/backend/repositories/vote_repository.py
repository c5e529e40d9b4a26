"""
Vote repository for database operations.

Implements atomic vote-set storage: one participant session plus one vote
per question, flushed inside the caller's transaction.
"""

from collections import defaultdict
from typing import Any, Sequence
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.participant_session import ParticipantSession
from models.vote import Vote


class VoteRepository:
    """Repository for vote database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def create_vote_set(
        self,
        fingerprint: str,
        network_hash: str,
        ratings: Sequence[tuple[str, float]],
    ) -> list[Vote]:
        """
        Stage a participant session and one vote per (question_id, rating).

        Nothing is committed here. The caller commits or rolls back the
        whole set, so a failure leaves zero rows for this fingerprint.
        """
        session = ParticipantSession(
            id=str(uuid4()),
            fingerprint=fingerprint,
            network_hash=network_hash,
        )
        self.db.add(session)

        votes = [
            Vote(
                id=str(uuid4()),
                question_id=question_id,
                rating=float(rating),
                fingerprint=fingerprint,
                network_hash=network_hash,
            )
            for question_id, rating in ratings
        ]
        self.db.add_all(votes)

        await self.db.flush()
        return votes

    async def count_total(self) -> int:
        """Get total vote count across all questions."""
        result = await self.db.execute(select(func.count(Vote.id)))
        return result.scalar() or 0

    async def count_by_fingerprint(self, fingerprint: str) -> int:
        result = await self.db.execute(
            select(func.count(Vote.id)).where(Vote.fingerprint == fingerprint)
        )
        return result.scalar() or 0

    async def get_ratings_by_question(
        self, question_ids: Sequence[str] | None = None
    ) -> dict[str, list[float]]:
        """
        Get raw ratings grouped by question.

        Returns: {"question-id": [7.0, 5.5, ...], ...}
        Questions without votes are absent from the result.
        """
        query = select(Vote.question_id, Vote.rating)
        if question_ids is not None:
            query = query.where(Vote.question_id.in_(list(question_ids)))

        result = await self.db.execute(query)

        ratings: dict[str, list[float]] = defaultdict(list)
        for question_id, rating in result.all():
            ratings[str(question_id)].append(float(rating))
        return dict(ratings)

    async def delete_all(self) -> int:
        """Delete every vote. Questions are untouched."""
        result = await self.db.execute(delete(Vote))
        return self._get_rowcount(result)
