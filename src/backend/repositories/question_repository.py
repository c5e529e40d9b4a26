"""
Question repository for database operations.
"""

from typing import Iterable
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.question import Question


class QuestionRepository:
    """Repository for question database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_ordered(self) -> list[Question]:
        """Get all questions ordered by display_order ascending."""
        result = await self.db.execute(select(Question).order_by(Question.display_order.asc()))
        return list(result.scalars().all())

    async def get_ids(self) -> set[str]:
        """Get the ids of all questions (the set every vote-set must cover)."""
        result = await self.db.execute(select(Question.id))
        return {str(row[0]) for row in result.all()}

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Question.id)))
        return result.scalar() or 0

    async def create(self, text: str, display_order: int) -> Question:
        """Create a question."""
        question = Question(
            id=str(uuid4()),
            text=text,
            display_order=display_order,
        )

        self.db.add(question)
        await self.db.flush()
        await self.db.refresh(question)

        return question

    async def seed_defaults(self, texts: Iterable[str]) -> list[Question]:
        """
        Insert the given questions (order 1..n) if the table is empty.

        Safe to run on every startup: an already seeded database is left alone.
        Caller commits.
        """
        if await self.count() > 0:
            return []

        created = []
        for order, text in enumerate(texts, start=1):
            created.append(await self.create(text=text, display_order=order))
        return created
