"""
Live statistics service with write-invalidated caching.

Computes per-question totals, average and an 11-bucket histogram (0..10)
from the stored votes. Used by both the pull endpoint and the live stream.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from repositories.question_repository import QuestionRepository
from repositories.vote_repository import VoteRepository
from schemas.stats import DistributionBucket, QuestionStats

BUCKET_COUNT = 11  # ratings 0..10


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round half away from zero (ratings are never negative, so half-up).

    Python's round() rounds half to even (round(4.5) == 4); the dashboard
    uses the school convention: 4.5 -> 5, 5.5 -> 6, 6.75 -> 6.8 at one digit.
    """
    exponent = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def build_question_stats(
    question_id: str,
    question_text: str,
    ratings: Sequence[float],
) -> QuestionStats:
    """Aggregate the ratings of one question."""
    counts = [0] * BUCKET_COUNT
    for rating in ratings:
        bucket = int(round_half_up(rating))
        # Ratings are constrained to [0, 10]; clamp guards legacy rows
        bucket = min(max(bucket, 0), BUCKET_COUNT - 1)
        counts[bucket] += 1

    total = len(ratings)
    average = round_half_up(sum(ratings) / total, 1) if total > 0 else 0

    return QuestionStats(
        question_id=question_id,
        question_text=question_text,
        total_votes=total,
        average=average,
        distribution=[DistributionBucket(value=i, count=c) for i, c in enumerate(counts)],
    )


@dataclass
class StatsCache:
    """
    Per-question stats cache, invalidated on every admitted write.

    The generation counter is bumped on each invalidation; a read that
    started before a write only stores its result if no invalidation
    happened meanwhile, so stale aggregates never outlive a write.
    """

    generation: int = 0
    entries: dict[str, QuestionStats] = field(default_factory=dict)

    def get(self, question_id: str) -> Optional[QuestionStats]:
        return self.entries.get(question_id)

    def store(self, generation: int, stats: QuestionStats) -> bool:
        if generation != self.generation:
            return False
        self.entries[stats.question_id] = stats
        return True

    def invalidate(self, question_ids: Optional[Iterable[str]] = None) -> None:
        """Drop the given questions, or everything when no ids are given."""
        self.generation += 1
        if question_ids is None:
            self.entries.clear()
            return
        for question_id in question_ids:
            self.entries.pop(question_id, None)


class StatsService:
    """Service computing live question statistics."""

    def __init__(self, db: AsyncSession, cache: Optional[StatsCache] = None):
        """
        Initialize stats service.

        Args:
            db: Database session
            cache: Optional shared cache; None computes everything fresh
        """
        self.db = db
        self.cache = cache

    async def compute_stats(self) -> list[QuestionStats]:
        """
        Get statistics for every question, ordered by display order.

        A plain read: no locks taken, results may trail a concurrent write
        by at most that write.
        """
        questions = await QuestionRepository(self.db).list_ordered()

        generation = self.cache.generation if self.cache else 0
        cached: dict[str, QuestionStats] = {}
        if self.cache:
            for question in questions:
                hit = self.cache.get(question.id)
                if hit is not None:
                    cached[question.id] = hit

        missing = [q.id for q in questions if q.id not in cached]
        ratings = (
            await VoteRepository(self.db).get_ratings_by_question(missing) if missing else {}
        )

        result = []
        for question in questions:
            stats = cached.get(question.id)
            if stats is None:
                stats = build_question_stats(
                    question_id=question.id,
                    question_text=question.text,
                    ratings=ratings.get(question.id, []),
                )
                if self.cache:
                    self.cache.store(generation, stats)
            result.append(stats)
        return result

    async def total_vote_count(self) -> int:
        """Total number of stored votes (change detector for the live stream)."""
        return await VoteRepository(self.db).count_total()


# Global cache for this process
stats_cache = StatsCache()


def get_stats_cache() -> Optional[StatsCache]:
    """Dependency for getting the stats cache (None when caching is disabled)."""
    return stats_cache if settings.STATS_CACHE_ENABLED else None
