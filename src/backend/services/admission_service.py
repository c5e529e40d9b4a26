"""
Vote admission controller.

Decides whether a vote-set is admissible and stores it atomically:

1. Shape: non-empty fingerprint, exactly one rating per question
2. Range: every rating within [0, 10]
3. Duplicate: the fingerprint has not voted yet
4. Network quota: fewer than MAX_VOTES_PER_NETWORK participants from this network

Checks 3 and 4 and the write run under per-fingerprint and per-network
locks, so concurrent submissions cannot both slip past the quota.
"""

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    DuplicateVote,
    InvalidPayload,
    InvalidRating,
    RateLimited,
    StorageFailure,
    VoteRejected,
)
from repositories.participant_session_repository import ParticipantSessionRepository
from repositories.question_repository import QuestionRepository
from repositories.vote_repository import VoteRepository
from services.identity_service import ParticipantIdentity, resolve_identity
from services.lock_service import (
    KeyedLockService,
    acquire_advisory_xact_lock,
    vote_lock_service,
)
from services.stats_service import StatsCache

logger = structlog.get_logger(__name__)

RATING_MIN = 0.0
RATING_MAX = 10.0
MAX_FINGERPRINT_LENGTH = 255


@dataclass(frozen=True)
class AdmissionResult:
    """An admitted and committed vote-set."""

    identity: ParticipantIdentity
    question_ids: tuple[str, ...]

    @property
    def vote_count(self) -> int:
        return len(self.question_ids)


def _is_valid_rating(rating: Any) -> bool:
    # bool is a Real subclass but never a rating
    if isinstance(rating, bool) or not isinstance(rating, Real):
        return False
    value = float(rating)
    return math.isfinite(value) and RATING_MIN <= value <= RATING_MAX


class AdmissionController:
    """Accepts or rejects vote submissions and persists admitted ones."""

    def __init__(
        self,
        db: AsyncSession,
        lock_service: Optional[KeyedLockService] = None,
        stats_cache: Optional[StatsCache] = None,
        max_votes_per_network: Optional[int] = None,
        salt: Optional[str] = None,
    ):
        self.db = db
        self.lock_service = lock_service or vote_lock_service
        self.stats_cache = stats_cache
        self.max_votes_per_network = max_votes_per_network or settings.MAX_VOTES_PER_NETWORK
        self.salt = salt
        self.sessions = ParticipantSessionRepository(db)
        self.votes = VoteRepository(db)
        self.questions = QuestionRepository(db)

    async def has_voted(self, fingerprint: Optional[str]) -> bool:
        """Check whether a fingerprint already completed voting. Empty means no."""
        if not fingerprint:
            return False
        return await self.sessions.exists_by_fingerprint(fingerprint)

    async def submit(
        self,
        fingerprint: Optional[str],
        network_address: str,
        ratings: Sequence[tuple[str, Any]],
    ) -> AdmissionResult:
        """
        Admit one vote-set.

        Raises:
            InvalidPayload: missing fingerprint or ratings not covering every question once
            InvalidRating: a rating outside [0, 10]
            DuplicateVote: the fingerprint already voted
            RateLimited: the network quota is used up
            StorageFailure: the transaction could not be committed
        """
        participant = await self._validate_payload(fingerprint, ratings)
        self._validate_ratings(ratings)

        identity = resolve_identity(participant, network_address, self.salt)
        question_ids = tuple(question_id for question_id, _ in ratings)

        async with self.lock_service.acquire(
            f"fingerprint:{identity.fingerprint}",
            f"network:{identity.network_hash}",
        ):
            await self._store(identity, ratings)

        if self.stats_cache is not None:
            self.stats_cache.invalidate(question_ids)

        logger.info(
            "vote_admitted",
            fingerprint=identity.fingerprint[:12],
            network=identity.network_hash[:12],
            votes=len(question_ids),
        )
        return AdmissionResult(identity=identity, question_ids=question_ids)

    async def _validate_payload(
        self,
        fingerprint: Optional[str],
        ratings: Sequence[tuple[str, Any]],
    ) -> str:
        """Check shape and question coverage. Returns the validated fingerprint."""
        if not isinstance(fingerprint, str) or not fingerprint.strip():
            raise InvalidPayload("A fingerprint is required")
        if len(fingerprint) > MAX_FINGERPRINT_LENGTH:
            raise InvalidPayload("Fingerprint is too long")

        question_ids = await self.questions.get_ids()
        if not question_ids:
            raise InvalidPayload("No questions are open for voting")

        rated = [question_id for question_id, _ in ratings]
        if len(rated) != len(question_ids):
            raise InvalidPayload(
                f"Expected {len(question_ids)} ratings, got {len(rated)}"
            )
        if len(set(rated)) != len(rated) or set(rated) != question_ids:
            raise InvalidPayload("Ratings must cover every question exactly once")
        return fingerprint

    def _validate_ratings(self, ratings: Sequence[tuple[str, Any]]) -> None:
        for _, rating in ratings:
            if not _is_valid_rating(rating):
                raise InvalidRating()

    async def _store(
        self,
        identity: ParticipantIdentity,
        ratings: Sequence[tuple[str, Any]],
    ) -> None:
        """Run checks 3 and 4 and the insert in one transaction. Caller holds the locks."""
        try:
            await acquire_advisory_xact_lock(self.db, f"network:{identity.network_hash}")

            if await self.sessions.exists_by_fingerprint(identity.fingerprint):
                raise DuplicateVote()

            network_count = await self.sessions.count_by_network_hash(identity.network_hash)
            if network_count >= self.max_votes_per_network:
                logger.warning(
                    "network_quota_exceeded",
                    network=identity.network_hash[:12],
                    limit=self.max_votes_per_network,
                )
                raise RateLimited()

            await self.votes.create_vote_set(
                fingerprint=identity.fingerprint,
                network_hash=identity.network_hash,
                ratings=[(question_id, float(rating)) for question_id, rating in ratings],
            )
            if self.stats_cache is not None:
                # Readers see the rows as soon as the commit lands, before this
                # task resumes; drop cached aggregates on both sides of it
                self.stats_cache.invalidate(question_id for question_id, _ in ratings)
            await self.db.commit()
        except VoteRejected:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            raise await self._classify_integrity_error(identity) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("vote_storage_failed", error=str(e), error_type=type(e).__name__)
            raise StorageFailure() from e

    async def _classify_integrity_error(self, identity: ParticipantIdentity) -> VoteRejected:
        """A constraint fired at flush/commit: a concurrent writer won, or the store failed."""
        try:
            duplicate = await self.sessions.exists_by_fingerprint(identity.fingerprint)
        except SQLAlchemyError as e:
            logger.error("vote_storage_failed", error=str(e), error_type=type(e).__name__)
            return StorageFailure()
        finally:
            await self.db.rollback()

        if duplicate:
            return DuplicateVote()
        logger.error("vote_integrity_error", fingerprint=identity.fingerprint[:12])
        return StorageFailure()
