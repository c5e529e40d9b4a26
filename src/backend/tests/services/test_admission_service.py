"""
Tests for the vote admission controller.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import (
    DuplicateVote,
    InvalidPayload,
    InvalidRating,
    RateLimited,
    StorageFailure,
)
from services.admission_service import AdmissionController, _is_valid_rating
from services.lock_service import KeyedLockService
from services.stats_service import StatsCache, build_question_stats


@pytest.mark.unit
class TestRatingValidation:
    @pytest.mark.parametrize("rating", [0, 0.0, 5, 7.25, 10, 10.0])
    def test_valid(self, rating) -> None:
        assert _is_valid_rating(rating) is True

    @pytest.mark.parametrize(
        "rating", [-0.1, 10.01, 11, float("nan"), float("inf"), True, "5", None]
    )
    def test_invalid(self, rating) -> None:
        assert _is_valid_rating(rating) is False


@pytest.mark.integration
class TestAdmissionController:
    """Admission rules against a real SQLite database."""

    async def test_admits_valid_vote_set(self, db_session, make_ratings) -> None:
        controller = AdmissionController(db_session, lock_service=KeyedLockService())

        result = await controller.submit("fp-ok", "10.0.0.1", make_ratings(1, 2, 3))

        assert result.vote_count == 3
        assert result.identity.fingerprint == "fp-ok"
        assert result.identity.network_hash != "10.0.0.1"
        assert await controller.has_voted("fp-ok") is True
        assert await controller.votes.count_by_fingerprint("fp-ok") == 3

    async def test_duplicate_is_rejected_and_stores_nothing(self, db_session, make_ratings) -> None:
        controller = AdmissionController(db_session)
        await controller.submit("fp-dup", "10.0.0.1", make_ratings())

        with pytest.raises(DuplicateVote):
            await controller.submit("fp-dup", "10.0.0.2", make_ratings())

        assert await controller.votes.count_by_fingerprint("fp-dup") == 3
        assert await controller.sessions.count() == 1

    async def test_network_quota(self, db_session, make_ratings) -> None:
        controller = AdmissionController(db_session, max_votes_per_network=2)
        await controller.submit("fp-a", "10.9.9.9", make_ratings())
        await controller.submit("fp-b", "10.9.9.9", make_ratings())

        with pytest.raises(RateLimited):
            await controller.submit("fp-c", "10.9.9.9", make_ratings())

        assert await controller.has_voted("fp-c") is False

    async def test_invalid_rating_checked_before_identity(self, db_session, make_ratings) -> None:
        controller = AdmissionController(db_session)
        with pytest.raises(InvalidRating):
            await controller.submit("fp-x", "10.0.0.1", make_ratings(5, 12, 5))
        assert await controller.sessions.count() == 0

    @pytest.mark.parametrize("fingerprint", [None, "", "  ", "x" * 256])
    async def test_bad_fingerprint_is_invalid_payload(
        self, db_session, make_ratings, fingerprint
    ) -> None:
        controller = AdmissionController(db_session)
        with pytest.raises(InvalidPayload):
            await controller.submit(fingerprint, "10.0.0.1", make_ratings())

    async def test_no_questions_is_invalid_payload(self, db_session) -> None:
        controller = AdmissionController(db_session)
        with pytest.raises(InvalidPayload):
            await controller.submit("fp", "10.0.0.1", [])

    async def test_has_voted_with_empty_fingerprint(self, db_session) -> None:
        controller = AdmissionController(db_session)
        assert await controller.has_voted("") is False
        assert await controller.has_voted(None) is False

    async def test_storage_failure_leaves_no_rows(self, db_session, make_ratings) -> None:
        """A failing write rolls the whole set back."""
        controller = AdmissionController(db_session)

        with patch.object(
            controller.votes,
            "create_vote_set",
            AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))),
        ):
            with pytest.raises(StorageFailure):
                await controller.submit("fp-broken", "10.0.0.1", make_ratings())

        assert await controller.sessions.count() == 0
        assert await controller.votes.count_total() == 0
        assert await controller.has_voted("fp-broken") is False

    async def test_admission_invalidates_cached_stats(self, db_session, make_ratings, questions) -> None:
        cache = StatsCache()
        for question in questions:
            cache.store(cache.generation, build_question_stats(question.id, question.text, []))
        generation = cache.generation

        controller = AdmissionController(db_session, stats_cache=cache)
        await controller.submit("fp-cache", "10.0.0.1", make_ratings())

        assert cache.generation > generation
        assert all(cache.get(q.id) is None for q in questions)

    async def test_cache_is_cleared_before_commit(self, db_session, make_ratings, questions) -> None:
        """Stats read as soon as the rows are visible are already fresh."""
        from db.session import get_session_maker
        from services.stats_service import StatsService

        cache = StatsCache()
        await StatsService(db_session, cache=cache).compute_stats()
        assert all(cache.get(q.id) is not None for q in questions)

        seen_at_commit: list = []
        totals_after_commit: list = []
        real_commit = db_session.commit

        async def commit_and_read() -> None:
            seen_at_commit.extend(cache.get(q.id) for q in questions)
            await real_commit()
            async with get_session_maker()() as other:
                stats = await StatsService(other, cache=cache).compute_stats()
            totals_after_commit.extend(s.total_votes for s in stats)

        controller = AdmissionController(db_session, stats_cache=cache)
        with patch.object(db_session, "commit", commit_and_read):
            await controller.submit("fp-window", "10.0.0.1", make_ratings())

        assert seen_at_commit == [None, None, None]
        assert totals_after_commit == [1, 1, 1]

    async def test_rejection_keeps_cached_stats(self, db_session, make_ratings, questions) -> None:
        cache = StatsCache()
        stats = build_question_stats(questions[0].id, questions[0].text, [])
        cache.store(cache.generation, stats)

        controller = AdmissionController(db_session, stats_cache=cache)
        with pytest.raises(InvalidRating):
            await controller.submit("fp-cache", "10.0.0.1", make_ratings(-1, 1, 1))

        assert cache.get(questions[0].id) is stats


@pytest.mark.integration
class TestConcurrentAdmission:
    """Concurrent submissions, each on its own database session."""

    async def _submit(self, lock_service, fingerprint, address, ratings):
        from db.session import get_session_maker

        async with get_session_maker()() as db:
            controller = AdmissionController(db, lock_service=lock_service)
            return await controller.submit(fingerprint, address, ratings)

    async def test_same_network_race_admits_exactly_quota(self, engine, make_ratings) -> None:
        """Four simultaneous fingerprints from one network: three admitted, one limited."""
        lock_service = KeyedLockService()
        results = await asyncio.gather(
            *[
                self._submit(lock_service, f"race-{i}", "172.16.0.1", make_ratings())
                for i in range(4)
            ],
            return_exceptions=True,
        )

        admitted = [r for r in results if not isinstance(r, Exception)]
        limited = [r for r in results if isinstance(r, RateLimited)]
        assert len(admitted) == 3
        assert len(limited) == 1
        assert len(lock_service) == 0

    async def test_three_simultaneous_participants_all_admitted(self, engine, make_ratings) -> None:
        lock_service = KeyedLockService()
        results = await asyncio.gather(
            *[
                self._submit(lock_service, f"trio-{i}", "172.16.0.2", make_ratings())
                for i in range(3)
            ],
            return_exceptions=True,
        )
        assert not [r for r in results if isinstance(r, Exception)]

    async def test_same_fingerprint_race_admits_once(self, engine, db_session, make_ratings) -> None:
        lock_service = KeyedLockService()
        results = await asyncio.gather(
            *[
                self._submit(lock_service, "twin", f"172.16.1.{i}", make_ratings())
                for i in range(2)
            ],
            return_exceptions=True,
        )

        assert len([r for r in results if isinstance(r, DuplicateVote)]) == 1
        controller = AdmissionController(db_session)
        assert await controller.votes.count_by_fingerprint("twin") == 3
