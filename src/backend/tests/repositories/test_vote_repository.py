"""
Tests for vote repository.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session():
    """Create a mock database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


@pytest.mark.unit
class TestVoteRepository:
    """Test VoteRepository operations."""

    def test_repository_instantiation(self, mock_session) -> None:
        """Test that repository can be instantiated."""
        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(mock_session)
        assert repo.db == mock_session

    async def test_create_vote_set_stages_session_and_votes(self, mock_session) -> None:
        """One session plus one vote per rating, flushed but not committed."""
        from models.participant_session import ParticipantSession
        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(mock_session)
        votes = await repo.create_vote_set(
            fingerprint="fp-1",
            network_hash="net-1",
            ratings=[("q1", 7), ("q2", 4.5)],
        )

        session_obj = mock_session.add.call_args[0][0]
        assert isinstance(session_obj, ParticipantSession)
        assert session_obj.fingerprint == "fp-1"
        assert session_obj.network_hash == "net-1"

        assert [(v.question_id, v.rating) for v in votes] == [("q1", 7.0), ("q2", 4.5)]
        assert all(v.fingerprint == "fp-1" for v in votes)
        mock_session.add_all.assert_called_once_with(votes)
        mock_session.flush.assert_called_once()
        mock_session.commit.assert_not_called()

    async def test_count_total(self, mock_session) -> None:
        from repositories.vote_repository import VoteRepository

        mock_result = MagicMock()
        mock_result.scalar = MagicMock(return_value=42)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)
        assert await repo.count_total() == 42

    async def test_count_total_handles_none(self, mock_session) -> None:
        from repositories.vote_repository import VoteRepository

        mock_result = MagicMock()
        mock_result.scalar = MagicMock(return_value=None)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)
        assert await repo.count_total() == 0

    async def test_get_ratings_by_question_groups_rows(self, mock_session) -> None:
        """Test ratings are grouped per question id."""
        from repositories.vote_repository import VoteRepository

        mock_result = MagicMock()
        mock_result.all = MagicMock(return_value=[("q1", 5.0), ("q2", 9.0), ("q1", 7)])
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)
        ratings = await repo.get_ratings_by_question()

        assert ratings == {"q1": [5.0, 7.0], "q2": [9.0]}

    async def test_delete_all_returns_rowcount(self, mock_session) -> None:
        from repositories.vote_repository import VoteRepository

        mock_result = MagicMock()
        mock_result.rowcount = 9
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)
        assert await repo.delete_all() == 9


@pytest.mark.unit
class TestParticipantSessionRepository:
    """Test ParticipantSessionRepository operations."""

    @pytest.mark.parametrize("count,expected", [(1, True), (0, False), (None, False)])
    async def test_exists_by_fingerprint(self, mock_session, count, expected) -> None:
        from repositories.participant_session_repository import ParticipantSessionRepository

        mock_result = MagicMock()
        mock_result.scalar = MagicMock(return_value=count)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = ParticipantSessionRepository(mock_session)
        assert await repo.exists_by_fingerprint("fp") is expected

    async def test_count_by_network_hash(self, mock_session) -> None:
        from repositories.participant_session_repository import ParticipantSessionRepository

        mock_result = MagicMock()
        mock_result.scalar = MagicMock(return_value=3)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = ParticipantSessionRepository(mock_session)
        assert await repo.count_by_network_hash("net") == 3


@pytest.mark.integration
class TestVoteRepositoryDatabase:
    """Vote storage against a real SQLite database."""

    async def test_second_vote_set_for_fingerprint_violates_constraint(
        self, db_session, make_ratings
    ) -> None:
        """The unique constraints backstop duplicate detection."""
        from sqlalchemy.exc import IntegrityError

        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(db_session)
        await repo.create_vote_set("fp-dup", "net", make_ratings())
        await db_session.commit()

        with pytest.raises(IntegrityError):
            await repo.create_vote_set("fp-dup", "net", make_ratings())
        await db_session.rollback()

        assert await repo.count_by_fingerprint("fp-dup") == 3

    async def test_rating_outside_range_violates_check(self, db_session, question_ids) -> None:
        from sqlalchemy.exc import IntegrityError

        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(db_session)
        with pytest.raises(IntegrityError):
            await repo.create_vote_set("fp-range", "net", [(question_ids[0], 11.0)])
        await db_session.rollback()

        assert await repo.count_total() == 0
