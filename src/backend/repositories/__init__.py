"""Repository modules for database access."""

from repositories.participant_session_repository import ParticipantSessionRepository
from repositories.question_repository import QuestionRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "QuestionRepository",
    "VoteRepository",
    "ParticipantSessionRepository",
]
