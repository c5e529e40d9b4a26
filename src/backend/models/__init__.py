"""Database models module."""

from models.participant_session import ParticipantSession
from models.question import Question
from models.vote import Vote

__all__ = [
    "Question",
    "Vote",
    "ParticipantSession",
]
