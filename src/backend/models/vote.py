"""
Vote model.

One row per (participant, question). The raw network address is NEVER
stored with the vote - only its salted one-way hash.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base

if TYPE_CHECKING:
    from models.question import Question


class Vote(Base):
    """
    A single rating for one question.

    Votes are created only through the admission controller, together with
    the participant's session row, and never updated. They are deleted only
    by an administrative reset.
    """

    __tablename__ = "votes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    question_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("questions.id", ondelete="CASCADE"),
        index=True,
    )

    rating: Mapped[float] = mapped_column(Float)

    # Participant identity (opaque client fingerprint + salted network hash)
    fingerprint: Mapped[str] = mapped_column(String(255), index=True)
    network_hash: Mapped[str] = mapped_column(String(64))  # SHA-256 hex

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    question: Mapped["Question"] = relationship(back_populates="votes")

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 10", name="ck_votes_rating_range"),
        # One vote per participant and question
        UniqueConstraint("fingerprint", "question_id", name="uq_votes_fingerprint_question"),
        Index("ix_votes_question_rating", "question_id", "rating"),
    )
