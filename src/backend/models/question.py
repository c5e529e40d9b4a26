"""
Question model.

Questions are created once at setup and stay immutable for the lifetime
of a polling session. Participants never modify them.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base

if TYPE_CHECKING:
    from models.vote import Vote


class Question(Base):
    """A rating question shown to every participant, ordered by display_order."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    text: Mapped[str] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer, unique=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    votes: Mapped[list["Vote"]] = relationship(
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Question(order={self.display_order}, text={self.text[:30]!r})>"
