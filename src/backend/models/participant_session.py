"""
Participant session model.

Marks a fingerprint as having completed voting. The unique constraint on
fingerprint is the storage-level guarantee against duplicate vote-sets.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class ParticipantSession(Base):
    """Created exactly once per participant, atomically with their votes."""

    __tablename__ = "participant_sessions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    fingerprint: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Used for the per-network quota
    network_hash: Mapped[str] = mapped_column(String(64), index=True)

    voted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ParticipantSession(fingerprint={self.fingerprint[:12]}...)>"
