"""
Administrative operations guarded by the shared admin secret.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import StorageFailure, Unauthorized
from core.security import secrets_match
from repositories.participant_session_repository import ParticipantSessionRepository
from repositories.vote_repository import VoteRepository
from services.stats_service import StatsCache

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResetResult:
    deleted_votes: int
    deleted_sessions: int


class AdminService:
    """Service for administrative resets of the polling session."""

    def __init__(
        self,
        db: AsyncSession,
        stats_cache: Optional[StatsCache] = None,
        admin_secret: Optional[str] = None,
    ):
        self.db = db
        self.stats_cache = stats_cache
        self.admin_secret = settings.ADMIN_SECRET if admin_secret is None else admin_secret

    async def reset_all(self, provided_secret: Optional[str]) -> ResetResult:
        """
        Delete every vote and participant session. Questions are preserved.

        Raises:
            Unauthorized: secret missing, wrong, or not configured on the server
            StorageFailure: the deletion could not be committed (nothing deleted)
        """
        if not secrets_match(provided_secret, self.admin_secret):
            logger.warning("admin_reset_unauthorized")
            raise Unauthorized()

        try:
            deleted_votes = await VoteRepository(self.db).delete_all()
            deleted_sessions = await ParticipantSessionRepository(self.db).delete_all()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("admin_reset_failed", error=str(e))
            raise StorageFailure("Failed to reset votes") from e

        if self.stats_cache is not None:
            self.stats_cache.invalidate()

        logger.info(
            "admin_reset_completed",
            deleted_votes=deleted_votes,
            deleted_sessions=deleted_sessions,
        )
        return ResetResult(deleted_votes=deleted_votes, deleted_sessions=deleted_sessions)
