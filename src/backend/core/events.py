"""
Application lifecycle event handlers.

Manages startup and shutdown tasks: database schema, default questions
and the live dashboard streams.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from db.session import close_db, get_session_maker, init_db

logger = structlog.get_logger(__name__)


async def seed_questions() -> int:
    """Insert the default questions into an empty database. Returns how many were created."""
    from repositories.question_repository import QuestionRepository

    async with get_session_maker()() as db:
        created = await QuestionRepository(db).seed_defaults(settings.DEFAULT_QUESTIONS)
        await db.commit()
    return len(created)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info(f"Starting {settings.APP_NAME} API...")

        await init_db()
        logger.info("Database initialized")

        if settings.SEED_QUESTIONS_ON_STARTUP:
            created = await seed_questions()
            if created:
                logger.info("questions_seeded", count=created)

        logger.info(f"{settings.APP_NAME} API started successfully")

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info(f"Shutting down {settings.APP_NAME} API...")

        # Close open dashboard streams before the engine goes away
        from services.broadcaster import stats_broadcaster

        await stats_broadcaster.shutdown()

        await close_db()

        logger.info(f"{settings.APP_NAME} API shutdown complete")

    return stop_app
