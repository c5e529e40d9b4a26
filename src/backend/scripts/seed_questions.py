"""
Seed script to create the default questions for a polling session.
Run with: python -m scripts.seed_questions [--reset]

--reset wipes votes, participant sessions AND questions first, so the
questions are recreated from DEFAULT_QUESTIONS.
"""

import argparse
import asyncio

import structlog
from sqlalchemy import delete

from core.config import settings
from db.session import close_db, get_session_maker, init_db
from models.participant_session import ParticipantSession
from models.question import Question
from models.vote import Vote
from repositories.question_repository import QuestionRepository

logger = structlog.get_logger(__name__)


async def seed(reset: bool = False) -> int:
    """Create the default questions. Returns the number created."""
    await init_db()

    async with get_session_maker()() as db:
        if reset:
            await db.execute(delete(Vote))
            await db.execute(delete(ParticipantSession))
            await db.execute(delete(Question))
            logger.info("existing_data_cleared")

        created = await QuestionRepository(db).seed_defaults(settings.DEFAULT_QUESTIONS)
        await db.commit()

    for question in created:
        print(f"  {question.display_order}. {question.text}")
    return len(created)


async def main(reset: bool) -> None:
    print("Seeding database...")
    try:
        created = await seed(reset=reset)
    finally:
        await close_db()

    if created:
        print(f"Seeding completed! Created {created} questions.")
    else:
        print("Questions already exist, nothing to do (use --reset to recreate).")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed default polling questions")
    parser.add_argument("--reset", action="store_true", help="Delete all data before seeding")
    args = parser.parse_args()
    asyncio.run(main(args.reset))
