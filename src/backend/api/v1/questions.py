"""
Question endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_db
from repositories.question_repository import QuestionRepository
from schemas.converters import question_model_to_schema
from schemas.question import QuestionResponse

router = APIRouter()


@router.get("", response_model=list[QuestionResponse])
async def list_questions(db: AsyncSession = Depends(get_db)) -> list[QuestionResponse]:
    """Get all questions in display order."""
    questions = await QuestionRepository(db).list_ordered()
    return [question_model_to_schema(q) for q in questions]
