"""Quiz API endpoints."""

import logging

from fastapi import APIRouter, status

from scrum_sensei.database import DbSession
from scrum_sensei.exceptions import ResourceNotFoundError, ValidationError
from scrum_sensei.progress.schemas import QuizResult

from .schemas import (
    CreateQuizRequest,
    CreateQuizResponse,
    GradeQuizRequest,
    MaterialStatusResponse,
    MaterialStatusUpdate,
    QuizDetailResponse,
    QuizListResponse,
)
from .scoring import score_answers
from .service import QuizRepository


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/quiz", tags=["quizzes"])
authoring_router = APIRouter(prefix="/api/quiz", tags=["quizzes"])
materials_router = APIRouter(prefix="/api/admin/materials", tags=["admin"])


@router.get("")
async def list_published_quizzes(db: DbSession) -> QuizListResponse:
    """List published quizzes."""
    quizzes = await QuizRepository(db).list_quizzes(published_only=True)
    return QuizListResponse(quizzes=quizzes, count=len(quizzes))


@router.get("/{quiz_id}")
async def get_published_quiz(quiz_id: str, db: DbSession) -> QuizDetailResponse:
    """Get a published quiz with its questions."""
    quiz = await QuizRepository(db).get_quiz(quiz_id, published_only=True)
    if quiz is None:
        raise ResourceNotFoundError("Quiz", quiz_id)
    return QuizDetailResponse(quiz=quiz)


@router.post("/{quiz_id}/grade")
async def grade_quiz(quiz_id: str, request: GradeQuizRequest, db: DbSession) -> QuizResult:
    """Grade submitted answers. Nothing is saved; PUT the result to the progress API to keep it."""
    quiz = await QuizRepository(db).get_quiz(quiz_id, published_only=True)
    if quiz is None:
        raise ResourceNotFoundError("Quiz", quiz_id)

    return score_answers(
        quiz,
        request.answers,
        request.question_ids,
        time_spent=request.time_spent,
        question_time_spent=request.question_time_spent,
        is_review_mode=request.is_review_mode,
    )


@authoring_router.get("")
async def list_quizzes(db: DbSession) -> QuizListResponse:
    """List every quiz regardless of status."""
    quizzes = await QuizRepository(db).list_quizzes(published_only=False)
    return QuizListResponse(quizzes=quizzes, count=len(quizzes))


@authoring_router.post("", status_code=status.HTTP_201_CREATED)
async def create_quiz(request: CreateQuizRequest, db: DbSession) -> CreateQuizResponse:
    """Create a published quiz."""
    if not request.title.strip():
        msg = "Title is required"
        raise ValidationError(msg, field="title")
    if not request.questions:
        msg = "At least one question is required"
        raise ValidationError(msg, field="questions")

    quiz = await QuizRepository(db).create_quiz(request)
    return CreateQuizResponse(id=quiz.id, material_id=int(quiz.id), question_count=len(quiz.questions))


@authoring_router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(quiz_id: str, db: DbSession) -> None:
    """Delete a quiz and its questions."""
    deleted = await QuizRepository(db).delete_quiz(quiz_id)
    if not deleted:
        raise ResourceNotFoundError("Quiz", quiz_id)


@materials_router.patch("/{material_id}/status")
async def update_material_status(
    material_id: str, request: MaterialStatusUpdate, db: DbSession
) -> MaterialStatusResponse:
    """Change the status of a material (quizzes included)."""
    updated = await QuizRepository(db).set_status(material_id, request.status)
    if not updated:
        raise ResourceNotFoundError("Material", material_id)
    return MaterialStatusResponse(id=material_id, status=request.status)
