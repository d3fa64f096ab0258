"""Quiz repository over the legacy ``materials``/``questions`` tables."""

import json
import logging
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scrum_sensei.database import transaction, utc_now_iso

from .models import Material, Question
from .schemas import (
    CreateQuizRequest,
    MaterialStatus,
    OptionInput,
    QuestionInput,
    Quiz,
    QuizOption,
    QuizQuestion,
    QuizSummary,
)


logger = logging.getLogger(__name__)

QUIZ_TYPE = "quiz"


def _parse_material_id(quiz_id: str | int) -> int | None:
    try:
        return int(quiz_id)
    except (TypeError, ValueError):
        return None


def _normalize_options(raw_options: list[Any], correct_answer: str | None) -> list[QuizOption]:
    """Give every option an id and a correctness flag.

    Options authored as bare strings are correct when they equal ``correct_answer``.
    """
    options: list[QuizOption] = []
    for index, raw in enumerate(raw_options):
        fallback_id = f"opt-{index + 1}"
        if isinstance(raw, str):
            options.append(QuizOption(id=fallback_id, text=raw, is_correct=raw == correct_answer))
        elif isinstance(raw, OptionInput | QuizOption):
            options.append(QuizOption(id=raw.id or fallback_id, text=raw.text, is_correct=raw.is_correct))
        elif isinstance(raw, dict):
            option = OptionInput.model_validate(raw)
            options.append(QuizOption(id=option.id or fallback_id, text=option.text, is_correct=option.is_correct))
    return options


def _decode_options(question: Question) -> list[QuizOption]:
    if not question.options:
        return []
    try:
        raw_options = json.loads(question.options)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse options for question {question.id}: {question.options}")
        return []
    if not isinstance(raw_options, list):
        return []
    return _normalize_options(raw_options, question.correct_answer)


def _question_to_schema(question: Question) -> QuizQuestion:
    return QuizQuestion(
        id=str(question.id),
        question=question.question,
        type=question.type,
        options=_decode_options(question),
        correct_answer=question.correct_answer,
        explanation=question.explanation or "",
        points=question.points,
    )


def _question_row(material_id: int, index: int, question: QuestionInput, now: str) -> dict[str, Any]:
    options = _normalize_options(question.options, question.correct_answer)
    correct_answer = question.correct_answer
    if not correct_answer and options:
        correct_answer = next((option.text for option in options if option.is_correct), "")
    row: dict[str, Any] = {
        "material_id": material_id,
        "question": question.question or f"Question {index + 1}",
        "type": question.type or "multiple-choice",
        "correct_answer": correct_answer,
        "options": json.dumps([option.model_dump(by_alias=True) for option in options], ensure_ascii=False),
        "explanation": question.explanation or "",
        "created_at": now,
    }
    if question.points is not None:
        row["points"] = question.points
    return row


class QuizRepository:
    """Create, list and fetch quizzes stored as materials."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_quiz(self, request: CreateQuizRequest) -> Quiz:
        """Store a quiz as a published material plus one row per question."""
        now = utc_now_iso()
        title = request.title.strip()
        async with transaction(self.session):
            material = Material(
                title=title,
                description=request.description or f"Questions about {title}",
                content=json.dumps(
                    [question.model_dump(by_alias=True) for question in request.questions], ensure_ascii=False
                ),
                type=QUIZ_TYPE,
                status="published",
                time_limit=request.time_limit,
                published_at=now,
                created_at=now,
                updated_at=now,
            )
            self.session.add(material)
            await self.session.flush()
            material_id = material.id

            for index, question in enumerate(request.questions):
                await self.session.execute(insert(Question).values(**_question_row(material_id, index, question, now)))

        logger.info(f"Created quiz {material_id} with {len(request.questions)} questions")
        quiz = await self.get_quiz(material_id)
        if quiz is None:
            msg = f"Quiz {material_id} vanished after insert"
            raise RuntimeError(msg)
        return quiz

    async def list_quizzes(self, published_only: bool = True) -> list[QuizSummary]:
        """List quizzes, newest first."""
        question_count = (
            select(func.count(Question.id)).where(Question.material_id == Material.id).scalar_subquery()
        )
        query = select(Material, question_count).where(Material.type == QUIZ_TYPE)
        if published_only:
            query = query.where(Material.status == "published")
        query = query.order_by(Material.created_at.desc(), Material.id.desc())

        result = await self.session.execute(query)
        return [
            QuizSummary(
                id=str(material.id),
                title=material.title,
                description=material.description,
                created_at=material.created_at,
                question_count=count,
            )
            for material, count in result.all()
        ]

    async def get_quiz(self, quiz_id: str | int, published_only: bool = False) -> Quiz | None:
        """Get a quiz with its questions; ``None`` when absent (or unpublished if required)."""
        material_id = _parse_material_id(quiz_id)
        if material_id is None:
            return None

        query = (
            select(Material)
            .where(Material.id == material_id, Material.type == QUIZ_TYPE)
            .options(selectinload(Material.questions))
            .execution_options(populate_existing=True)
        )
        if published_only:
            query = query.where(Material.status == "published")

        material = (await self.session.execute(query)).scalar_one_or_none()
        if material is None:
            return None

        return Quiz(
            id=str(material.id),
            title=material.title,
            description=material.description,
            questions=[_question_to_schema(question) for question in material.questions],
            time_limit=material.time_limit,
            status=material.status,
            created_at=material.created_at,
            updated_at=material.updated_at,
        )

    async def set_status(self, material_id: str | int, status: MaterialStatus) -> bool:
        """Change the status of any material; ``False`` when it does not exist."""
        parsed_id = _parse_material_id(material_id)
        if parsed_id is None:
            return False

        now = utc_now_iso()
        values: dict[str, Any] = {"status": status, "updated_at": now}
        if status == "published":
            values["published_at"] = now

        async with transaction(self.session):
            result = await self.session.execute(
                update(Material)
                .where(Material.id == parsed_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount > 0

        if updated:
            logger.info(f"Material {parsed_id} status set to {status}")
        return updated

    async def delete_quiz(self, quiz_id: str | int) -> bool:
        """Delete a quiz and its questions; ``False`` when no quiz has that id."""
        material_id = _parse_material_id(quiz_id)
        if material_id is None:
            return False

        async with transaction(self.session):
            await self.session.execute(
                delete(Question)
                .where(
                    Question.material_id == material_id,
                    Question.material_id.in_(select(Material.id).where(Material.type == QUIZ_TYPE)),
                )
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(
                delete(Material)
                .where(Material.id == material_id, Material.type == QUIZ_TYPE)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount > 0

        if deleted:
            logger.info(f"Deleted quiz {material_id}")
        return deleted
