"""Persistence and aggregation of learner progress."""

import json
import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import select, text, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from scrum_sensei.config import get_settings
from scrum_sensei.database import new_id, transaction, utc_now_iso

from .calculator import completion_percentage, rank_topics, status_for_completion
from .models import QuizResult as QuizResultRow
from .models import UserProgress as UserProgressRow
from .queries import (
    GET_PROGRESS_ID_QUERY,
    INSERT_ANSWER_DETAIL_QUERY,
    INSERT_QUIZ_RESULT_QUERY,
    SECTION_COMPLETION_QUERY,
    SET_COMPLETION_QUERY,
    UPSERT_PROGRESS_QUERY,
    UPSERT_SECTION_PROGRESS_QUERY,
    USER_AVERAGE_SCORE_QUERY,
    USER_CONTENT_SCORES_QUERY,
    USER_TOTALS_QUERY,
)
from .schemas import (
    AnswerDetail,
    CreateProgressRequest,
    LearningStatistics,
    QuizResult,
    RecentQuizResult,
    SectionProgress,
    SectionProgressUpdate,
    UpdateProgressRequest,
    UserProgress,
)


logger = logging.getLogger(__name__)


class ProgressStore:
    """Reads and writes ``user_progress`` and its children.

    Missing rows come back as ``None``; database errors propagate to the caller.
    """

    def __init__(self, session: AsyncSession, ranking_size: int | None = None) -> None:
        """Initialize the store on a session owned by the caller."""
        self.session = session
        self.ranking_size = ranking_size if ranking_size is not None else get_settings().TOPIC_RANKING_SIZE

    # --- Reads ---

    def _hydrated(self) -> Select[tuple[UserProgressRow]]:
        # Raw SQL writes bypass the identity map, so always repopulate.
        return (
            select(UserProgressRow)
            .options(
                selectinload(UserProgressRow.section_progress),
                selectinload(UserProgressRow.quiz_results).selectinload(QuizResultRow.answers),
            )
            .execution_options(populate_existing=True)
        )

    async def get_user_progress(self, user_id: str) -> list[UserProgress]:
        """Get every progress record of a user, most recently accessed first."""
        query = self._hydrated().where(UserProgressRow.user_id == user_id).order_by(UserProgressRow.last_accessed.desc())
        result = await self.session.execute(query)
        return [_progress_to_schema(row) for row in result.scalars().all()]

    async def get_content_progress(self, user_id: str, content_id: str) -> UserProgress | None:
        """Get the progress of one user on one content."""
        query = self._hydrated().where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.content_id == content_id,
        )
        row = (await self.session.execute(query)).scalar_one_or_none()
        return _progress_to_schema(row) if row else None

    async def get_progress_by_id(self, progress_id: str) -> UserProgress | None:
        """Get a progress record by its id."""
        query = self._hydrated().where(UserProgressRow.id == progress_id)
        row = (await self.session.execute(query)).scalar_one_or_none()
        return _progress_to_schema(row) if row else None

    # --- Writes ---

    async def create_progress(self, request: CreateProgressRequest) -> UserProgress:
        """Create the progress record of a user on a content, or merge into the existing one.

        The pair ``(user_id, content_id)`` is unique, so a second call updates
        the first row instead of inserting another.
        """
        now = utc_now_iso()
        async with transaction(self.session):
            await self.session.execute(
                text(UPSERT_PROGRESS_QUERY),
                {
                    "id": new_id(),
                    "user_id": request.user_id,
                    "content_id": request.content_id,
                    "status": request.status,
                    "completion_percentage": request.completion_percentage,
                    "time_spent": request.time_spent or 0,
                    "last_accessed": request.last_accessed or now,
                    "now": now,
                },
            )
            result = await self.session.execute(
                text(GET_PROGRESS_ID_QUERY),
                {"user_id": request.user_id, "content_id": request.content_id},
            )
            progress_id = result.scalar_one()
            await self._write_children(progress_id, request, now)

        logger.info(f"Saved progress {progress_id} for user {request.user_id} on content {request.content_id}")
        progress = await self.get_progress_by_id(progress_id)
        if progress is None:
            msg = f"Progress {progress_id} vanished after upsert"
            raise RuntimeError(msg)
        return progress

    async def update_progress(self, progress_id: str, request: UpdateProgressRequest) -> UserProgress | None:
        """Apply a partial update; returns ``None`` when the record does not exist."""
        now = utc_now_iso()
        values: dict[str, Any] = {
            "last_accessed": request.last_accessed or now,
            "updated_at": now,
        }
        if request.status is not None:
            values["status"] = request.status
        if request.completion_percentage is not None:
            values["completion_percentage"] = request.completion_percentage
        if request.time_spent:
            values["time_spent"] = UserProgressRow.time_spent + request.time_spent

        async with transaction(self.session):
            result = await self.session.execute(
                update(UserProgressRow)
                .where(UserProgressRow.id == progress_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                logger.warning(f"Progress {progress_id} not found for update")
                return None
            await self._write_children(progress_id, request, now)

        logger.info(f"Updated progress {progress_id}")
        return await self.get_progress_by_id(progress_id)

    async def _write_children(self, progress_id: str, request: UpdateProgressRequest, now: str) -> None:
        """Upsert section progress, append the quiz result, and re-derive completion."""
        for section in request.section_progress or []:
            await self._upsert_section(progress_id, section, now)

        if request.quiz_result is not None:
            await self._insert_quiz_result(progress_id, request.quiz_result, now)

        if request.section_progress:
            await self._recompute_completion(progress_id)

    async def _upsert_section(self, progress_id: str, section: SectionProgressUpdate, now: str) -> None:
        await self.session.execute(
            text(UPSERT_SECTION_PROGRESS_QUERY),
            {
                "id": new_id(),
                "progress_id": progress_id,
                "section_id": section.section_id,
                "completed": section.completed,
                "time_spent": section.time_spent,
                "last_accessed": section.last_accessed or now,
                "now": now,
            },
        )

    async def _insert_quiz_result(self, progress_id: str, quiz_result: QuizResult, now: str) -> None:
        result_id = new_id()
        await self.session.execute(
            text(INSERT_QUIZ_RESULT_QUERY),
            {
                "id": result_id,
                "progress_id": progress_id,
                "quiz_id": quiz_result.quiz_id,
                "score": quiz_result.score,
                "total_questions": quiz_result.total_questions,
                "correct_answers": quiz_result.correct_answers,
                "completed_at": quiz_result.completed_at or now,
                "time_spent": quiz_result.time_spent,
                "is_review_mode": quiz_result.is_review_mode,
                "now": now,
            },
        )
        for answer in quiz_result.answers:
            await self.session.execute(
                text(INSERT_ANSWER_DETAIL_QUERY),
                {
                    "id": new_id(),
                    "quiz_result_id": result_id,
                    "question_id": answer.question_id,
                    "user_answer": json.dumps(answer.user_answer, ensure_ascii=False),
                    "is_correct": answer.is_correct,
                    "time_spent": answer.time_spent,
                    "now": now,
                },
            )
        logger.info(f"Recorded quiz result {result_id} (quiz {quiz_result.quiz_id}, score {quiz_result.score})")

    async def _recompute_completion(self, progress_id: str) -> None:
        row = (await self.session.execute(text(SECTION_COMPLETION_QUERY), {"progress_id": progress_id})).first()
        if row is None or not row.total:
            return

        percentage = completion_percentage(row.completed, row.total)
        await self.session.execute(
            text(SET_COMPLETION_QUERY),
            {
                "progress_id": progress_id,
                "completion_percentage": percentage,
                "status": status_for_completion(percentage),
            },
        )

    # --- Aggregation ---

    async def get_user_stats(self, user_id: str) -> LearningStatistics:
        """Aggregate time, completion counts, quiz average and topic strengths."""
        params = {"user_id": user_id}
        totals = (await self.session.execute(text(USER_TOTALS_QUERY), params)).one()
        average = (await self.session.execute(text(USER_AVERAGE_SCORE_QUERY), params)).scalar()

        tag_totals: dict[str, list[float]] = defaultdict(list)
        for row in await self.session.execute(text(USER_CONTENT_SCORES_QUERY), params):
            for tag in _parse_tags(row.tags, row.content_id):
                tag_totals[tag].append(row.avg_score)

        tag_scores = {tag: sum(scores) / len(scores) for tag, scores in tag_totals.items()}
        strong, weak = rank_topics(tag_scores, self.ranking_size)

        return LearningStatistics(
            total_time_spent=totals.total_time,
            completed_contents=totals.completed,
            in_progress_contents=totals.in_progress,
            average_score=average or 0,
            strong_topics=strong,
            weak_topics=weak,
        )

    async def get_recent_quiz_results(self, user_id: str, limit: int = 5) -> list[RecentQuizResult]:
        """Get the latest quiz attempts across all contents of a user."""
        query = (
            select(QuizResultRow, UserProgressRow.content_id)
            .join(UserProgressRow, QuizResultRow.progress_id == UserProgressRow.id)
            .where(UserProgressRow.user_id == user_id)
            .options(selectinload(QuizResultRow.answers))
            .order_by(QuizResultRow.completed_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [
            RecentQuizResult(content_id=content_id, **_quiz_result_fields(row))
            for row, content_id in result.all()
        ]


def _parse_tags(raw: str | None, content_id: str) -> list[str]:
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse tags for content {content_id}: {raw}")
        return []
    if not isinstance(tags, list):
        return []
    return [str(tag) for tag in tags]


def _decode_answer(raw: str) -> str | list[str]:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(value, list):
        return [str(item) for item in value]
    return value if isinstance(value, str) else str(value)


def _quiz_result_fields(row: QuizResultRow) -> dict[str, Any]:
    return {
        "id": row.id,
        "quiz_id": row.quiz_id,
        "score": row.score,
        "total_questions": row.total_questions,
        "correct_answers": row.correct_answers,
        "completed_at": row.completed_at,
        "time_spent": row.time_spent,
        "is_review_mode": row.is_review_mode,
        "answers": [
            AnswerDetail(
                question_id=answer.question_id,
                user_answer=_decode_answer(answer.user_answer),
                is_correct=answer.is_correct,
                time_spent=answer.time_spent,
            )
            for answer in row.answers
        ],
    }


def _progress_to_schema(row: UserProgressRow) -> UserProgress:
    return UserProgress(
        id=row.id,
        user_id=row.user_id,
        content_id=row.content_id,
        status=row.status,
        completion_percentage=row.completion_percentage,
        time_spent=row.time_spent,
        last_accessed=row.last_accessed,
        section_progress=[
            SectionProgress(
                section_id=section.section_id,
                completed=section.completed,
                time_spent=section.time_spent,
                last_accessed=section.last_accessed,
            )
            for section in row.section_progress
        ],
        quiz_results=[QuizResult(**_quiz_result_fields(result)) for result in row.quiz_results],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
