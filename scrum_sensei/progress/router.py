"""Progress tracking API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from scrum_sensei.config import get_settings
from scrum_sensei.database import DbSession
from scrum_sensei.exceptions import ResourceNotFoundError, ValidationError

from .schemas import (
    CreateProgressRequest,
    LearningStatistics,
    ProgressNotFound,
    ProgressOverview,
    RecentQuizResult,
    UpdateProgressRequest,
    UserProgress,
)
from .service import ProgressStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/progress", tags=["progress"])

UserIdQuery = Annotated[str | None, Query(alias="userId")]


def _require_user_id(user_id: str | None) -> str:
    if not user_id:
        msg = "userId is required"
        raise ValidationError(msg, field="userId")
    return user_id


@router.get("")
async def get_progress(
    session: DbSession,
    user_id: UserIdQuery = None,
    content_id: Annotated[str | None, Query(alias="contentId")] = None,
) -> UserProgress | ProgressOverview | ProgressNotFound:
    """Get one content's progress, or the user's whole dashboard when no content is given."""
    user_id = _require_user_id(user_id)
    store = ProgressStore(session)

    if content_id:
        progress = await store.get_content_progress(user_id, content_id)
        return progress if progress is not None else ProgressNotFound()

    progress_list = await store.get_user_progress(user_id)
    stats = await store.get_user_stats(user_id)
    return ProgressOverview(progress=progress_list, stats=stats, count=len(progress_list))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_progress(request: CreateProgressRequest, session: DbSession) -> UserProgress:
    """Create (or merge into) the progress of a user on a content."""
    request.user_id = _require_user_id(request.user_id)
    if not request.content_id:
        msg = "contentId is required"
        raise ValidationError(msg, field="contentId")

    store = ProgressStore(session)
    return await store.create_progress(request)


@router.put("")
async def update_progress(
    request: UpdateProgressRequest,
    session: DbSession,
    progress_id: Annotated[str | None, Query(alias="id")] = None,
) -> UserProgress:
    """Update a progress record: section visits, study time, or a finished quiz."""
    if not progress_id:
        msg = "Progress id is required"
        raise ValidationError(msg, field="id")

    store = ProgressStore(session)
    progress = await store.update_progress(progress_id, request)
    if progress is None:
        raise ResourceNotFoundError("Progress", progress_id)
    return progress


@router.get("/stats")
async def get_stats(session: DbSession, user_id: UserIdQuery = None) -> LearningStatistics:
    """Get aggregated learning statistics for a user."""
    store = ProgressStore(session)
    return await store.get_user_stats(_require_user_id(user_id))


@router.get("/recent-quizzes")
async def get_recent_quizzes(
    session: DbSession,
    user_id: UserIdQuery = None,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> list[RecentQuizResult]:
    """Get a user's most recent quiz attempts across all contents."""
    store = ProgressStore(session)
    limit = limit or get_settings().RECENT_QUIZ_RESULTS_LIMIT
    return await store.get_recent_quiz_results(_require_user_id(user_id), limit)
