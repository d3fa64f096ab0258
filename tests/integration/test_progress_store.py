"""ProgressStore against a real SQLite database."""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from scrum_sensei.content.schemas import ContentSection, CreateContentRequest
from scrum_sensei.content.service import ContentStore
from scrum_sensei.progress.models import UserProgress as UserProgressRow
from scrum_sensei.progress.schemas import (
    AnswerDetail,
    CreateProgressRequest,
    QuizResult,
    SectionProgressUpdate,
    UpdateProgressRequest,
)
from scrum_sensei.progress.service import ProgressStore
from scrum_sensei.quizzes.attempt import QuizAttempt, save_quiz_result
from scrum_sensei.quizzes.schemas import Quiz, QuizOption, QuizQuestion


pytestmark = [pytest.mark.asyncio, pytest.mark.integration]

USER_ID = "user-1"


def _quiz_result(score: int, quiz_id: str = "quiz-1", completed_at: str | None = None) -> QuizResult:
    return QuizResult(
        quiz_id=quiz_id,
        score=score,
        total_questions=2,
        correct_answers=1,
        completed_at=completed_at,
        time_spent=20,
        answers=[
            AnswerDetail(question_id="q1", user_answer="a", is_correct=True, time_spent=10),
            AnswerDetail(question_id="q2", user_answer=["a", "b"], is_correct=False),
        ],
    )


@pytest_asyncio.fixture
async def content_with_sections(db_session: AsyncSession) -> tuple[str, list[str]]:
    """A lesson with three sections; returns its id and section ids in order."""
    content = await ContentStore(db_session).create_content(
        CreateContentRequest(
            title="Sprint Planning",
            type="lesson",
            tags=["scrum", "planning"],
            sections=[
                ContentSection(title="Why", content="...", order=0),
                ContentSection(title="What", content="...", order=1),
                ContentSection(title="How", content="...", order=2),
            ],
        )
    )
    return content.id, [section.id for section in content.sections]


async def test_create_twice_keeps_one_row(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)

    first = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id="c1"))
    second = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id="c1"))

    assert first.id == second.id
    assert first.status == "not-started"
    assert first.completion_percentage == 0
    count = (
        await db_session.execute(
            select(func.count(UserProgressRow.id)).where(
                UserProgressRow.user_id == USER_ID, UserProgressRow.content_id == "c1"
            )
        )
    ).scalar()
    assert count == 1


async def test_create_on_existing_merges_like_update(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    await store.create_progress(
        CreateProgressRequest(user_id=USER_ID, content_id="c1", status="in-progress", time_spent=10)
    )

    merged = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id="c1", time_spent=5))

    assert merged.time_spent == 15
    assert merged.status == "in-progress"


async def test_time_spent_accumulates(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    progress = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id="c1"))

    await store.update_progress(progress.id, UpdateProgressRequest(time_spent=30))
    updated = await store.update_progress(progress.id, UpdateProgressRequest(time_spent=30))

    assert updated is not None
    assert updated.time_spent == 60


async def test_partial_update_only_touches_supplied_fields(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    progress = await store.create_progress(
        CreateProgressRequest(user_id=USER_ID, content_id="c1", status="in-progress", completion_percentage=40)
    )

    updated = await store.update_progress(progress.id, UpdateProgressRequest(last_accessed="2030-01-01T00:00:00+00:00"))

    assert updated.status == "in-progress"
    assert updated.completion_percentage == 40
    assert updated.last_accessed == "2030-01-01T00:00:00+00:00"


async def test_update_unknown_id_returns_none(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)

    assert await store.update_progress("missing", UpdateProgressRequest(time_spent=5)) is None
    assert await store.get_progress_by_id("missing") is None
    assert await store.get_content_progress(USER_ID, "missing") is None


async def test_section_visits_derive_completion(
    db_session: AsyncSession, content_with_sections: tuple[str, list[str]]
) -> None:
    content_id, section_ids = content_with_sections
    store = ProgressStore(db_session)
    progress = await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID,
            content_id=content_id,
            section_progress=[SectionProgressUpdate(section_id=section_ids[0], completed=True)],
        )
    )
    assert progress.completion_percentage == 33
    assert progress.status == "in-progress"

    progress = await store.update_progress(
        progress.id, UpdateProgressRequest(section_progress=[SectionProgressUpdate(section_id=section_ids[1], completed=True)])
    )
    assert progress.completion_percentage == 67
    assert progress.status == "in-progress"

    progress = await store.update_progress(
        progress.id, UpdateProgressRequest(section_progress=[SectionProgressUpdate(section_id=section_ids[2], completed=True)])
    )
    assert progress.completion_percentage == 100
    assert progress.status == "completed"
    assert {section.section_id for section in progress.section_progress} == set(section_ids)


async def test_section_upsert_keeps_one_entry_and_accumulates_time(
    db_session: AsyncSession, content_with_sections: tuple[str, list[str]]
) -> None:
    content_id, section_ids = content_with_sections
    store = ProgressStore(db_session)
    progress = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id=content_id))

    await store.update_progress(
        progress.id,
        UpdateProgressRequest(section_progress=[SectionProgressUpdate(section_id=section_ids[0], time_spent=15)]),
    )
    progress = await store.update_progress(
        progress.id,
        UpdateProgressRequest(
            section_progress=[SectionProgressUpdate(section_id=section_ids[0], completed=True, time_spent=15)]
        ),
    )

    assert len(progress.section_progress) == 1
    assert progress.section_progress[0].time_spent == 30
    assert progress.section_progress[0].completed is True


async def test_unknown_sections_do_not_count(
    db_session: AsyncSession, content_with_sections: tuple[str, list[str]]
) -> None:
    content_id, section_ids = content_with_sections
    store = ProgressStore(db_session)

    progress = await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID,
            content_id=content_id,
            section_progress=[
                SectionProgressUpdate(section_id="not-a-section", completed=True),
                SectionProgressUpdate(section_id=section_ids[0], completed=False),
            ],
        )
    )

    assert progress.completion_percentage == 0
    assert progress.status == "not-started"
    assert len(progress.section_progress) == 2


async def test_quiz_results_are_appended_newest_first(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    progress = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id="c1"))

    await store.update_progress(
        progress.id, UpdateProgressRequest(quiz_result=_quiz_result(50, completed_at="2030-01-01T00:00:00+00:00"))
    )
    progress = await store.update_progress(
        progress.id, UpdateProgressRequest(quiz_result=_quiz_result(80, completed_at="2030-01-02T00:00:00+00:00"))
    )

    assert [result.score for result in progress.quiz_results] == [80, 50]
    latest = progress.quiz_results[0]
    assert latest.id is not None
    assert [answer.user_answer for answer in latest.answers] == ["a", ["a", "b"]]
    assert latest.answers[0].time_spent == 10
    assert latest.answers[1].time_spent is None


async def test_save_quiz_result_creates_progress_lazily(db_session: AsyncSession) -> None:
    quiz = Quiz(
        id="7",
        title="Roles",
        questions=[
            QuizQuestion(
                id="1",
                question="Who maximizes value?",
                options=[QuizOption(id="po", text="Product Owner", is_correct=True), QuizOption(id="sm", text="SM")],
                points=1,
            )
        ],
    )
    attempt = QuizAttempt(quiz)
    attempt.answer("po")
    result = attempt.finish()
    store = ProgressStore(db_session)

    await save_quiz_result(store, USER_ID, "c9", result)
    progress = await save_quiz_result(store, USER_ID, "c9", result)

    assert len(progress.quiz_results) == 2
    assert progress.quiz_results[0].score == 100
    assert len(await store.get_user_progress(USER_ID)) == 1


async def test_deleting_progress_cascades_children(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    progress = await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID,
            content_id="c1",
            section_progress=[SectionProgressUpdate(section_id="s1", completed=True)],
            quiz_result=_quiz_result(70),
        )
    )

    await db_session.execute(text("DELETE FROM user_progress WHERE id = :id"), {"id": progress.id})
    await db_session.commit()

    for table in ("section_progress", "quiz_results", "answer_details"):
        remaining = (await db_session.execute(text(f"SELECT COUNT(*) FROM {table}"))).scalar()  # noqa: S608
        assert remaining == 0, table


async def test_user_progress_is_ordered_by_last_access(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    await store.create_progress(
        CreateProgressRequest(user_id=USER_ID, content_id="old", last_accessed="2030-01-01T00:00:00+00:00")
    )
    await store.create_progress(
        CreateProgressRequest(user_id=USER_ID, content_id="new", last_accessed="2030-02-01T00:00:00+00:00")
    )
    await store.create_progress(CreateProgressRequest(user_id="someone-else", content_id="old"))

    progress = await store.get_user_progress(USER_ID)

    assert [item.content_id for item in progress] == ["new", "old"]


async def test_stats_for_unknown_user_are_zero(db_session: AsyncSession) -> None:
    stats = await ProgressStore(db_session).get_user_stats("nobody")

    assert stats.total_time_spent == 0
    assert stats.completed_contents == 0
    assert stats.in_progress_contents == 0
    assert stats.average_score == 0
    assert stats.strong_topics == []
    assert stats.weak_topics == []


async def test_stats_aggregate_time_counts_and_topics(db_session: AsyncSession) -> None:
    contents = ContentStore(db_session)
    scrum = await contents.create_content(CreateContentRequest(title="Scrum", type="lesson", tags=["scrum", "roles"]))
    kanban = await contents.create_content(CreateContentRequest(title="Kanban", type="lesson", tags=["kanban"]))
    store = ProgressStore(db_session)

    await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID, content_id=scrum.id, status="completed", time_spent=100, quiz_result=_quiz_result(90)
        )
    )
    progress = await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID, content_id=kanban.id, status="in-progress", time_spent=50, quiz_result=_quiz_result(40)
        )
    )
    await store.update_progress(progress.id, UpdateProgressRequest(quiz_result=_quiz_result(60)))

    stats = await store.get_user_stats(USER_ID)

    assert stats.total_time_spent == 150
    assert stats.completed_contents == 1
    assert stats.in_progress_contents == 1
    assert stats.average_score == pytest.approx((90 + 40 + 60) / 3)
    assert stats.strong_topics[0] in {"scrum", "roles"}
    assert stats.strong_topics[-1] == "kanban"
    assert stats.weak_topics[0] == "kanban"
    assert set(stats.strong_topics) == {"scrum", "roles", "kanban"}


async def test_recent_quiz_results_span_contents(db_session: AsyncSession) -> None:
    store = ProgressStore(db_session)
    await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID, content_id="c1", quiz_result=_quiz_result(10, completed_at="2030-01-01T00:00:00+00:00")
        )
    )
    await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID, content_id="c2", quiz_result=_quiz_result(20, completed_at="2030-01-03T00:00:00+00:00")
        )
    )
    await store.create_progress(
        CreateProgressRequest(
            user_id=USER_ID, content_id="c1", quiz_result=_quiz_result(30, completed_at="2030-01-02T00:00:00+00:00")
        )
    )

    recent = await store.get_recent_quiz_results(USER_ID, limit=2)

    assert [(result.content_id, result.score) for result in recent] == [("c2", 20), ("c1", 30)]


async def test_failed_update_rolls_back_every_write(
    db_session: AsyncSession, content_with_sections: tuple[str, list[str]]
) -> None:
    content_id, section_ids = content_with_sections
    store = ProgressStore(db_session)
    progress = await store.create_progress(CreateProgressRequest(user_id=USER_ID, content_id=content_id))
    request = UpdateProgressRequest(
        time_spent=30,
        section_progress=[SectionProgressUpdate(section_id=section_ids[0], completed=True, time_spent=30)],
        quiz_result=_quiz_result(50),
    )

    with patch.object(ProgressStore, "_insert_quiz_result", AsyncMock(side_effect=RuntimeError("disk full"))):
        with pytest.raises(RuntimeError):
            await store.update_progress(progress.id, request)

    after = await store.get_progress_by_id(progress.id)
    assert after.time_spent == 0
    assert after.completion_percentage == 0
    assert after.section_progress == []
    assert after.quiz_results == []


async def test_failed_create_leaves_no_progress(
    db_session: AsyncSession, content_with_sections: tuple[str, list[str]]
) -> None:
    content_id, section_ids = content_with_sections
    store = ProgressStore(db_session)
    request = CreateProgressRequest(
        user_id=USER_ID,
        content_id=content_id,
        time_spent=30,
        section_progress=[SectionProgressUpdate(section_id=section_ids[0], completed=True)],
        quiz_result=_quiz_result(50),
    )

    with patch.object(ProgressStore, "_insert_quiz_result", AsyncMock(side_effect=RuntimeError("disk full"))):
        with pytest.raises(RuntimeError):
            await store.create_progress(request)

    assert await store.get_content_progress(USER_ID, content_id) is None
    section_rows = (await db_session.execute(text("SELECT COUNT(*) FROM section_progress"))).scalar()
    assert section_rows == 0
