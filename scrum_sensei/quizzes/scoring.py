"""Deterministic quiz grading."""

import logging
from collections.abc import Iterable, Mapping

from scrum_sensei.config import get_settings
from scrum_sensei.database import utc_now_iso
from scrum_sensei.progress.calculator import score_percentage
from scrum_sensei.progress.schemas import AnswerDetail, QuizResult

from .schemas import Quiz, QuizQuestion, UserAnswer


logger = logging.getLogger(__name__)

SINGLE_CHOICE_TYPES = frozenset({"multiple-choice", "true-false"})
FREE_TEXT_TYPES = frozenset({"short-answer", "fill-blank"})


def _normalize_text(value: str) -> str:
    return value.strip().casefold()


def is_answer_correct(question: QuizQuestion, answer: UserAnswer | None) -> bool:
    """Return whether ``answer`` is right for ``question``.

    - single choice: the chosen option id must be an option flagged correct
    - multiple select: the chosen ids must equal the correct ids exactly
    - free text: trimmed, case-insensitive equality with ``correct_answer``

    Missing answers and unknown question types are incorrect.
    """
    if not answer:
        return False

    if question.type in SINGLE_CHOICE_TYPES:
        if not isinstance(answer, str):
            return False
        return any(option.id == answer and option.is_correct for option in question.options)

    if question.type == "multiple-select":
        if not isinstance(answer, list):
            return False
        correct_ids = {option.id for option in question.options if option.is_correct}
        # Duplicated selections never match the correct set.
        return len(answer) == len(correct_ids) and set(answer) == correct_ids

    if question.type in FREE_TEXT_TYPES:
        if not isinstance(answer, str) or not question.correct_answer:
            return False
        return _normalize_text(answer) == _normalize_text(question.correct_answer)

    logger.warning(f"Unknown question type {question.type!r} on question {question.id}; graded as incorrect")
    return False


def question_points(question: QuizQuestion, default_points: int | None = None) -> int:
    """Points a question is worth; questions without points use the configured default."""
    if question.points is not None:
        return question.points
    return default_points if default_points is not None else get_settings().DEFAULT_QUIZ_POINTS


def select_questions(quiz: Quiz, question_ids: Iterable[str] | None = None) -> list[QuizQuestion]:
    """Pick the questions to grade, in ``question_ids`` order when given."""
    if question_ids is None:
        return list(quiz.questions)
    by_id = {question.id: question for question in quiz.questions}
    return [by_id[question_id] for question_id in dict.fromkeys(question_ids) if question_id in by_id]


def score_answers(
    quiz: Quiz,
    answers: Mapping[str, UserAnswer],
    question_ids: Iterable[str] | None = None,
    *,
    time_spent: int = 0,
    question_time_spent: Mapping[str, int] | None = None,
    is_review_mode: bool = False,
    completed_at: str | None = None,
    default_points: int | None = None,
) -> QuizResult:
    """Grade ``answers`` (keyed by question id) and build the attempt result.

    Only the questions in ``question_ids`` are graded when it is given, which
    is how review attempts cover just the previously missed questions.
    """
    question_time_spent = question_time_spent or {}
    questions = select_questions(quiz, question_ids)

    correct_count = 0
    points_earned = 0
    max_points = 0
    details: list[AnswerDetail] = []
    for question in questions:
        points = question_points(question, default_points)
        max_points += points

        user_answer = answers.get(question.id)
        correct = is_answer_correct(question, user_answer)
        if correct:
            correct_count += 1
            points_earned += points

        details.append(
            AnswerDetail(
                question_id=question.id,
                user_answer=user_answer if user_answer else "",
                is_correct=correct,
                time_spent=question_time_spent.get(question.id, 0),
            )
        )

    return QuizResult(
        quiz_id=quiz.id,
        score=score_percentage(points_earned, max_points),
        total_questions=len(questions),
        correct_answers=correct_count,
        completed_at=completed_at or utc_now_iso(),
        time_spent=time_spent,
        answers=details,
        is_review_mode=is_review_mode,
    )
