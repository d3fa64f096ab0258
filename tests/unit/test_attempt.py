import pytest

from scrum_sensei.exceptions import QuizAttemptError
from scrum_sensei.quizzes.attempt import AttemptState, QuizAttempt
from scrum_sensei.quizzes.schemas import Quiz, QuizOption, QuizQuestion


def _question(question_id: str, correct: str = "a") -> QuizQuestion:
    return QuizQuestion(
        id=question_id,
        question=f"Question {question_id}",
        type="multiple-choice",
        options=[
            QuizOption(id="a", text="A", is_correct=correct == "a"),
            QuizOption(id="b", text="B", is_correct=correct == "b"),
        ],
        points=1,
    )


@pytest.fixture
def quiz() -> Quiz:
    return Quiz(id="quiz-1", title="Sprint quiz", questions=[_question("q1"), _question("q2"), _question("q3")])


def test_navigation_is_bounded(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)

    attempt.prev_question()
    assert attempt.current_index == 0

    attempt.next_question()
    attempt.next_question()
    assert attempt.current_index == 2
    assert attempt.current_question.id == "q3"
    assert attempt.state is AttemptState.ANSWERING


def test_advancing_past_last_question_finishes(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    for _ in quiz.questions:
        attempt.answer("a")
        attempt.next_question()

    assert attempt.is_completed
    assert attempt.result is not None
    assert attempt.result.score == 100
    assert attempt.result.correct_answers == 3


def test_answers_are_recorded_per_question(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    attempt.answer("a")
    attempt.answer("b", question_id="q3")

    result = attempt.finish()

    assert [answer.user_answer for answer in result.answers] == ["a", "", "b"]
    assert result.correct_answers == 1
    assert result.score == 33


def test_answering_after_finish_is_rejected(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    attempt.finish()

    with pytest.raises(QuizAttemptError):
        attempt.answer("a")


def test_unknown_question_is_rejected(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)

    with pytest.raises(QuizAttemptError):
        attempt.answer("a", question_id="nope")


def test_finish_is_idempotent(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    first = attempt.finish()

    assert attempt.finish() is first


def test_tick_tracks_total_and_question_time(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    attempt.tick(3)
    attempt.next_question()
    attempt.tick(2)

    result = attempt.finish()

    assert result.time_spent == 5
    assert result.answers[0].time_spent == 3
    assert result.answers[1].time_spent == 2
    assert result.answers[2].time_spent == 0


def test_time_limit_forces_finish(quiz: Quiz) -> None:
    timed = quiz.model_copy(update={"time_limit": 3})
    attempt = QuizAttempt(timed)
    attempt.answer("a")

    attempt.tick(2)
    assert attempt.time_left == 1
    assert not attempt.is_completed

    attempt.tick(5)
    assert attempt.time_left == 0
    assert attempt.is_completed
    assert attempt.result.time_spent == 3


def test_zero_time_limit_means_untimed(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz.model_copy(update={"time_limit": 0}))

    attempt.tick(10)

    assert attempt.time_left is None
    assert not attempt.is_completed
    assert attempt.time_spent == 10


def test_review_covers_only_incorrect_questions(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    attempt.answer("a", question_id="q1")
    attempt.answer("b", question_id="q2")
    attempt.finish()

    attempt.start_review()

    assert attempt.review_mode is True
    assert attempt.state is AttemptState.ANSWERING
    assert [question.id for question in attempt.questions] == ["q2", "q3"]
    assert attempt.answers == {}

    attempt.answer("a")
    attempt.next_question()
    attempt.answer("a")
    attempt.next_question()

    result = attempt.result
    assert result.is_review_mode is True
    assert result.total_questions == 2
    assert result.score == 100


def test_review_after_perfect_run_covers_everything(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    for question in quiz.questions:
        attempt.answer("a", question_id=question.id)
    attempt.finish()

    attempt.start_review()

    assert [question.id for question in attempt.questions] == ["q1", "q2", "q3"]


def test_review_ignores_time_limit(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz.model_copy(update={"time_limit": 1}))
    attempt.finish()
    attempt.start_review()

    attempt.tick(10)

    assert not attempt.is_completed
    assert attempt.time_spent == 10


def test_review_requires_a_finished_attempt(quiz: Quiz) -> None:
    with pytest.raises(QuizAttemptError):
        QuizAttempt(quiz).start_review()


def test_restart_returns_to_normal_mode(quiz: Quiz) -> None:
    attempt = QuizAttempt(quiz)
    attempt.finish()
    attempt.start_review()

    attempt.restart()

    assert attempt.review_mode is False
    assert attempt.current_index == 0
    assert len(attempt.questions) == 3
    assert attempt.finish().is_review_mode is False
