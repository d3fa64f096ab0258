"""In-memory state of a learner taking a quiz."""

import logging
from enum import Enum

from scrum_sensei.exceptions import QuizAttemptError
from scrum_sensei.progress.schemas import CreateProgressRequest, QuizResult, UserProgress
from scrum_sensei.progress.service import ProgressStore

from .schemas import Quiz, QuizQuestion, UserAnswer
from .scoring import score_answers


logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    """Lifecycle of an attempt."""

    ANSWERING = "answering"
    COMPLETED = "completed"


class QuizAttempt:
    """Drive one sitting of a quiz: answering, timing, finishing and reviewing.

    The attempt never writes anything. Persist a finished result explicitly
    with :func:`save_quiz_result`.
    """

    def __init__(self, quiz: Quiz, default_points: int | None = None) -> None:
        self.quiz = quiz
        self.default_points = default_points
        self.review_mode = False
        self.review_question_ids: list[str] = []
        self.result: QuizResult | None = None
        self._reset()

    def _reset(self) -> None:
        self.state = AttemptState.ANSWERING
        self.current_index = 0
        self.answers: dict[str, UserAnswer] = {}
        self.time_spent = 0
        self.question_time_spent: dict[str, int] = {}
        # A zero limit means the quiz is untimed.
        self.time_left = self.quiz.time_limit or None

    @property
    def questions(self) -> list[QuizQuestion]:
        """Questions of this pass: the review subset in review mode, all otherwise."""
        if not self.review_mode:
            return list(self.quiz.questions)
        by_id = {question.id: question for question in self.quiz.questions}
        return [by_id[question_id] for question_id in self.review_question_ids if question_id in by_id]

    @property
    def current_question(self) -> QuizQuestion | None:
        questions = self.questions
        if not questions:
            return None
        return questions[self.current_index]

    @property
    def is_completed(self) -> bool:
        return self.state is AttemptState.COMPLETED

    def _require_answering(self) -> None:
        if self.is_completed:
            msg = "The attempt is already completed"
            raise QuizAttemptError(msg)

    def answer(self, answer: UserAnswer, question_id: str | None = None) -> None:
        """Record an answer for ``question_id`` (the current question by default)."""
        self._require_answering()
        if question_id is None:
            question = self.current_question
            if question is None:
                msg = "The quiz has no questions to answer"
                raise QuizAttemptError(msg)
            question_id = question.id
        elif question_id not in {question.id for question in self.questions}:
            msg = f"Question {question_id} is not part of this attempt"
            raise QuizAttemptError(msg)
        self.answers[question_id] = answer

    def next_question(self) -> None:
        """Advance; moving past the last question finishes the attempt."""
        self._require_answering()
        if self.current_index >= len(self.questions) - 1:
            self.finish()
            return
        self.current_index += 1

    def prev_question(self) -> None:
        self._require_answering()
        self.current_index = max(self.current_index - 1, 0)

    def finish(self) -> QuizResult:
        """Grade the attempt; finishing twice returns the same result."""
        if self.is_completed and self.result is not None:
            return self.result

        question_ids = self.review_question_ids if self.review_mode else None
        self.result = score_answers(
            self.quiz,
            self.answers,
            question_ids,
            time_spent=self.time_spent,
            question_time_spent=self.question_time_spent,
            is_review_mode=self.review_mode,
            default_points=self.default_points,
        )
        self.state = AttemptState.COMPLETED
        logger.debug(f"Quiz {self.quiz.id} finished with score {self.result.score}")
        return self.result

    def tick(self, seconds: int = 1) -> None:
        """Let ``seconds`` pass; a time limit runs out only outside review mode."""
        for _ in range(seconds):
            if self.is_completed:
                return

            self.time_spent += 1
            question = self.current_question
            if question is not None:
                self.question_time_spent[question.id] = self.question_time_spent.get(question.id, 0) + 1

            if self.time_left is not None and not self.review_mode:
                self.time_left -= 1
                if self.time_left <= 0:
                    self.time_left = 0
                    self.finish()

    def start_review(self) -> None:
        """Retake only the questions answered wrongly last time (all of them after a perfect run)."""
        if self.result is None:
            msg = "Finish the quiz before reviewing it"
            raise QuizAttemptError(msg)

        incorrect = [answer.question_id for answer in self.result.answers if not answer.is_correct]
        self.review_question_ids = incorrect or [question.id for question in self.quiz.questions]
        self.review_mode = True
        self._reset()

    def restart(self) -> None:
        """Start over in normal mode."""
        self.review_mode = False
        self.review_question_ids = []
        self._reset()


async def save_quiz_result(store: ProgressStore, user_id: str, content_id: str, result: QuizResult) -> UserProgress:
    """Append a finished attempt to the learner's progress on ``content_id``."""
    return await store.create_progress(
        CreateProgressRequest(user_id=user_id, content_id=content_id, quiz_result=result)
    )
