"""Quizzes: grading, attempts and the legacy quiz tables."""

from scrum_sensei.quizzes.attempt import AttemptState, QuizAttempt, save_quiz_result
from scrum_sensei.quizzes.scoring import is_answer_correct, score_answers
from scrum_sensei.quizzes.service import QuizRepository


__all__ = [
    "AttemptState",
    "QuizAttempt",
    "QuizRepository",
    "is_answer_correct",
    "save_quiz_result",
    "score_answers",
]
