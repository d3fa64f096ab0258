"""Schemas for quizzes stored in the legacy materials tables."""

from typing import Literal

from pydantic import Field

from scrum_sensei.core.schemas import CamelModel


QuestionType = Literal["multiple-choice", "multiple-select", "true-false", "fill-blank", "short-answer"]
MaterialStatus = Literal["draft", "review", "published", "archived"]

UserAnswer = str | list[str]


class QuizOption(CamelModel):
    """A selectable option of a question."""

    id: str
    text: str
    is_correct: bool = False


class QuizQuestion(CamelModel):
    """A quiz question.

    ``type`` is kept as free text: questions of a type the scorer does not
    know are graded as incorrect instead of being rejected.
    """

    id: str
    question: str
    type: str = "multiple-choice"
    options: list[QuizOption] = Field(default_factory=list)
    correct_answer: str | None = None
    explanation: str = ""
    points: int | None = Field(default=None, ge=0)


class Quiz(CamelModel):
    """A quiz with its questions."""

    id: str
    title: str
    description: str | None = None
    questions: list[QuizQuestion] = Field(default_factory=list)
    time_limit: int | None = None
    status: MaterialStatus = "published"
    created_at: str | None = None
    updated_at: str | None = None


class QuizSummary(CamelModel):
    """List entry for a quiz."""

    id: str
    title: str
    description: str | None = None
    created_at: str
    question_count: int = 0


class QuizListResponse(CamelModel):
    quizzes: list[QuizSummary]
    count: int


class QuizDetailResponse(CamelModel):
    quiz: Quiz


class OptionInput(CamelModel):
    id: str | None = None
    text: str
    is_correct: bool = False


class QuestionInput(CamelModel):
    """Question as authored; options may be plain strings."""

    question: str | None = None
    type: str = "multiple-choice"
    options: list[OptionInput | str] = Field(default_factory=list)
    correct_answer: str | None = None
    explanation: str | None = None
    points: int | None = Field(default=None, ge=0)


class CreateQuizRequest(CamelModel):
    """Schema for creating a quiz."""

    title: str = ""
    description: str | None = None
    questions: list[QuestionInput] = Field(default_factory=list)
    time_limit: int | None = Field(default=None, ge=1)


class CreateQuizResponse(CamelModel):
    success: bool = True
    id: str
    material_id: int
    question_count: int
    message: str = "Quiz saved"


class MaterialStatusUpdate(CamelModel):
    status: MaterialStatus


class MaterialStatusResponse(CamelModel):
    id: str
    status: MaterialStatus


class GradeQuizRequest(CamelModel):
    """Answers submitted for grading, keyed by question id."""

    answers: dict[str, UserAnswer] = Field(default_factory=dict)
    question_ids: list[str] | None = None
    time_spent: int = Field(default=0, ge=0)
    question_time_spent: dict[str, int] = Field(default_factory=dict)
    is_review_mode: bool = False
