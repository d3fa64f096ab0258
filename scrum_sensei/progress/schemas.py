"""Schemas for the progress API."""

from typing import Literal

from pydantic import ConfigDict, Field, model_validator

from scrum_sensei.core.schemas import CamelModel


ProgressStatus = Literal["not-started", "in-progress", "completed"]


class SectionProgress(CamelModel):
    """Completion state of one section."""

    section_id: str
    completed: bool = False
    time_spent: int = Field(default=0, ge=0)
    last_accessed: str | None = None


class SectionProgressUpdate(CamelModel):
    """Section visit sent by the client; ``completed`` is left alone when omitted."""

    section_id: str = Field(..., min_length=1)
    completed: bool | None = None
    time_spent: int = Field(default=0, ge=0)
    last_accessed: str | None = None


class AnswerDetail(CamelModel):
    """The learner's answer to a single question."""

    question_id: str
    user_answer: str | list[str]
    is_correct: bool
    time_spent: int | None = Field(default=None, ge=0)


class QuizResult(CamelModel):
    """One finished quiz attempt."""

    id: str | None = None
    quiz_id: str = Field(..., min_length=1)
    score: int = Field(..., ge=0, le=100)
    total_questions: int = Field(..., ge=0)
    correct_answers: int = Field(..., ge=0)
    completed_at: str | None = None
    time_spent: int = Field(default=0, ge=0)
    answers: list[AnswerDetail] = Field(default_factory=list)
    is_review_mode: bool = False

    @model_validator(mode="after")
    def validate_counts(self) -> "QuizResult":
        """Reject results claiming more correct answers than questions."""
        if self.correct_answers > self.total_questions:
            msg = "correctAnswers cannot exceed totalQuestions"
            raise ValueError(msg)
        return self


class UserProgress(CamelModel):
    """A learner's progress on one content, with its section and quiz history."""

    id: str
    user_id: str
    content_id: str
    status: ProgressStatus
    completion_percentage: int
    time_spent: int
    last_accessed: str
    section_progress: list[SectionProgress] = Field(default_factory=list)
    quiz_results: list[QuizResult] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None


class UpdateProgressRequest(CamelModel):
    """Partial progress update; only supplied fields change."""

    status: ProgressStatus | None = None
    completion_percentage: int | None = Field(default=None, ge=0, le=100)
    time_spent: int | None = Field(default=None, ge=0)
    last_accessed: str | None = None
    section_progress: list[SectionProgressUpdate] | None = None
    quiz_result: QuizResult | None = None


class CreateProgressRequest(UpdateProgressRequest):
    """First access of a content by a learner."""

    user_id: str | None = None
    content_id: str | None = None


class LearningStatistics(CamelModel):
    """Aggregated learning figures for a user."""

    total_time_spent: int = 0
    completed_contents: int = 0
    in_progress_contents: int = 0
    average_score: float = 0
    strong_topics: list[str] = Field(default_factory=list)
    weak_topics: list[str] = Field(default_factory=list)


class RecentQuizResult(QuizResult):
    """A quiz attempt tagged with the content it belongs to."""

    content_id: str


class ProgressOverview(CamelModel):
    """Everything the dashboard needs for one user."""

    progress: list[UserProgress]
    stats: LearningStatistics
    count: int


class ProgressNotFound(CamelModel):
    model_config = ConfigDict(extra="forbid")

    exists: bool = False
