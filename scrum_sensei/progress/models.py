"""Database models for learner progress tracking."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scrum_sensei.database.base import Base, new_id, utc_now_iso


__all__ = ["AnswerDetail", "QuizResult", "SectionProgress", "UserProgress"]


class UserProgress(Base):
    """A learner's completion and quiz history for one content."""

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="uq_user_content"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    content_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="not-started")
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # seconds
    last_accessed: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    section_progress: Mapped[list[SectionProgress]] = relationship(
        "SectionProgress",
        back_populates="progress",
        cascade="all, delete-orphan",
        order_by="SectionProgress.created_at",
        passive_deletes=True,
    )
    quiz_results: Mapped[list[QuizResult]] = relationship(
        "QuizResult",
        back_populates="progress",
        cascade="all, delete-orphan",
        order_by=lambda: QuizResult.completed_at.desc(),
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """Return string representation of the progress."""
        return f"<UserProgress(id={self.id}, user_id={self.user_id}, content_id={self.content_id}, status={self.status})>"


class SectionProgress(Base):
    """Per-section completion inside a progress record."""

    __tablename__ = "section_progress"
    __table_args__ = (
        UniqueConstraint("progress_id", "section_id", name="uq_progress_section"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    progress_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("user_progress.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    section_id: Mapped[str] = mapped_column(String, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_accessed: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    progress: Mapped[UserProgress] = relationship("UserProgress", back_populates="section_progress")


class QuizResult(Base):
    """One completed quiz attempt. Rows are only ever inserted."""

    __tablename__ = "quiz_results"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    progress_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("user_progress.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quiz_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[str] = mapped_column(String, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_review_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    progress: Mapped[UserProgress] = relationship("UserProgress", back_populates="quiz_results")
    answers: Mapped[list[AnswerDetail]] = relationship(
        "AnswerDetail",
        back_populates="quiz_result",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AnswerDetail(Base):
    """The learner's answer to one question of an attempt."""

    __tablename__ = "answer_details"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    quiz_result_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("quiz_results.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[str] = mapped_column(String, nullable=False)
    user_answer: Mapped[str] = mapped_column(Text, nullable=False)  # JSON string or list
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_spent: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    quiz_result: Mapped[QuizResult] = relationship("QuizResult", back_populates="answers")
