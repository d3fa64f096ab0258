"""Legacy admin schema: quizzes live as ``materials`` rows of type ``quiz``."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scrum_sensei.database.base import Base, utc_now_iso


__all__ = ["Material", "Question"]


class Material(Base):
    """Admin-uploaded material; quizzes are materials with ``type='quiz'``."""

    __tablename__ = "materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String, nullable=False, default="text", index=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    file_path: Mapped[str | None] = mapped_column(String, nullable=True)
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds
    published_at: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    questions: Mapped[list[Question]] = relationship(
        "Question",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="Question.id",
        passive_deletes=True,
    )


class Question(Base):
    """A quiz question; options are stored as a JSON array."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    material_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("materials.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default="multiple-choice")
    correct_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    options: Mapped[str | None] = mapped_column(Text, nullable=True)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    material: Mapped[Material] = relationship("Material", back_populates="questions")
