"""SQLAlchemy models for admin-authored contents and their ordered sections."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scrum_sensei.database.base import Base, new_id, utc_now_iso


__all__ = ["Content", "ContentSection"]


class Content(Base):
    """A learning unit composed of ordered sections."""

    __tablename__ = "contents"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft", index=True)
    tags: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON array
    difficulty: Mapped[str | None] = mapped_column(String, nullable=True)
    estimated_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    published_at: Mapped[str | None] = mapped_column(String, nullable=True)

    sections: Mapped[list[ContentSection]] = relationship(
        "ContentSection",
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="ContentSection.order",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """Return string representation of the content."""
        return f"<Content(id={self.id}, title={self.title}, status={self.status})>"


class ContentSection(Base):
    """One ordered section of a content."""

    __tablename__ = "content_sections"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    content_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("contents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    audio_url: Mapped[str | None] = mapped_column(String, nullable=True)
    source_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(String, nullable=False, default=utc_now_iso)

    parent: Mapped[Content] = relationship("Content", back_populates="sections")
