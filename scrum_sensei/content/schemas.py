"""Schemas for learning contents."""

from typing import Literal

from pydantic import Field

from scrum_sensei.core.schemas import CamelModel


ContentType = Literal["lesson", "article", "quiz", "video", "audio"]
ContentStatus = Literal["draft", "review", "published", "archived"]


class ContentSection(CamelModel):
    """One ordered section of a content."""

    id: str | None = None
    title: str
    content: str
    order: int = Field(default=0, ge=0)
    audio_url: str | None = None
    source_text: str | None = None


class Content(CamelModel):
    """A content with its sections in display order."""

    id: str
    title: str
    description: str | None = None
    type: ContentType
    status: ContentStatus
    sections: list[ContentSection] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    difficulty: str | None = None
    estimated_time: int | None = None
    created_at: str
    updated_at: str
    published_at: str | None = None
    published: bool = False


class ContentSummary(CamelModel):
    """List entry for a content, without section bodies."""

    id: str
    title: str
    description: str | None = None
    type: ContentType
    status: ContentStatus
    tags: list[str] = Field(default_factory=list)
    difficulty: str | None = None
    estimated_time: int | None = None
    section_count: int = 0
    updated_at: str
    published: bool = False


class CreateContentRequest(CamelModel):
    """Schema for creating a content."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    type: ContentType
    status: ContentStatus | None = None
    sections: list[ContentSection] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    difficulty: str | None = None
    estimated_time: int | None = Field(default=None, ge=0)
    published: bool | None = None


class UpdateContentRequest(CamelModel):
    """Schema for updating a content; ``sections`` replaces all sections when given."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    type: ContentType | None = None
    status: ContentStatus | None = None
    sections: list[ContentSection] | None = None
    tags: list[str] | None = None
    difficulty: str | None = None
    estimated_time: int | None = Field(default=None, ge=0)
    published: bool | None = None


class ContentListResponse(CamelModel):
    """Schema for content list response."""

    contents: list[ContentSummary]
    count: int
