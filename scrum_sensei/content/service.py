"""Content store: admin-authored contents and their ordered sections."""

import json
import logging
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scrum_sensei.database import new_id, transaction, utc_now_iso

from .models import Content as ContentRow
from .models import ContentSection as ContentSectionRow
from .schemas import (
    Content,
    ContentSection,
    ContentStatus,
    ContentSummary,
    CreateContentRequest,
    UpdateContentRequest,
)


logger = logging.getLogger(__name__)


def _safe_parse_tags(tags_json: str | None) -> list[str]:
    """Safely parse tags from JSON string."""
    if not tags_json:
        return []
    try:
        tags = json.loads(tags_json)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse content tags: {tags_json}")
        return []
    return [str(tag) for tag in tags] if isinstance(tags, list) else []


def _ordered_sections(sections: list[ContentSection]) -> list[ContentSection]:
    """Sort by the caller's ``order`` and renumber contiguously from 0.

    ``sorted`` is stable, so sections sharing an ``order`` keep their given order.
    """
    ranked = sorted(sections, key=lambda section: section.order)
    return [section.model_copy(update={"order": index}) for index, section in enumerate(ranked)]


class ContentStore:
    """Reads and writes ``contents`` and ``content_sections``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_all_contents(self) -> list[ContentSummary]:
        """Get every content, most recently updated first."""
        return await self._list(select(ContentRow))

    async def get_contents_by_status(self, status: ContentStatus) -> list[ContentSummary]:
        """Get the contents in one status, most recently updated first."""
        return await self._list(select(ContentRow).where(ContentRow.status == status))

    async def _list(self, query: Any) -> list[ContentSummary]:
        section_counts = (
            select(ContentSectionRow.content_id, func.count(ContentSectionRow.id).label("section_count"))
            .group_by(ContentSectionRow.content_id)
            .subquery()
        )
        query = (
            query.add_columns(func.coalesce(section_counts.c.section_count, 0))
            .outerjoin(section_counts, section_counts.c.content_id == ContentRow.id)
            .order_by(ContentRow.updated_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return [
            ContentSummary(
                id=row.id,
                title=row.title,
                description=row.description,
                type=row.type,
                status=row.status,
                tags=_safe_parse_tags(row.tags),
                difficulty=row.difficulty,
                estimated_time=row.estimated_time,
                section_count=section_count,
                updated_at=row.updated_at,
                published=row.status == "published",
            )
            for row, section_count in result.all()
        ]

    async def get_content_by_id(self, content_id: str) -> Content | None:
        """Get a content with its sections ordered by position."""
        query = (
            select(ContentRow)
            .where(ContentRow.id == content_id)
            .options(selectinload(ContentRow.sections))
            .execution_options(populate_existing=True)
        )
        row = (await self.session.execute(query)).scalar_one_or_none()
        if row is None:
            return None

        return Content(
            id=row.id,
            title=row.title,
            description=row.description,
            type=row.type,
            status=row.status,
            sections=[
                ContentSection(
                    id=section.id,
                    title=section.title,
                    content=section.content,
                    order=section.order,
                    audio_url=section.audio_url,
                    source_text=section.source_text,
                )
                for section in row.sections
            ],
            tags=_safe_parse_tags(row.tags),
            difficulty=row.difficulty,
            estimated_time=row.estimated_time,
            created_at=row.created_at,
            updated_at=row.updated_at,
            published_at=row.published_at,
            published=row.status == "published",
        )

    async def create_content(self, request: CreateContentRequest) -> Content:
        """Create a content and its sections in one transaction."""
        now = utc_now_iso()
        status = request.status or "draft"
        if request.published is not None:
            status = "published" if request.published else status

        content_id = new_id()
        async with transaction(self.session):
            self.session.add(
                ContentRow(
                    id=content_id,
                    title=request.title,
                    description=request.description,
                    type=request.type,
                    status=status,
                    tags=json.dumps(request.tags, ensure_ascii=False),
                    difficulty=request.difficulty,
                    estimated_time=request.estimated_time,
                    created_at=now,
                    updated_at=now,
                    published_at=now if status == "published" else None,
                )
            )
            await self.session.flush()
            await self._insert_sections(content_id, request.sections, now)

        logger.info(f"Created content {content_id} ({request.type}) with {len(request.sections)} sections")
        content = await self.get_content_by_id(content_id)
        if content is None:
            msg = f"Content {content_id} vanished after insert"
            raise RuntimeError(msg)
        return content

    async def update_content(self, content_id: str, request: UpdateContentRequest) -> Content | None:
        """Update the supplied fields; ``sections`` replaces every existing section."""
        now = utc_now_iso()

        async with transaction(self.session):
            current_status = (
                await self.session.execute(select(ContentRow.status).where(ContentRow.id == content_id))
            ).scalar_one_or_none()
            if current_status is None:
                return None

            values: dict[str, Any] = request.model_dump(
                include={"title", "description", "type", "status", "difficulty", "estimated_time"},
                exclude_unset=True,
            )
            for required in ("title", "type", "status"):
                if values.get(required, "") is None:
                    del values[required]
            if request.tags is not None:
                values["tags"] = json.dumps(request.tags, ensure_ascii=False)
            if request.published is not None:
                if request.published:
                    values["status"] = "published"
                    values["published_at"] = now
                elif current_status == "published":
                    values["status"] = "draft"
            if values.get("status") == "published" and current_status != "published":
                values["published_at"] = now
            values["updated_at"] = now

            await self.session.execute(
                update(ContentRow)
                .where(ContentRow.id == content_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )

            if request.sections is not None:
                await self.session.execute(
                    delete(ContentSectionRow)
                    .where(ContentSectionRow.content_id == content_id)
                    .execution_options(synchronize_session=False)
                )
                await self._insert_sections(content_id, request.sections, now)

        logger.info(f"Updated content {content_id}")
        return await self.get_content_by_id(content_id)

    async def _insert_sections(self, content_id: str, sections: list[ContentSection], now: str) -> None:
        # Bulk insert keeps the identity map out of the way when ids are reused.
        rows = [
            {
                "id": section.id or new_id(),
                "content_id": content_id,
                "title": section.title,
                "content": section.content,
                "order": section.order,
                "audio_url": section.audio_url,
                "source_text": section.source_text,
                "created_at": now,
                "updated_at": now,
            }
            for section in _ordered_sections(sections)
        ]
        if rows:
            await self.session.execute(insert(ContentSectionRow), rows)

    async def publish_content(self, content_id: str) -> Content | None:
        """Mark a content published and stamp ``published_at``."""
        now = utc_now_iso()
        async with transaction(self.session):
            result = await self.session.execute(
                update(ContentRow)
                .where(ContentRow.id == content_id)
                .values(status="published", published_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None

        logger.info(f"Published content {content_id}")
        return await self.get_content_by_id(content_id)

    async def delete_content(self, content_id: str) -> bool:
        """Delete a content and its sections; ``False`` when it does not exist."""
        async with transaction(self.session):
            await self.session.execute(delete(ContentSectionRow).where(ContentSectionRow.content_id == content_id))
            result = await self.session.execute(delete(ContentRow).where(ContentRow.id == content_id))
            deleted = result.rowcount > 0

        if deleted:
            logger.info(f"Deleted content {content_id}")
        return deleted
