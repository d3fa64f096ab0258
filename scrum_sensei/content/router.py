"""Content API endpoints for learners and admins."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from scrum_sensei.database import DbSession
from scrum_sensei.exceptions import ResourceNotFoundError

from .schemas import (
    Content,
    ContentListResponse,
    ContentStatus,
    ContentType,
    CreateContentRequest,
    UpdateContentRequest,
)
from .service import ContentStore


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/user/content", tags=["content"])
admin_router = APIRouter(prefix="/api/admin/contents", tags=["admin"])


@router.get("")
async def list_published_content(
    db: DbSession,
    content_type: Annotated[ContentType | None, Query(alias="type", description="Filter by content type")] = None,
) -> ContentListResponse:
    """List published contents, optionally of one type."""
    contents = await ContentStore(db).get_contents_by_status("published")
    if content_type:
        contents = [content for content in contents if content.type == content_type]
    return ContentListResponse(contents=contents, count=len(contents))


@router.get("/{content_id}")
async def get_published_content(content_id: str, db: DbSession) -> Content:
    """Get a published content with its sections."""
    content = await ContentStore(db).get_content_by_id(content_id)
    if content is None or content.status != "published":
        raise ResourceNotFoundError("Content", content_id)
    return content


@admin_router.get("")
async def list_contents(
    db: DbSession,
    content_status: Annotated[ContentStatus | None, Query(alias="status", description="Filter by status")] = None,
) -> ContentListResponse:
    """List every content regardless of status."""
    store = ContentStore(db)
    if content_status:
        contents = await store.get_contents_by_status(content_status)
    else:
        contents = await store.get_all_contents()
    return ContentListResponse(contents=contents, count=len(contents))


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_content(request: CreateContentRequest, db: DbSession) -> Content:
    """Create a content with its sections."""
    return await ContentStore(db).create_content(request)


@admin_router.get("/{content_id}")
async def get_content(content_id: str, db: DbSession) -> Content:
    """Get any content by ID."""
    content = await ContentStore(db).get_content_by_id(content_id)
    if content is None:
        raise ResourceNotFoundError("Content", content_id)
    return content


@admin_router.put("/{content_id}")
async def update_content(content_id: str, request: UpdateContentRequest, db: DbSession) -> Content:
    """Update a content; a ``sections`` list replaces all existing sections."""
    content = await ContentStore(db).update_content(content_id, request)
    if content is None:
        raise ResourceNotFoundError("Content", content_id)
    return content


@admin_router.post("/{content_id}/publish")
async def publish_content(content_id: str, db: DbSession) -> Content:
    """Publish a content."""
    content = await ContentStore(db).publish_content(content_id)
    if content is None:
        raise ResourceNotFoundError("Content", content_id)
    return content


@admin_router.delete("/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_content(content_id: str, db: DbSession) -> None:
    """Delete a content and its sections."""
    deleted = await ContentStore(db).delete_content(content_id)
    if not deleted:
        raise ResourceNotFoundError("Content", content_id)
