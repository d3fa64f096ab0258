"""Admin-authored learning contents."""

from scrum_sensei.content.router import admin_router, router
from scrum_sensei.content.service import ContentStore


__all__ = ["ContentStore", "admin_router", "router"]
