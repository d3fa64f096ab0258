from .base import Base, new_id, utc_now_iso
from .engine import create_app_engine, engine
from .session import DbSession, async_session_maker, get_db_session, transaction


__all__ = [
    "Base",
    "DbSession",
    "async_session_maker",
    "create_app_engine",
    "engine",
    "get_db_session",
    "new_id",
    "transaction",
    "utc_now_iso",
]
