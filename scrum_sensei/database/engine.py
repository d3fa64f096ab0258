from typing import Any

from sqlalchemy import event
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import ConnectionPoolEntry

from scrum_sensei.config.settings import get_settings


def _enable_sqlite_foreign_keys(dbapi_connection: DBAPIConnection, _connection_record: ConnectionPoolEntry) -> None:
    """Turn on FK enforcement so child rows cascade with their parent."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for the SQLite store.

    - File databases: the default pool with a busy timeout, since SQLite
      serializes writers on the file lock.
    - Foreign keys are enabled per connection; SQLite leaves them off by default.
    """
    settings = get_settings()
    database_url = database_url or settings.DATABASE_URL

    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args["timeout"] = settings.DB_BUSY_TIMEOUT

    engine = create_async_engine(
        database_url,
        echo=False,  # Set True for SQL debugging
        pool_pre_ping=True,
        connect_args=connect_args,
    )

    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine


# Create the engine
engine: AsyncEngine = create_app_engine()
