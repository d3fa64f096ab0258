"""Database initialization - creates every table the stores rely on."""

import asyncio
import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models to register them with Base metadata
from scrum_sensei.content.models import *  # noqa: F403
from scrum_sensei.progress.models import *  # noqa: F403
from scrum_sensei.quizzes.models import *  # noqa: F403

from .base import Base
from .engine import engine


logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine) -> None:
    """Create all tables from models (no-op for tables that already exist)."""
    async with db_engine.begin() as conn:
        logger.info("Creating database tables from models...")
        await conn.run_sync(Base.metadata.create_all)

        table_names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        logger.info("Database ready with tables: %s", ", ".join(sorted(table_names)))


async def main() -> None:
    """Run the initialization."""
    try:
        await init_database(engine)
        logger.info("Database initialization completed!")
    except Exception:
        logger.exception("Database initialization failed")
        raise
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
