from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scrum_sensei.database.engine import engine


async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session generator.

    Yields
    ------
        AsyncSession: Database session without automatic commit.
        The store layer should handle commits/rollbacks.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a unit of work: commit when the block exits cleanly, roll back otherwise.

    Works whether or not the session has already autobegun a transaction,
    which ``session.begin()`` does not.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise


# Create a reusable dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
