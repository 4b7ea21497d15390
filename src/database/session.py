"""Request-scoped database session."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.engine import async_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; commit on success, roll back on any error.

    Workflow writes inside the request run in savepoints opened by ``atomic``,
    so a failed transition never leaves partial rows behind even when the
    handler catches the error.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            logger.debug("Rolling back request session after %s", type(exc).__name__)
            await session.rollback()
            raise
