"""Transactional boundary for multi-table workflow writes."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed writes as one unit.

    Opens a SAVEPOINT when the session already has a transaction (the normal
    case inside a request, since ``get_db`` autobegins), otherwise a top-level
    transaction. Any exception raised inside the block rolls back every write
    made in it and is re-raised unchanged.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session
