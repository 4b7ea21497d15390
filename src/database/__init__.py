from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.database.engine import async_session, engine
from src.database.session import get_db
from src.database.transaction import atomic

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "atomic",
    "engine",
    "get_db",
]
