from medibook.database.async_db import (
    create_async_database_engine,
    create_session_factory,
    get_async_database_url,
    is_serialization_failure,
)
from medibook.database.base import Base, TimestampMixin

__all__ = [
    "Base",
    "TimestampMixin",
    "create_async_database_engine",
    "create_session_factory",
    "get_async_database_url",
    "is_serialization_failure",
]
