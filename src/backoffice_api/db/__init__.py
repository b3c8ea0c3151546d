"""DB package exports."""

from .base import NAMING_CONVENTION, Base, IntPrimaryKeyMixin, TimestampMixin, metadata, utc_now
from .engine import (
    dispose_engine,
    ensure_database_ready,
    get_engine,
    render_sync_url,
    reset_database_state,
)
from .enums import enum_values
from .session import get_session, get_sessionmaker, session_scope
from .types import UTCDateTime

__all__ = [
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "utc_now",
    "IntPrimaryKeyMixin",
    "TimestampMixin",
    "UTCDateTime",
    "enum_values",
    "dispose_engine",
    "ensure_database_ready",
    "get_engine",
    "render_sync_url",
    "reset_database_state",
    "get_session",
    "get_sessionmaker",
    "session_scope",
]
