"""Database layer - engine, base classes, and column types."""

from wms_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from wms_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from wms_kernel.db.types import TRACKING_LABEL_LENGTH

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "UUID",
    "TRACKING_LABEL_LENGTH",
]
