"""
Module: wms_kernel.db.base
Responsibility: Declarative bases and portable column types shared by every
    ORM model in the kernel.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    imports nothing from models/, services/, selectors/, or domain/.

Invariants enforced:
    - Every row has a uuid4 primary key stored as a 36-character string,
      so the same schema works on PostgreSQL and SQLite.
    - Timestamps read back timezone-aware in UTC on both backends.
    - Mutable rows (TrackedBase) carry who created them and who last
      changed them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """uuid.UUID on the Python side, CHAR-like string in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class UTCDateTime(TypeDecorator):
    """
    DateTime normalized to UTC.

    SQLite drops the offset on storage; values coming back naive are
    interpreted as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    """
    Root of the kernel's ORM metadata.

    Annotation map: Decimal is a two-place money amount (unit cost), int is
    a whole-unit quantity, datetime is UTCDateTime, UUID is UUIDString.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(10, 2),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
        int: Integer,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Rows that are edited after creation.

    ``created_at``/``updated_at`` fall back to the database clock on INSERT;
    services holding a Clock stamp them explicitly.  ``updated_by_id`` stays
    NULL until someone other than the system changes the row.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now())
    created_by_id: Mapped[PyUUID]
    updated_by_id: Mapped[PyUUID | None]


UUID = PyUUID
