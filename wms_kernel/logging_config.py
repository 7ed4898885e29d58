"""
Module: wms_kernel.logging_config
Responsibility: JSON-lines logging for the kernel.  Every record becomes one
    JSON object carrying the event name, the request context bound through
    LogContext, the ``extra`` fields passed by the caller, and the structured
    attributes of any attached WmsKernelError.
Architecture position: Kernel > cross-cutting.  Imported by every layer;
    imports nothing from the kernel.

Usage:
    logger = get_logger("services.reservation")
    with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id):
        logger.info("reservation_completed", extra={"quantity": 8})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

_LOGGER_PREFIX = "wms_kernel"

CONTEXT_FIELDS: tuple[str, ...] = ("correlation_id", "tenant_id", "actor_id", "trace_id")

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("wms_log_context", default=_EMPTY)


def _check_fields(fields: Mapping[str, Any]) -> None:
    unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
    if unknown:
        raise TypeError(f"Unknown log context fields: {unknown}")


def _merged(fields: Mapping[str, Any]) -> Mapping[str, str]:
    current = dict(_context.get())
    current.update({k: str(v) for k, v in fields.items() if v is not None})
    return MappingProxyType(current)


class LogContext:
    """
    Request-scoped fields attached to every log line.

    The whole context is one immutable mapping in a ContextVar, so threads
    and asyncio tasks each see their own copy.
    """

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the current context; None is ignored."""
        _check_fields(fields)
        _context.set(_merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: Any) -> "_BoundContext":
        """Set fields inside a ``with`` block and restore them afterwards."""
        _check_fields(fields)
        return _BoundContext(fields)


class _BoundContext:

    def __init__(self, fields: Mapping[str, Any]):
        self._fields = fields
        self._token: Token | None = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(_merged(self._fields))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Kernel errors keep their context as public instance attributes
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context.get())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``wms_kernel`` namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Handler installation
# ---------------------------------------------------------------------------

_install_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``wms_kernel`` logger.

    Only the first call has an effect until reset_logging() is called.
    """
    global _installed_handler
    with _install_lock:
        if _installed_handler is not None:
            return
        _installed_handler = (
            handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        )

    _installed_handler.setFormatter(StructuredFormatter())
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False
    kernel_logger.addHandler(_installed_handler)


def reset_logging() -> None:
    """Remove installed handlers and restore stdlib defaults. Tests only."""
    global _installed_handler
    with _install_lock:
        _installed_handler = None
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
    kernel_logger.propagate = True
