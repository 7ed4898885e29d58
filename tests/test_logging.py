"""
JSON log lines from wms_kernel.logging_config.

Each test installs its own StringIO handler through configure_logging() and
reads the emitted lines back as dicts.
"""

import json
import logging
import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from wms_kernel.domain.values import MovementType
from wms_kernel.exceptions import InsufficientStockError, ReleaseExceedsReservedError
from wms_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)

log = get_logger("tests")


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def emitted():
    """Install a capturing handler and return a reader of parsed lines."""
    stream = StringIO()

    def _install(level=logging.DEBUG):
        configure_logging(level=level, handler=logging.StreamHandler(stream))

    _install()

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    _read.reinstall = _install
    return _read


class TestEnvelope:

    def test_envelope_fields(self, emitted):
        log.info("stock_counted")

        (line,) = emitted()
        assert line["message"] == "stock_counted"
        assert line["level"] == "INFO"
        assert line["logger"] == "wms_kernel.tests"
        assert datetime.fromisoformat(line["ts"]).tzinfo == timezone.utc

    def test_extra_fields_are_top_level(self, emitted):
        log.warning("reservation_rejected", extra={"requested": 9, "available": 8})

        (line,) = emitted()
        assert (line["requested"], line["available"]) == (9, 8)
        assert line["level"] == "WARNING"

    def test_inventory_value_types(self, emitted):
        item_id = uuid4()
        log.info(
            "typed",
            extra={
                "inventory_item_id": item_id,
                "expiry_date": date(2024, 6, 1),
                "cost_per_unit": Decimal("2.25"),
                "movement_type": MovementType.ADJUSTMENT,
                "fields": ["batch_number", "lot_number"],
            },
        )

        (line,) = emitted()
        assert line["inventory_item_id"] == str(item_id)
        assert line["expiry_date"] == "2024-06-01"
        assert line["cost_per_unit"] == "2.25"
        assert line["movement_type"] == "adjustment"
        assert line["fields"] == ["batch_number", "lot_number"]

    def test_formatter_usable_standalone(self):
        record = logging.LogRecord("wms_kernel.x", logging.ERROR, "", 0, "boom %s", ("now",), None)
        line = json.loads(StructuredFormatter().format(record))
        assert line["message"] == "boom now"


class TestExceptions:

    def test_plain_exception(self, emitted):
        try:
            raise KeyError("bin")
        except KeyError:
            log.exception("lookup_failed")

        (line,) = emitted()
        assert line["exc_type"] == "KeyError"
        assert "Traceback" in line["traceback"]
        assert "exc_code" not in line

    def test_insufficient_stock_attributes(self, emitted):
        try:
            raise InsufficientStockError("prod-1", 9, 8)
        except InsufficientStockError:
            log.exception("stock_error")

        (line,) = emitted()
        assert line["exc_code"] == "INSUFFICIENT_STOCK"
        assert line["exc_requested"] == 9
        assert line["exc_available"] == 8
        assert line["exc_shortfall"] == 1

    def test_release_error_carries_field(self, emitted):
        try:
            raise ReleaseExceedsReservedError("item-1", 4, 3)
        except ReleaseExceedsReservedError:
            log.exception("release_failed")

        (line,) = emitted()
        assert line["exc_code"] == "RELEASE_EXCEEDS_RESERVED"
        assert line["exc_field"] == "quantity"
        assert line["exc_reserved"] == 3


class TestLogContext:

    def test_context_added_to_lines(self, emitted):
        tenant = uuid4()
        with LogContext.bind(tenant_id=tenant, correlation_id="req-7"):
            log.info("inside")
        log.info("outside")

        inside, outside = emitted()
        assert inside["tenant_id"] == str(tenant)
        assert inside["correlation_id"] == "req-7"
        assert "tenant_id" not in outside

    def test_nested_bind_restores_outer(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner", actor_id="user-1"):
            assert LogContext.get_all() == {"correlation_id": "inner", "actor_id": "user-1"}
        assert LogContext.get_all() == {"correlation_id": "outer"}

    def test_none_leaves_field_unchanged(self):
        LogContext.set(trace_id="t-1")
        LogContext.set(trace_id=None, actor_id="a-1")
        assert LogContext.get_all() == {"trace_id": "t-1", "actor_id": "a-1"}

    @pytest.mark.parametrize("call", [LogContext.set, LogContext.bind])
    def test_unknown_field_rejected(self, call):
        with pytest.raises(TypeError):
            call(order_id="SO-1")

    def test_clear(self):
        LogContext.set(tenant_id="t")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_threads_do_not_share_context(self):
        LogContext.set(actor_id="main")

        def worker():
            LogContext.set(actor_id="worker")

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert LogContext.get_all() == {"actor_id": "main"}


class TestConfigureLogging:

    def test_second_call_is_ignored(self, emitted):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        log.info("once")

        assert len(emitted()) == 1
        json_handlers = [
            h
            for h in logging.getLogger("wms_kernel").handlers
            if isinstance(h.formatter, StructuredFormatter)
        ]
        assert len(json_handlers) == 1

    def test_level(self, emitted):
        reset_logging()
        emitted.reinstall(level=logging.INFO)
        log.debug("hidden")
        log.info("shown")

        assert [line["message"] for line in emitted()] == ["shown"]

    def test_reset_restores_defaults(self, emitted):
        reset_logging()

        kernel_logger = logging.getLogger("wms_kernel")
        assert kernel_logger.handlers == []
        assert kernel_logger.propagate is True
