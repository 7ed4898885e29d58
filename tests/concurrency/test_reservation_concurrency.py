"""
Concurrency behavior of the reservation path.

The SQLite tests simulate a competing writer by changing rows between the
plan and the write.  The ``postgres`` test runs real threads against
separate connections and relies on row locks.
"""

import threading
from datetime import date

import pytest
from sqlalchemy import update

from wms_kernel.domain.clock import DeterministicClock
from wms_kernel.exceptions import ConcurrentModificationError, InsufficientStockError
from wms_kernel.models import InventoryItemModel
from wms_kernel.services.reservation_service import ReservationService
from wms_kernel.services.stock_writer import StockWriter


class FailingStockWriter(StockWriter):
    """Lets ``succeed`` writes through, then simulates a lost race."""

    def __init__(self, session, clock, succeed):
        super().__init__(session, clock)
        self._remaining = succeed
        self.failed = False

    def write(self, inventory_item_id, tenant_id, **kwargs):
        if self._remaining == 0 and not self.failed:
            self.failed = True
            raise ConcurrentModificationError("InventoryItem", str(inventory_item_id))
        self._remaining -= 1
        return super().write(inventory_item_id, tenant_id, **kwargs)


class ScriptedStockWriter(StockWriter):
    """Raises a conflict on the listed call numbers, counting from 1."""

    def __init__(self, session, clock, fail_calls):
        super().__init__(session, clock)
        self._fail_calls = fail_calls
        self._calls = 0

    def write(self, inventory_item_id, tenant_id, **kwargs):
        self._calls += 1
        if self._calls in self._fail_calls:
            raise ConcurrentModificationError("InventoryItem", str(inventory_item_id))
        return super().write(inventory_item_id, tenant_id, **kwargs)

class TestCompareAndSet:

    def test_row_changed_after_planning(
        self, session, deterministic_clock, tenant_id, product, make_item, quantities
    ):
        item = make_item(product, 5)

        class InterferingWriter(StockWriter):
            def load_product_for_update(self, product_id, tenant_id):
                rows = super().load_product_for_update(product_id, tenant_id)
                self.session.execute(
                    update(InventoryItemModel)
                    .where(InventoryItemModel.id == item.id)
                    .values(available_quantity=2, reserved_quantity=3)
                    .execution_options(synchronize_session=False)
                )
                return rows

        service = ReservationService(
            session,
            deterministic_clock,
            writer=InterferingWriter(session, deterministic_clock),
        )

        with pytest.raises(ConcurrentModificationError):
            service.reserve(product.id, 4, tenant_id)

        assert quantities(item.id) == (2, 3)

    def test_partial_plan_is_compensated(
        self, session, deterministic_clock, tenant_id, product, make_item, quantities,
        captured_logs,
    ):
        first = make_item(product, 3, expiry_date=date(2024, 1, 10))
        second = make_item(product, 3, reserved=1, expiry_date=date(2024, 2, 10))
        writer = FailingStockWriter(session, deterministic_clock, succeed=1)
        service = ReservationService(session, deterministic_clock, writer=writer)

        with pytest.raises(ConcurrentModificationError):
            service.reserve(product.id, 5, tenant_id)

        assert quantities(first.id) == (3, 0)
        assert quantities(second.id) == (3, 1)
        messages = [r["message"] for r in captured_logs()]
        assert "reservation_conflict_compensating" in messages
        assert "reservation_compensated" in messages
        assert "reservation_completed" not in messages

    def test_failed_reversal_keeps_original_conflict(
        self, session, deterministic_clock, tenant_id, product, make_item, quantities,
        captured_logs,
    ):
        first = make_item(product, 2, expiry_date=date(2024, 1, 10))
        second = make_item(product, 2, expiry_date=date(2024, 2, 10))
        third = make_item(product, 2, expiry_date=date(2024, 3, 10))
        # Third take conflicts, then reversing the second take conflicts too
        writer = ScriptedStockWriter(session, deterministic_clock, fail_calls={3, 4})
        service = ReservationService(session, deterministic_clock, writer=writer)

        with pytest.raises(ConcurrentModificationError) as exc_info:
            service.reserve(product.id, 6, tenant_id)

        assert exc_info.value.entity_id == str(third.id)
        assert exc_info.value.__cause__.entity_id == str(second.id)
        assert quantities(first.id) == (2, 0)
        assert quantities(second.id) == (0, 2)

        records = captured_logs()
        (failed,) = [r for r in records if r["message"] == "reservation_compensation_failed"]
        assert failed["level"] == "ERROR"
        assert failed["unreversed_item_ids"] == [str(second.id)]
        assert failed["lines_reversed"] == 1
        assert "reservation_compensated" not in [r["message"] for r in records]


@pytest.mark.postgres
class TestThreadedReservations:

    def test_parallel_reservations_never_oversell(
        self, session_factory, tenant_id, product, make_item, session
    ):
        make_item(product, 10, expiry_date=date(2024, 1, 10))
        make_item(product, 10)
        session.commit()

        successes = []
        failures = []
        lock = threading.Lock()

        def worker():
            worker_session = session_factory()
            try:
                service = ReservationService(worker_session, DeterministicClock())
                service.reserve(product.id, 3, tenant_id)
                worker_session.commit()
                with lock:
                    successes.append(1)
            except (InsufficientStockError, ConcurrentModificationError):
                worker_session.rollback()
                with lock:
                    failures.append(1)
            finally:
                worker_session.close()

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        session.expire_all()
        rows = session.query(InventoryItemModel).filter_by(product_id=product.id).all()
        reserved = sum(r.reserved_quantity for r in rows)
        available = sum(r.available_quantity for r in rows)

        assert len(successes) + len(failures) == 10
        assert reserved == 3 * len(successes)
        assert reserved <= 20
        assert available + reserved == 20
