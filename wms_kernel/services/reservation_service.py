"""
Module: wms_kernel.services.reservation_service
Responsibility: Reserve stock for outbound demand across bins in FEFO order,
    and release reservations back to available stock.
Architecture position: Kernel > Services.  Planning is delegated to the pure
    wms_kernel.domain.fefo planner; writes go through StockWriter.

Invariants enforced:
    - Conservation: reserve and release move units between available and
      reserved on the same rows; per-product on-hand totals never change.
    - FEFO: earliest expiry is consumed first; no-expiry stock last.
    - All-or-nothing: a shortfall is detected before any write.  A conflict
      while applying a multi-row plan reverses the rows already written
      before the error propagates.
    - Release never exceeds the reserved quantity of the addressed row.

Failure modes:
    - InvalidArgumentError for a non-positive or non-integer quantity.
    - InsufficientStockError when candidate stock is below demand.
    - ConcurrentModificationError when a row changed under the plan.
    - InventoryItemNotFoundError / ReleaseExceedsReservedError on release.

Audit relevance:
    One RESERVATION movement per touched row and one RELEASE movement per
    release, each carrying the optional order reference.
"""

import time
from uuid import UUID

from sqlalchemy.orm import Session

from wms_kernel.config import InventoryConfig
from wms_kernel.domain.clock import Clock, SystemClock
from wms_kernel.domain.fefo import PlannedTake, StockSlot, plan_fefo
from wms_kernel.domain.validation import require_positive_quantity
from wms_kernel.domain.values import (
    InventoryItemInfo,
    MovementRecord,
    MovementType,
    ReservationLine,
    ReservationResult,
)
from wms_kernel.exceptions import (
    ConcurrentModificationError,
    InsufficientStockError,
    ReleaseExceedsReservedError,
)
from wms_kernel.logging_config import get_logger
from wms_kernel.models.inventory_item import InventoryItemModel
from wms_kernel.services.base import BaseService
from wms_kernel.services.movement_recorder import MovementRecorder, SqlMovementRecorder
from wms_kernel.services.stock_writer import StockWriter

logger = get_logger("services.reservation")


class ReservationService(BaseService[InventoryItemModel]):
    """
    FEFO reservation allocator and release engine.

    Contract:
        Flush-only.  On any raised error the rows this call touched are back
        at their pre-call quantities, or the caller's rollback restores them.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: InventoryConfig | None = None,
        recorder: MovementRecorder | None = None,
        writer: StockWriter | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._config = config or InventoryConfig()
        self._recorder = recorder if recorder is not None else SqlMovementRecorder(session)
        self._writer = writer or StockWriter(session, self._clock)

    def reserve(
        self,
        product_id: UUID,
        quantity: int,
        tenant_id: UUID,
        *,
        actor_id: UUID | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> ReservationResult:
        """
        Reserve ``quantity`` units of a product, earliest expiry first.

        Returns:
            ReservationResult with one line per consumed item, in FEFO order.

        Raises:
            InvalidArgumentError: quantity is not a positive integer.
            InsufficientStockError: candidates hold fewer units than requested.
            ConcurrentModificationError: a candidate changed while applying.
        """
        t0 = time.monotonic()
        require_positive_quantity(quantity)

        rows = self._writer.load_product_for_update(product_id, tenant_id)
        expired_before = (
            None if self._config.allow_expired_reservation else self._clock.today()
        )
        plan = plan_fefo(
            [StockSlot.from_item(row) for row in rows],
            quantity,
            expired_before=expired_before,
        )

        if not plan.is_satisfied:
            logger.warning(
                "reservation_rejected_insufficient_stock",
                extra={
                    "product_id": str(product_id),
                    "tenant_id": str(tenant_id),
                    "requested": quantity,
                    "available": plan.available,
                    "shortfall": plan.shortfall,
                },
            )
            raise InsufficientStockError(str(product_id), quantity, plan.available)

        applied: list[PlannedTake] = []
        try:
            for take in plan.takes:
                slot = take.slot
                self._writer.write(
                    slot.inventory_item_id,
                    tenant_id,
                    expected_available=slot.available_quantity,
                    expected_reserved=slot.reserved_quantity,
                    new_available=slot.available_quantity - take.quantity,
                    new_reserved=slot.reserved_quantity + take.quantity,
                    actor_id=actor_id,
                )
                applied.append(take)
        except ConcurrentModificationError as conflict:
            logger.warning(
                "reservation_conflict_compensating",
                extra={
                    "product_id": str(product_id),
                    "tenant_id": str(tenant_id),
                    "applied_lines": len(applied),
                    "planned_lines": len(plan.takes),
                },
            )
            self._compensate(applied, tenant_id, actor_id, conflict)
            raise

        now = self._clock.now()
        for take in applied:
            self._recorder.record(
                MovementRecord(
                    tenant_id=tenant_id,
                    inventory_item_id=take.slot.inventory_item_id,
                    movement_type=MovementType.RESERVATION,
                    from_quantity=take.slot.reserved_quantity,
                    to_quantity=take.slot.reserved_quantity + take.quantity,
                    occurred_at=now,
                    actor_id=actor_id,
                    reference_type=reference_type,
                    reference_id=reference_id,
                )
            )
        self.session.flush()

        result = ReservationResult(
            product_id=product_id,
            lines=tuple(
                ReservationLine(
                    inventory_item_id=take.slot.inventory_item_id,
                    quantity_reserved=take.quantity,
                )
                for take in applied
            ),
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info(
            "reservation_completed",
            extra={
                "product_id": str(product_id),
                "tenant_id": str(tenant_id),
                "quantity": quantity,
                "items_touched": len(result.lines),
                "reference_type": reference_type,
                "reference_id": reference_id,
                "duration_ms": duration_ms,
            },
        )
        return result

    def release(
        self,
        inventory_item_id: UUID,
        quantity: int,
        tenant_id: UUID,
        *,
        actor_id: UUID | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> InventoryItemInfo:
        """
        Move ``quantity`` units of one item from reserved back to available.

        Raises:
            InvalidArgumentError: quantity is not a positive integer.
            InventoryItemNotFoundError: item missing for the tenant.
            ReleaseExceedsReservedError: quantity exceeds the reserved amount.
        """
        require_positive_quantity(quantity)

        item = self._writer.load_for_update(inventory_item_id, tenant_id)
        available_before = item.available_quantity
        reserved_before = item.reserved_quantity

        if quantity > reserved_before:
            logger.warning(
                "release_rejected_exceeds_reserved",
                extra={
                    "inventory_item_id": str(inventory_item_id),
                    "tenant_id": str(tenant_id),
                    "requested": quantity,
                    "reserved": reserved_before,
                },
            )
            raise ReleaseExceedsReservedError(
                str(inventory_item_id), quantity, reserved_before
            )

        item = self._writer.write(
            inventory_item_id,
            tenant_id,
            expected_available=available_before,
            expected_reserved=reserved_before,
            new_available=available_before + quantity,
            new_reserved=reserved_before - quantity,
            actor_id=actor_id,
        )

        self._recorder.record(
            MovementRecord(
                tenant_id=tenant_id,
                inventory_item_id=inventory_item_id,
                movement_type=MovementType.RELEASE,
                from_quantity=reserved_before,
                to_quantity=item.reserved_quantity,
                occurred_at=self._clock.now(),
                actor_id=actor_id,
                reference_type=reference_type,
                reference_id=reference_id,
            )
        )
        self.session.flush()

        logger.info(
            "reservation_released",
            extra={
                "inventory_item_id": str(inventory_item_id),
                "tenant_id": str(tenant_id),
                "quantity": quantity,
                "reserved_quantity": item.reserved_quantity,
                "available_quantity": item.available_quantity,
            },
        )
        return item.to_dto()

    def _compensate(
        self,
        applied: list[PlannedTake],
        tenant_id: UUID,
        actor_id: UUID | None,
        conflict: ConcurrentModificationError,
    ) -> None:
        """
        Reverse already-applied takes, most recent first.

        Every line is attempted.  If any reversal itself conflicts, the
        original ``conflict`` is raised with the last reversal error as its
        cause, and the caller must roll back the transaction.
        """
        unreversed: list[str] = []
        failure: ConcurrentModificationError | None = None
        for take in reversed(applied):
            slot = take.slot
            try:
                self._writer.write(
                    slot.inventory_item_id,
                    tenant_id,
                    expected_available=slot.available_quantity - take.quantity,
                    expected_reserved=slot.reserved_quantity + take.quantity,
                    new_available=slot.available_quantity,
                    new_reserved=slot.reserved_quantity,
                    actor_id=actor_id,
                )
            except ConcurrentModificationError as exc:
                unreversed.append(str(slot.inventory_item_id))
                failure = exc

        if failure is not None:
            logger.error(
                "reservation_compensation_failed",
                extra={
                    "tenant_id": str(tenant_id),
                    "lines_reversed": len(applied) - len(unreversed),
                    "unreversed_item_ids": unreversed,
                },
            )
            raise conflict from failure

        logger.info(
            "reservation_compensated",
            extra={"tenant_id": str(tenant_id), "lines_reversed": len(applied)},
        )
