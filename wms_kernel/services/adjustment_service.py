"""
Module: wms_kernel.services.adjustment_service
Responsibility: Manual stock corrections (cycle-count findings, damage,
    found stock) on a single inventory item, with a mandatory reason that
    is written to movement history.
Architecture position: Kernel > Services.

Invariants enforced:
    - Only available_quantity changes; reserved stock is never adjusted.
    - A decrease can never take available below zero.
    - Every successful adjustment records an ADJUSTMENT movement with
      from/to quantities, actor, reason, and timestamp.

Failure modes:
    - InvalidArgumentError for an unknown direction, a non-positive quantity,
      or a missing/over-long reason.
    - InventoryItemNotFoundError for a missing or foreign item.
    - InsufficientStockError when a decrease exceeds available stock; the
      row is left untouched.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from wms_kernel.config import InventoryConfig
from wms_kernel.domain.clock import Clock, SystemClock
from wms_kernel.domain.validation import (
    normalize_reason,
    parse_direction,
    require_positive_quantity,
)
from wms_kernel.domain.values import (
    AdjustmentDirection,
    InventoryItemInfo,
    MovementRecord,
    MovementType,
)
from wms_kernel.exceptions import InsufficientStockError
from wms_kernel.logging_config import get_logger
from wms_kernel.models.inventory_item import InventoryItemModel
from wms_kernel.services.base import BaseService
from wms_kernel.services.movement_recorder import MovementRecorder, SqlMovementRecorder
from wms_kernel.services.stock_writer import StockWriter

logger = get_logger("services.adjustment")


class AdjustmentService(BaseService[InventoryItemModel]):
    """Applies increase/decrease corrections to available stock."""

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

    def adjust(
        self,
        inventory_item_id: UUID,
        direction: AdjustmentDirection | str,
        quantity: int,
        reason: str,
        tenant_id: UUID,
        *,
        actor_id: UUID,
    ) -> InventoryItemInfo:
        """
        Increase or decrease available stock on one item.

        Args:
            direction: AdjustmentDirection or its string value.
            quantity: Units to add or remove (>= 1).
            reason: Free-text justification, kept in movement history.

        Returns:
            The updated item.
        """
        direction = parse_direction(direction)
        require_positive_quantity(quantity)
        reason = normalize_reason(reason, self._config.reason_max_length)

        item = self._writer.load_for_update(inventory_item_id, tenant_id)
        available_before = item.available_quantity
        reserved = item.reserved_quantity

        if direction is AdjustmentDirection.INCREASE:
            new_available = available_before + quantity
        else:
            new_available = available_before - quantity

        if new_available < 0:
            logger.warning(
                "adjustment_rejected_insufficient_stock",
                extra={
                    "inventory_item_id": str(inventory_item_id),
                    "tenant_id": str(tenant_id),
                    "requested": quantity,
                    "available": available_before,
                },
            )
            raise InsufficientStockError(
                str(inventory_item_id), quantity, available_before
            )

        item = self._writer.write(
            inventory_item_id,
            tenant_id,
            expected_available=available_before,
            expected_reserved=reserved,
            new_available=new_available,
            new_reserved=reserved,
            actor_id=actor_id,
        )

        self._recorder.record(
            MovementRecord(
                tenant_id=tenant_id,
                inventory_item_id=inventory_item_id,
                movement_type=MovementType.ADJUSTMENT,
                from_quantity=available_before,
                to_quantity=new_available,
                occurred_at=self._clock.now(),
                actor_id=actor_id,
                reason=reason,
            )
        )
        self.session.flush()

        logger.info(
            "inventory_adjusted",
            extra={
                "inventory_item_id": str(inventory_item_id),
                "tenant_id": str(tenant_id),
                "direction": direction.value,
                "quantity": quantity,
                "from_quantity": available_before,
                "to_quantity": new_available,
            },
        )
        return item.to_dto()
