"""
Module: wms_kernel.services.movement_recorder
Responsibility: The movement-history hook.  Stock services hand every
    successful mutation to a MovementRecorder; the default implementation
    persists it to wms_movement_history inside the caller's transaction.
Architecture position: Kernel > Services.

Invariants enforced:
    - Recording shares the stock mutation's session, so a rolled-back
      mutation leaves no history row behind.
    - History rows are append-only.
    - Each item's rows are numbered 1, 2, 3, ... in recording order.  Stock
      services hold the item's row lock when they record, so numbers are
      not contended; the unique constraint rejects any that are.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wms_kernel.domain.values import MovementRecord
from wms_kernel.logging_config import get_logger
from wms_kernel.models.movement_history import MovementHistoryModel

logger = get_logger("services.movement_recorder")


@runtime_checkable
class MovementRecorder(Protocol):
    """
    Protocol for recording stock movements.

    Implementors must not commit; they run inside the caller's transaction.
    """

    def record(self, movement: MovementRecord) -> None: ...


class SqlMovementRecorder:
    """Persists movements as MovementHistoryModel rows."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, movement: MovementRecord) -> None:
        sequence_number = self._next_sequence(
            movement.inventory_item_id, movement.tenant_id
        )
        self.session.add(MovementHistoryModel.from_record(movement, sequence_number))
        self.session.flush()
        logger.debug(
            "movement_recorded",
            extra={
                "inventory_item_id": str(movement.inventory_item_id),
                "sequence_number": sequence_number,
                "movement_type": movement.movement_type.value,
                "from_quantity": movement.from_quantity,
                "to_quantity": movement.to_quantity,
            },
        )

    def history_for_item(
        self, inventory_item_id: UUID, tenant_id: UUID
    ) -> list[MovementRecord]:
        """Movements of one item in the order they were recorded."""
        self.session.flush()
        stmt = (
            select(MovementHistoryModel)
            .where(
                MovementHistoryModel.tenant_id == tenant_id,
                MovementHistoryModel.item_id == inventory_item_id,
            )
            .order_by(MovementHistoryModel.sequence_number)
        )
        return [row.to_record() for row in self.session.scalars(stmt).all()]

    def _next_sequence(self, inventory_item_id: UUID, tenant_id: UUID) -> int:
        stmt = select(
            func.coalesce(func.max(MovementHistoryModel.sequence_number), 0)
        ).where(
            MovementHistoryModel.tenant_id == tenant_id,
            MovementHistoryModel.item_id == inventory_item_id,
        )
        return self.session.scalar(stmt) + 1


class NullMovementRecorder:
    """Discards movements. For callers that keep history elsewhere."""

    def record(self, movement: MovementRecord) -> None:
        return None
