"""
Module: wms_kernel.models.movement_history
Responsibility: Append-only audit rows for stock movements.  Written by
    SqlMovementRecorder for every receipt, reservation, release, and
    adjustment.
Architecture position: Kernel > Models.  May import from db/ and
    domain/values only.

Invariants enforced:
    - quantity_changed == to_quantity - from_quantity.
    - Rows are never updated; there is no updated_at column.
    - sequence_number counts 1, 2, 3, ... per item and is the history order.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wms_kernel.db.base import Base, UTCDateTime
from wms_kernel.db.types import (
    MOVEMENT_TYPE_LENGTH,
    REFERENCE_ID_LENGTH,
    REFERENCE_TYPE_LENGTH,
)
from wms_kernel.domain.values import MovementRecord, MovementType


class MovementHistoryModel(Base):
    """One recorded stock movement."""

    __tablename__ = "wms_movement_history"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "item_id", "sequence_number",
            name="uq_wms_movement_item_sequence",
        ),
        Index("idx_wms_movement_item", "tenant_id", "item_id", "created_at"),
        Index("idx_wms_movement_type", "tenant_id", "movement_type"),
        Index("idx_wms_movement_reference", "reference_type", "reference_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    # NULL for system-initiated movements
    user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    item_id: Mapped[UUID] = mapped_column(nullable=False)
    sequence_number: Mapped[int] = mapped_column(nullable=False)

    movement_type: Mapped[str] = mapped_column(
        String(MOVEMENT_TYPE_LENGTH), nullable=False
    )
    from_quantity: Mapped[int] = mapped_column(nullable=False)
    to_quantity: Mapped[int] = mapped_column(nullable=False)
    quantity_changed: Mapped[int] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_type: Mapped[str | None] = mapped_column(
        String(REFERENCE_TYPE_LENGTH), nullable=True
    )
    reference_id: Mapped[str | None] = mapped_column(
        String(REFERENCE_ID_LENGTH), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    @classmethod
    def from_record(
        cls, record: MovementRecord, sequence_number: int
    ) -> "MovementHistoryModel":
        return cls(
            tenant_id=record.tenant_id,
            user_id=record.actor_id,
            item_id=record.inventory_item_id,
            sequence_number=sequence_number,
            movement_type=record.movement_type.value,
            from_quantity=record.from_quantity,
            to_quantity=record.to_quantity,
            quantity_changed=record.quantity_changed,
            reason=record.reason,
            reference_type=record.reference_type,
            reference_id=record.reference_id,
            created_at=record.occurred_at,
        )

    def to_record(self) -> MovementRecord:
        return MovementRecord(
            tenant_id=self.tenant_id,
            inventory_item_id=self.item_id,
            movement_type=MovementType(self.movement_type),
            from_quantity=self.from_quantity,
            to_quantity=self.to_quantity,
            occurred_at=self.created_at,
            actor_id=self.user_id,
            reason=self.reason,
            reference_type=self.reference_type,
            reference_id=self.reference_id,
        )

    def __repr__(self) -> str:
        return (
            f"<Movement #{self.sequence_number} {self.movement_type} item={self.item_id} "
            f"{self.from_quantity}->{self.to_quantity}>"
        )
