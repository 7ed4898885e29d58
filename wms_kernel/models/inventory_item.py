"""
Module: wms_kernel.models.inventory_item
Responsibility: ORM persistence for inventory items -- one row per product
    held in one bin under one batch/lot combination, carrying the available
    and reserved quantities that reservations and adjustments move.
Architecture position: Kernel > Models.  May import from db/ and domain/values
    only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - available_quantity >= 0 and reserved_quantity >= 0 (CHECK constraints;
      services validate before writing so the constraints are a backstop).
    - (tenant_id, product_id, bin_id, batch_number, lot_number) is unique with
      NULL batch/lot treated as equal.  Enforced by a unique index over
      COALESCE(batch_number, '') / COALESCE(lot_number, ''); blank labels are
      normalized to NULL before writing so the two spellings cannot coexist.
    - (tenant_id, product_id, expiry_date) index supports FEFO candidate scans.

Failure modes:
    - IntegrityError on a negative quantity or a duplicate slot.  Services
      translate the latter to DuplicateInventoryItemError.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wms_kernel.db.base import TrackedBase
from wms_kernel.db.types import TRACKING_LABEL_LENGTH
from wms_kernel.domain.values import InventoryItemInfo


class InventoryItemModel(TrackedBase):
    """
    Persistent stock record for a product in a bin.

    Contract:
        Quantities change only through StockWriter (reserve, release,
        adjust).  Detail fields (expiry, batch, lot, received date, cost)
        are edited through InventoryItemService.

    Non-goals:
        - No foreign keys to products/bins; existence is checked by the
          service on receipt, matching how the surrounding WMS owns those
          tables.
    """

    __tablename__ = "wms_inventory_items"

    __table_args__ = (
        CheckConstraint(
            "available_quantity >= 0", name="ck_wms_inv_item_available_non_negative"
        ),
        CheckConstraint(
            "reserved_quantity >= 0", name="ck_wms_inv_item_reserved_non_negative"
        ),
        CheckConstraint(
            "cost_per_unit IS NULL OR cost_per_unit >= 0",
            name="ck_wms_inv_item_cost_non_negative",
        ),
        # Query: FEFO candidates for a product
        Index("idx_wms_inv_item_product_expiry", "tenant_id", "product_id", "expiry_date"),
        # Query: expiring-soon scans
        Index("idx_wms_inv_item_tenant_expiry", "tenant_id", "expiry_date"),
        Index("idx_wms_inv_item_bin", "tenant_id", "bin_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    product_id: Mapped[UUID] = mapped_column(nullable=False)
    bin_id: Mapped[UUID] = mapped_column(nullable=False)

    # INVARIANT: never negative
    available_quantity: Mapped[int] = mapped_column(nullable=False)
    # INVARIANT: never negative
    reserved_quantity: Mapped[int] = mapped_column(nullable=False, default=0)

    # NULL = never expires; sorts last in FEFO
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    batch_number: Mapped[str | None] = mapped_column(
        String(TRACKING_LABEL_LENGTH), nullable=True
    )
    lot_number: Mapped[str | None] = mapped_column(
        String(TRACKING_LABEL_LENGTH), nullable=True
    )
    received_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    cost_per_unit: Mapped[Decimal | None] = mapped_column(nullable=True)

    def to_dto(self) -> InventoryItemInfo:
        """Convert ORM model to frozen InventoryItemInfo DTO."""
        return InventoryItemInfo(
            id=self.id,
            tenant_id=self.tenant_id,
            product_id=self.product_id,
            bin_id=self.bin_id,
            available_quantity=self.available_quantity,
            reserved_quantity=self.reserved_quantity,
            expiry_date=self.expiry_date,
            batch_number=self.batch_number,
            lot_number=self.lot_number,
            received_date=self.received_date,
            cost_per_unit=self.cost_per_unit,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return (
            f"<InventoryItem {self.id}: product={self.product_id} bin={self.bin_id} "
            f"available={self.available_quantity} reserved={self.reserved_quantity}>"
        )


# Unique slot with NULL batch/lot compared as equal
Index(
    "uq_wms_inv_item_slot",
    InventoryItemModel.tenant_id,
    InventoryItemModel.product_id,
    InventoryItemModel.bin_id,
    func.coalesce(InventoryItemModel.batch_number, ""),
    func.coalesce(InventoryItemModel.lot_number, ""),
    unique=True,
)
