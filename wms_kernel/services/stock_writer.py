"""
Module: wms_kernel.services.stock_writer
Responsibility: The single write path for inventory item quantities.
    Loads rows for mutation and applies compare-and-set quantity updates.
Architecture position: Kernel > Services.  Used by ReservationService and
    AdjustmentService; nothing else issues UPDATEs on quantity columns.

Invariants enforced:
    - Compare-and-set: an UPDATE only matches when both quantities still
      equal the values the caller planned against.  Zero matched rows means
      another writer got there first.
    - Non-negativity: new quantities are checked before the statement is
      issued (CHECK constraints remain as a backstop).
    - Row locks: load_for_update() uses SELECT ... FOR UPDATE where the
      dialect supports it.

Failure modes:
    - ConcurrentModificationError when the compare-and-set matches no row.
    - InventoryItemNotFoundError from load_for_update() for missing or
      foreign rows.
    - ValueError if asked to write a negative quantity (caller bug).
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wms_kernel.domain.clock import Clock
from wms_kernel.exceptions import (
    ConcurrentModificationError,
    InventoryItemNotFoundError,
)
from wms_kernel.logging_config import get_logger
from wms_kernel.models.inventory_item import InventoryItemModel

logger = get_logger("services.stock_writer")


class StockWriter:
    """
    Compare-and-set writer for inventory item quantities.

    Contract:
        Flush-only; participates in the caller's transaction.
    """

    def __init__(self, session: Session, clock: Clock):
        self.session = session
        self._clock = clock

    def load_for_update(
        self, inventory_item_id: UUID, tenant_id: UUID
    ) -> InventoryItemModel:
        """Load and lock one item, refreshing any stale identity-map copy."""
        stmt = (
            select(InventoryItemModel)
            .where(
                InventoryItemModel.id == inventory_item_id,
                InventoryItemModel.tenant_id == tenant_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        item = self.session.scalars(stmt).one_or_none()
        if item is None:
            raise InventoryItemNotFoundError(str(inventory_item_id))
        return item

    def load_product_for_update(
        self, product_id: UUID, tenant_id: UUID
    ) -> list[InventoryItemModel]:
        """Load and lock every item of a product that has available stock."""
        stmt = (
            select(InventoryItemModel)
            .where(
                InventoryItemModel.tenant_id == tenant_id,
                InventoryItemModel.product_id == product_id,
                InventoryItemModel.available_quantity > 0,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.session.scalars(stmt).all())

    def write(
        self,
        inventory_item_id: UUID,
        tenant_id: UUID,
        *,
        expected_available: int,
        expected_reserved: int,
        new_available: int,
        new_reserved: int,
        actor_id: UUID | None = None,
    ) -> InventoryItemModel:
        """
        Conditionally set both quantities of one item.

        Returns the refreshed row.

        Raises:
            ConcurrentModificationError: If the row no longer holds the
                expected quantities (or no longer exists).
        """
        if new_available < 0 or new_reserved < 0:
            raise ValueError(
                f"Refusing negative quantities for item {inventory_item_id}: "
                f"available={new_available}, reserved={new_reserved}"
            )

        values = {
            "available_quantity": new_available,
            "reserved_quantity": new_reserved,
            "updated_at": self._clock.now(),
        }
        if actor_id is not None:
            values["updated_by_id"] = actor_id

        stmt = (
            update(InventoryItemModel)
            .where(
                InventoryItemModel.id == inventory_item_id,
                InventoryItemModel.tenant_id == tenant_id,
                InventoryItemModel.available_quantity == expected_available,
                InventoryItemModel.reserved_quantity == expected_reserved,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)

        if result.rowcount != 1:
            logger.warning(
                "stock_write_conflict",
                extra={
                    "inventory_item_id": str(inventory_item_id),
                    "expected_available": expected_available,
                    "expected_reserved": expected_reserved,
                },
            )
            raise ConcurrentModificationError("InventoryItem", str(inventory_item_id))

        logger.debug(
            "stock_written",
            extra={
                "inventory_item_id": str(inventory_item_id),
                "available_quantity": new_available,
                "reserved_quantity": new_reserved,
            },
        )
        return self.session.get(
            InventoryItemModel, inventory_item_id, populate_existing=True
        )
