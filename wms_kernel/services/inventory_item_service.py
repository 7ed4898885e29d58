"""
Module: wms_kernel.services.inventory_item_service
Responsibility: Inventory item lifecycle -- receiving stock into a bin,
    editing non-quantity details, and guarded deletion.
Architecture position: Kernel > Services.

Invariants enforced:
    - A new item references a product and a bin of the same tenant.
    - (tenant, product, bin, batch, lot) is unique, NULL batch/lot included.
    - Quantities are never edited here; they change only through
      ReservationService and AdjustmentService.
    - An item is deletable only when available and reserved are both zero.

Failure modes:
    - InvalidArgumentError for malformed quantities, labels, or cost.
    - ProductNotFoundError / BinNotFoundError on receipt.
    - DuplicateInventoryItemError, either from the pre-check or from an
      IntegrityError raised by the unique index on flush.  After the latter
      the session must be rolled back by the caller.
    - InventoryItemNotFoundError for missing or foreign items.
    - InventoryItemNotEmptyError from delete_item().
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wms_kernel.config import InventoryConfig
from wms_kernel.domain.clock import Clock, SystemClock
from wms_kernel.domain.validation import (
    is_empty,
    normalize_cost,
    normalize_label,
    require_non_negative_quantity,
)
from wms_kernel.domain.values import InventoryItemInfo, MovementRecord, MovementType
from wms_kernel.exceptions import (
    BinNotFoundError,
    DuplicateInventoryItemError,
    InvalidArgumentError,
    InventoryItemNotEmptyError,
    InventoryItemNotFoundError,
    ProductNotFoundError,
)
from wms_kernel.logging_config import get_logger
from wms_kernel.models.inventory_item import InventoryItemModel
from wms_kernel.models.master_data import BinModel, ProductModel
from wms_kernel.services.base import BaseService
from wms_kernel.services.movement_recorder import MovementRecorder, SqlMovementRecorder

logger = get_logger("services.inventory_item")

EDITABLE_FIELDS = frozenset(
    {"expiry_date", "batch_number", "lot_number", "received_date", "cost_per_unit"}
)
QUANTITY_FIELDS = frozenset({"available_quantity", "reserved_quantity"})


class InventoryItemService(BaseService[InventoryItemModel]):
    """
    Creates, edits, and deletes inventory items.

    All public methods return InventoryItemInfo DTOs, not ORM rows.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: InventoryConfig | None = None,
        recorder: MovementRecorder | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._config = config or InventoryConfig()
        self._recorder = recorder if recorder is not None else SqlMovementRecorder(session)

    # =========================================================================
    # Receiving
    # =========================================================================

    def receive_item(
        self,
        *,
        tenant_id: UUID,
        product_id: UUID,
        bin_id: UUID,
        available_quantity: int,
        actor_id: UUID,
        reserved_quantity: int = 0,
        expiry_date: date | None = None,
        batch_number: str | None = None,
        lot_number: str | None = None,
        received_date: date | None = None,
        cost_per_unit: Decimal | str | None = None,
    ) -> InventoryItemInfo:
        """
        Record stock received into a bin as a new inventory item.

        Raises:
            InvalidArgumentError: malformed quantity, label, or cost.
            ProductNotFoundError / BinNotFoundError: unknown for the tenant.
            DuplicateInventoryItemError: slot already exists.
        """
        require_non_negative_quantity(available_quantity, "available_quantity")
        require_non_negative_quantity(reserved_quantity, "reserved_quantity")
        max_len = self._config.label_max_length
        batch_number = normalize_label(batch_number, "batch_number", max_len)
        lot_number = normalize_label(lot_number, "lot_number", max_len)
        cost_per_unit = normalize_cost(cost_per_unit)

        self._require_product(product_id, tenant_id)
        self._require_bin(bin_id, tenant_id)

        if self._find_slot(tenant_id, product_id, bin_id, batch_number, lot_number):
            logger.warning(
                "receive_rejected_duplicate",
                extra={
                    "tenant_id": str(tenant_id),
                    "product_id": str(product_id),
                    "bin_id": str(bin_id),
                },
            )
            raise DuplicateInventoryItemError(
                str(product_id), str(bin_id), batch_number, lot_number
            )

        now = self._clock.now()
        item = InventoryItemModel(
            tenant_id=tenant_id,
            product_id=product_id,
            bin_id=bin_id,
            available_quantity=available_quantity,
            reserved_quantity=reserved_quantity,
            expiry_date=expiry_date,
            batch_number=batch_number,
            lot_number=lot_number,
            received_date=received_date,
            cost_per_unit=cost_per_unit,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(item)
        self._flush_slot(item)

        self._recorder.record(
            MovementRecord(
                tenant_id=tenant_id,
                inventory_item_id=item.id,
                movement_type=MovementType.RECEIPT,
                from_quantity=0,
                to_quantity=available_quantity,
                occurred_at=now,
                actor_id=actor_id,
            )
        )
        if reserved_quantity:
            # Units received already reserved
            self._recorder.record(
                MovementRecord(
                    tenant_id=tenant_id,
                    inventory_item_id=item.id,
                    movement_type=MovementType.RESERVATION,
                    from_quantity=0,
                    to_quantity=reserved_quantity,
                    occurred_at=now,
                    actor_id=actor_id,
                )
            )
        self.session.flush()

        logger.info(
            "inventory_item_received",
            extra={
                "inventory_item_id": str(item.id),
                "tenant_id": str(tenant_id),
                "product_id": str(product_id),
                "bin_id": str(bin_id),
                "available_quantity": available_quantity,
                "expiry_date": expiry_date,
            },
        )
        return item.to_dto()

    # =========================================================================
    # Detail edits
    # =========================================================================

    def update_item_details(
        self,
        inventory_item_id: UUID,
        tenant_id: UUID,
        *,
        actor_id: UUID,
        **changes: Any,
    ) -> InventoryItemInfo:
        """
        Edit expiry, batch, lot, received date, or cost of an item.

        Pass a field as None to clear it.  Quantity fields are rejected.
        """
        quantity_fields = QUANTITY_FIELDS & changes.keys()
        if quantity_fields:
            raise InvalidArgumentError(
                sorted(quantity_fields)[0],
                "quantities change only through reserve, release, or adjust",
            )
        unknown = changes.keys() - EDITABLE_FIELDS
        if unknown:
            raise InvalidArgumentError(sorted(unknown)[0], "not an editable field")

        max_len = self._config.label_max_length
        if "batch_number" in changes:
            changes["batch_number"] = normalize_label(
                changes["batch_number"], "batch_number", max_len
            )
        if "lot_number" in changes:
            changes["lot_number"] = normalize_label(
                changes["lot_number"], "lot_number", max_len
            )
        if "cost_per_unit" in changes:
            changes["cost_per_unit"] = normalize_cost(changes["cost_per_unit"])

        item = self._get_item(inventory_item_id, tenant_id)

        batch_number = changes.get("batch_number", item.batch_number)
        lot_number = changes.get("lot_number", item.lot_number)
        if (batch_number, lot_number) != (item.batch_number, item.lot_number):
            existing = self._find_slot(
                tenant_id, item.product_id, item.bin_id, batch_number, lot_number
            )
            if existing is not None and existing.id != item.id:
                raise DuplicateInventoryItemError(
                    str(item.product_id), str(item.bin_id), batch_number, lot_number
                )

        for field_name, value in changes.items():
            setattr(item, field_name, value)
        item.updated_at = self._clock.now()
        item.updated_by_id = actor_id
        self._flush_slot(item)

        logger.info(
            "inventory_item_updated",
            extra={
                "inventory_item_id": str(inventory_item_id),
                "tenant_id": str(tenant_id),
                "fields": sorted(changes.keys()),
            },
        )
        return item.to_dto()

    # =========================================================================
    # Deletion guard
    # =========================================================================

    def can_delete(self, inventory_item_id: UUID, tenant_id: UUID) -> bool:
        """True iff the item holds neither available nor reserved stock."""
        item = self._get_item(inventory_item_id, tenant_id)
        return is_empty(item.available_quantity, item.reserved_quantity)

    def delete_item(
        self,
        inventory_item_id: UUID,
        tenant_id: UUID,
        *,
        actor_id: UUID,
    ) -> None:
        """
        Delete an empty inventory item.

        Raises:
            InventoryItemNotFoundError: item missing for the tenant.
            InventoryItemNotEmptyError: item still holds stock.
        """
        item = self._get_item(inventory_item_id, tenant_id, for_update=True)
        if not is_empty(item.available_quantity, item.reserved_quantity):
            logger.warning(
                "delete_rejected_not_empty",
                extra={
                    "inventory_item_id": str(inventory_item_id),
                    "tenant_id": str(tenant_id),
                    "available_quantity": item.available_quantity,
                    "reserved_quantity": item.reserved_quantity,
                },
            )
            raise InventoryItemNotEmptyError(
                str(inventory_item_id), item.available_quantity, item.reserved_quantity
            )

        self.session.delete(item)
        self.session.flush()
        logger.info(
            "inventory_item_deleted",
            extra={
                "inventory_item_id": str(inventory_item_id),
                "tenant_id": str(tenant_id),
                "actor_id": str(actor_id),
            },
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_item(
        self,
        inventory_item_id: UUID,
        tenant_id: UUID,
        *,
        for_update: bool = False,
    ) -> InventoryItemModel:
        stmt = select(InventoryItemModel).where(
            InventoryItemModel.id == inventory_item_id,
            InventoryItemModel.tenant_id == tenant_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        item = self.session.scalars(stmt).one_or_none()
        if item is None:
            raise InventoryItemNotFoundError(str(inventory_item_id))
        return item

    def _require_product(self, product_id: UUID, tenant_id: UUID) -> None:
        stmt = select(ProductModel.id).where(
            ProductModel.id == product_id,
            ProductModel.tenant_id == tenant_id,
        )
        if self.session.scalars(stmt).one_or_none() is None:
            raise ProductNotFoundError(str(product_id))

    def _require_bin(self, bin_id: UUID, tenant_id: UUID) -> None:
        stmt = select(BinModel.id).where(
            BinModel.id == bin_id,
            BinModel.tenant_id == tenant_id,
        )
        if self.session.scalars(stmt).one_or_none() is None:
            raise BinNotFoundError(str(bin_id))

    def _find_slot(
        self,
        tenant_id: UUID,
        product_id: UUID,
        bin_id: UUID,
        batch_number: str | None,
        lot_number: str | None,
    ) -> InventoryItemModel | None:
        """Find the item for a slot, comparing NULL batch/lot as equal."""
        stmt = select(InventoryItemModel).where(
            InventoryItemModel.tenant_id == tenant_id,
            InventoryItemModel.product_id == product_id,
            InventoryItemModel.bin_id == bin_id,
            InventoryItemModel.batch_number.is_not_distinct_from(batch_number),
            InventoryItemModel.lot_number.is_not_distinct_from(lot_number),
        )
        return self.session.scalars(stmt).first()

    def _flush_slot(self, item: InventoryItemModel) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            logger.warning(
                "inventory_item_slot_conflict",
                extra={
                    "tenant_id": str(item.tenant_id),
                    "product_id": str(item.product_id),
                    "bin_id": str(item.bin_id),
                },
            )
            raise DuplicateInventoryItemError(
                str(item.product_id),
                str(item.bin_id),
                item.batch_number,
                item.lot_number,
            ) from exc
