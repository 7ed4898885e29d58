"""
Module: wms_kernel.selectors.stock_selector
Responsibility: Read-only stock queries -- per-product totals, low-stock
    detection, expiring-soon listings, point lookups, and the FEFO-ordered
    pick view of a product.
Architecture position: Kernel > Selectors.  May import from models/, domain/,
    and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Every query is filtered by tenant_id; rows of other tenants are
      invisible (a foreign item id behaves exactly like a missing one).
    - Totals are computed from rows at query time; there are no stored
      per-product balances.
    - Expiry windows are computed from the injected Clock.

Failure modes:
    - InvalidArgumentError for a negative or out-of-range expiry window.
    - InventoryItemNotFoundError from get_item().
"""

from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wms_kernel.config import InventoryConfig
from wms_kernel.domain.clock import Clock, SystemClock
from wms_kernel.domain.fefo import StockSlot, fefo_sort_key
from wms_kernel.domain.validation import require_expiry_window
from wms_kernel.domain.values import InventoryItemInfo, LowStockProduct, StockTotals
from wms_kernel.exceptions import InventoryItemNotFoundError
from wms_kernel.models.inventory_item import InventoryItemModel
from wms_kernel.models.master_data import ProductModel
from wms_kernel.selectors.base import BaseSelector


class StockQueryService(BaseSelector[InventoryItemModel]):
    """
    Read-only stock queries scoped by tenant.

    Contract:
        Returns StockTotals / InventoryItemInfo / LowStockProduct DTOs,
        never ORM rows.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: InventoryConfig | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._config = config or InventoryConfig()

    def total_stock_for_product(self, product_id: UUID, tenant_id: UUID) -> StockTotals:
        """
        Sum available and reserved quantities across all bins.

        A product with no inventory rows yields zero totals, not an error.
        """
        stmt = select(
            func.coalesce(func.sum(InventoryItemModel.available_quantity), 0),
            func.coalesce(func.sum(InventoryItemModel.reserved_quantity), 0),
        ).where(
            InventoryItemModel.tenant_id == tenant_id,
            InventoryItemModel.product_id == product_id,
        )
        available, reserved = self.session.execute(stmt).one()
        return StockTotals(
            total_available=int(available),
            total_reserved=int(reserved),
        )

    def is_low_stock(self, product_id: UUID, tenant_id: UUID) -> bool:
        """
        True iff total available stock is at or below the product minimum.

        A product that does not exist for the tenant, or has no minimum
        configured, is never low-stock.
        """
        product = self._get_product(product_id, tenant_id)
        if product is None or product.minimum_stock_level is None:
            return False
        totals = self.total_stock_for_product(product_id, tenant_id)
        return totals.total_available <= product.minimum_stock_level

    def low_stock_products(self, tenant_id: UUID) -> list[LowStockProduct]:
        """All active products with a configured minimum that are at or below it."""
        sums = (
            select(
                InventoryItemModel.product_id.label("product_id"),
                func.sum(InventoryItemModel.available_quantity).label("available"),
                func.sum(InventoryItemModel.reserved_quantity).label("reserved"),
            )
            .where(InventoryItemModel.tenant_id == tenant_id)
            .group_by(InventoryItemModel.product_id)
            .subquery()
        )
        stmt = (
            select(ProductModel, sums.c.available, sums.c.reserved)
            .outerjoin(sums, sums.c.product_id == ProductModel.id)
            .where(
                ProductModel.tenant_id == tenant_id,
                ProductModel.is_active.is_(True),
                ProductModel.minimum_stock_level.is_not(None),
            )
            .order_by(ProductModel.sku)
        )

        results: list[LowStockProduct] = []
        for product, available, reserved in self.session.execute(stmt).all():
            totals = StockTotals(
                total_available=int(available or 0),
                total_reserved=int(reserved or 0),
            )
            if totals.total_available <= product.minimum_stock_level:
                results.append(
                    LowStockProduct(
                        product_id=product.id,
                        sku=product.sku,
                        name=product.name,
                        minimum_stock_level=product.minimum_stock_level,
                        totals=totals,
                    )
                )
        return results

    def items_expiring_within(
        self,
        tenant_id: UUID,
        days: int | None = None,
    ) -> list[InventoryItemInfo]:
        """
        Items with stock on hand whose expiry date falls on or before
        today + days.  Already-expired items are included; items without an
        expiry date never are.  Ordered by (expiry_date, id).
        """
        if days is None:
            days = self._config.default_expiry_window_days
        days = require_expiry_window(days, self._config.max_expiry_window_days)
        cutoff = self._clock.today() + timedelta(days=days)

        stmt = (
            select(InventoryItemModel)
            .where(
                InventoryItemModel.tenant_id == tenant_id,
                InventoryItemModel.expiry_date.is_not(None),
                InventoryItemModel.expiry_date <= cutoff,
                InventoryItemModel.available_quantity > 0,
            )
            .order_by(InventoryItemModel.expiry_date, InventoryItemModel.id)
        )
        return [item.to_dto() for item in self.session.scalars(stmt).all()]

    def get_item(self, inventory_item_id: UUID, tenant_id: UUID) -> InventoryItemInfo:
        """
        Get one inventory item.

        Raises:
            InventoryItemNotFoundError: If absent or owned by another tenant.
        """
        stmt = select(InventoryItemModel).where(
            InventoryItemModel.id == inventory_item_id,
            InventoryItemModel.tenant_id == tenant_id,
        )
        item = self.session.scalars(stmt).one_or_none()
        if item is None:
            raise InventoryItemNotFoundError(str(inventory_item_id))
        return item.to_dto()

    def items_for_product(
        self,
        product_id: UUID,
        tenant_id: UUID,
        *,
        available_only: bool = False,
    ) -> list[InventoryItemInfo]:
        """All rows for a product in FEFO order (the pick-list view)."""
        stmt = select(InventoryItemModel).where(
            InventoryItemModel.tenant_id == tenant_id,
            InventoryItemModel.product_id == product_id,
        )
        if available_only:
            stmt = stmt.where(InventoryItemModel.available_quantity > 0)
        items = [item.to_dto() for item in self.session.scalars(stmt).all()]
        items.sort(key=lambda info: fefo_sort_key(StockSlot.from_item(info)))
        return items

    def _get_product(self, product_id: UUID, tenant_id: UUID) -> ProductModel | None:
        stmt = select(ProductModel).where(
            ProductModel.id == product_id,
            ProductModel.tenant_id == tenant_id,
        )
        return self.session.scalars(stmt).one_or_none()
