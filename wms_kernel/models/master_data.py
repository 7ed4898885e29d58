"""
Module: wms_kernel.models.master_data
Responsibility: ORM models for the product and bin master data the kernel
    reads but does not own.  The kernel uses products for minimum stock
    levels and both tables for existence checks on receipt.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (tenant_id, sku) is unique for products.
    - minimum_stock_level, when set, is non-negative.
"""

from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wms_kernel.db.base import TrackedBase
from wms_kernel.db.types import BARCODE_LENGTH, NAME_LENGTH, SKU_LENGTH


class ProductModel(TrackedBase):
    """Product master record (read-only collaborator)."""

    __tablename__ = "wms_products"

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_wms_product_tenant_sku"),
        CheckConstraint(
            "minimum_stock_level IS NULL OR minimum_stock_level >= 0",
            name="ck_wms_product_min_stock_non_negative",
        ),
        Index("idx_wms_product_tenant", "tenant_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    sku: Mapped[str] = mapped_column(String(SKU_LENGTH), nullable=False)
    name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)

    # NULL = no minimum configured
    minimum_stock_level: Mapped[int | None] = mapped_column(nullable=True)
    reorder_point: Mapped[int | None] = mapped_column(nullable=True)

    has_expiry_date: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"


class BinModel(TrackedBase):
    """Storage bin (read-only collaborator)."""

    __tablename__ = "wms_bins"

    __table_args__ = (
        Index("idx_wms_bin_tenant", "tenant_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)
    barcode: Mapped[str | None] = mapped_column(
        String(BARCODE_LENGTH), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Bin {self.name}>"
