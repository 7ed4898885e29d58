"""
wms_kernel.domain.values -- Immutable value objects for inventory operations.

Responsibility:
    Define the transient results that cross the service boundary: stock
    totals, reservation lines and results, movement records, and the
    InventoryItemInfo DTO returned instead of ORM rows.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  MUST NOT import ORM models.

Invariants enforced:
    - StockTotals components are never negative.
    - ReservationLine quantity is positive.
    - ReservationResult is non-empty and its total equals the sum of lines.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class AdjustmentDirection(str, Enum):
    """Direction of a manual stock correction."""

    INCREASE = "increase"
    DECREASE = "decrease"


class MovementType(str, Enum):
    """Kind of stock movement recorded in movement history."""

    RECEIPT = "receipt"
    RESERVATION = "reservation"
    RELEASE = "release"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True, slots=True)
class StockTotals:
    """Aggregate available and reserved quantities for one product."""

    total_available: int = 0
    total_reserved: int = 0

    def __post_init__(self) -> None:
        if self.total_available < 0 or self.total_reserved < 0:
            raise ValueError(
                f"Stock totals cannot be negative: available={self.total_available}, "
                f"reserved={self.total_reserved}"
            )

    @property
    def total_on_hand(self) -> int:
        return self.total_available + self.total_reserved


@dataclass(frozen=True, slots=True)
class ReservationLine:
    """Quantity taken from a single inventory item by a reservation."""

    inventory_item_id: UUID
    quantity_reserved: int

    def __post_init__(self) -> None:
        if self.quantity_reserved <= 0:
            raise ValueError(
                f"quantity_reserved must be positive, got {self.quantity_reserved}"
            )


@dataclass(frozen=True, slots=True)
class ReservationResult:
    """
    Ordered outcome of a FEFO reservation.

    Lines are in the order the items were consumed (earliest expiry first).
    """

    product_id: UUID
    lines: tuple[ReservationLine, ...]

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("ReservationResult requires at least one line")

    @property
    def total_reserved(self) -> int:
        return sum(line.quantity_reserved for line in self.lines)

    @property
    def item_ids(self) -> tuple[UUID, ...]:
        return tuple(line.inventory_item_id for line in self.lines)


@dataclass(frozen=True, slots=True)
class MovementRecord:
    """
    One stock movement, as handed to a MovementRecorder.

    from_quantity/to_quantity describe the quantity column the movement
    affected: available for receipts and adjustments, reserved for
    reservations and releases.
    """

    tenant_id: UUID
    inventory_item_id: UUID
    movement_type: MovementType
    from_quantity: int
    to_quantity: int
    occurred_at: datetime
    actor_id: UUID | None = None
    reason: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None

    @property
    def quantity_changed(self) -> int:
        return self.to_quantity - self.from_quantity


@dataclass(frozen=True, slots=True)
class InventoryItemInfo:
    """Read-only view of an inventory item row."""

    id: UUID
    tenant_id: UUID
    product_id: UUID
    bin_id: UUID
    available_quantity: int
    reserved_quantity: int
    expiry_date: date | None = None
    batch_number: str | None = None
    lot_number: str | None = None
    received_date: date | None = None
    cost_per_unit: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_quantity(self) -> int:
        return self.available_quantity + self.reserved_quantity

    @property
    def is_empty(self) -> bool:
        return self.available_quantity == 0 and self.reserved_quantity == 0


@dataclass(frozen=True, slots=True)
class LowStockProduct:
    """A product whose total available stock is at or below its minimum."""

    product_id: UUID
    sku: str
    name: str
    minimum_stock_level: int
    totals: StockTotals = field(default_factory=StockTotals)

    @property
    def deficit(self) -> int:
        return max(self.minimum_stock_level - self.totals.total_available, 0)
