"""
wms_kernel.domain.fefo -- First-Expired-First-Out allocation planning.

Responsibility:
    Order candidate inventory items by expiry and compute how many units
    to take from each to satisfy a requested quantity.  The planner only
    computes; it never writes.  ReservationService applies the plan.

Architecture position:
    Kernel > Domain -- pure calculation, zero I/O.

Invariants enforced:
    - Ordering: expiry ascending, no-expiry last; ties broken by received
      date (none last) and then item id, so plans are deterministic.
    - Greedy: each take is min(remaining, slot.available); no slot is
      skipped while it still has stock and demand remains.
    - A plan is either fully satisfied or carries the shortfall; an
      unsatisfied plan has no takes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from uuid import UUID


@dataclass(frozen=True, slots=True)
class StockSlot:
    """Snapshot of one inventory item as seen by the planner."""

    inventory_item_id: UUID
    available_quantity: int
    reserved_quantity: int
    expiry_date: date | None = None
    received_date: date | None = None

    @classmethod
    def from_item(cls, item) -> "StockSlot":
        """Build a slot from anything shaped like an inventory item row."""
        return cls(
            inventory_item_id=item.id,
            available_quantity=item.available_quantity,
            reserved_quantity=item.reserved_quantity,
            expiry_date=item.expiry_date,
            received_date=item.received_date,
        )


@dataclass(frozen=True, slots=True)
class PlannedTake:
    slot: StockSlot
    quantity: int


@dataclass(frozen=True, slots=True)
class FefoPlan:
    """Result of planning a FEFO reservation."""

    requested: int
    available: int
    takes: tuple[PlannedTake, ...]

    @property
    def is_satisfied(self) -> bool:
        return self.available >= self.requested

    @property
    def shortfall(self) -> int:
        return max(self.requested - self.available, 0)


def fefo_sort_key(slot: StockSlot) -> tuple:
    """Sort key putting the earliest expiry first and no-expiry last."""
    return (
        slot.expiry_date is None,
        slot.expiry_date or date.max,
        slot.received_date is None,
        slot.received_date or date.max,
        str(slot.inventory_item_id),
    )


def fefo_order(
    slots: Iterable[StockSlot],
    *,
    expired_before: date | None = None,
) -> list[StockSlot]:
    """
    Return candidate slots in FEFO order.

    Slots with no available stock are dropped.  When ``expired_before`` is
    given, slots whose expiry date is earlier than it are dropped too.
    """
    candidates = [
        s for s in slots
        if s.available_quantity > 0
        and not (
            expired_before is not None
            and s.expiry_date is not None
            and s.expiry_date < expired_before
        )
    ]
    candidates.sort(key=fefo_sort_key)
    return candidates


def plan_fefo(
    slots: Iterable[StockSlot],
    quantity: int,
    *,
    expired_before: date | None = None,
) -> FefoPlan:
    """
    Plan a greedy FEFO reservation of ``quantity`` units.

    The total available across candidates is checked first.  If it does not
    cover the demand, the plan is returned unsatisfied with no takes.
    """
    if quantity <= 0:
        raise ValueError(f"quantity must be positive, got {quantity}")

    ordered = fefo_order(slots, expired_before=expired_before)
    total_available = sum(s.available_quantity for s in ordered)

    if total_available < quantity:
        return FefoPlan(requested=quantity, available=total_available, takes=())

    takes: list[PlannedTake] = []
    remaining = quantity
    for slot in ordered:
        if remaining == 0:
            break
        take = min(remaining, slot.available_quantity)
        takes.append(PlannedTake(slot=slot, quantity=take))
        remaining -= take

    return FefoPlan(
        requested=quantity,
        available=total_available,
        takes=tuple(takes),
    )
