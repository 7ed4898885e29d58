"""
Pure domain layer.

This module contains value objects and allocation logic with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (except SystemClock)

All domain objects are immutable and deterministic.
"""

from wms_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from wms_kernel.domain.fefo import FefoPlan, PlannedTake, StockSlot, fefo_order, plan_fefo
from wms_kernel.domain.values import (
    AdjustmentDirection,
    InventoryItemInfo,
    LowStockProduct,
    MovementRecord,
    MovementType,
    ReservationLine,
    ReservationResult,
    StockTotals,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "StockSlot",
    "PlannedTake",
    "FefoPlan",
    "fefo_order",
    "plan_fefo",
    "AdjustmentDirection",
    "MovementType",
    "StockTotals",
    "ReservationLine",
    "ReservationResult",
    "MovementRecord",
    "InventoryItemInfo",
    "LowStockProduct",
]
