"""Write services for the WMS kernel. All services flush; callers commit."""

from wms_kernel.services.adjustment_service import AdjustmentService
from wms_kernel.services.inventory_item_service import InventoryItemService
from wms_kernel.services.movement_recorder import (
    MovementRecorder,
    NullMovementRecorder,
    SqlMovementRecorder,
)
from wms_kernel.services.reservation_service import ReservationService
from wms_kernel.services.stock_writer import StockWriter

__all__ = [
    "AdjustmentService",
    "InventoryItemService",
    "ReservationService",
    "StockWriter",
    "MovementRecorder",
    "SqlMovementRecorder",
    "NullMovementRecorder",
]
