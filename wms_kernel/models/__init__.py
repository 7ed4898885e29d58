"""ORM models for the WMS kernel."""

from wms_kernel.models.inventory_item import InventoryItemModel
from wms_kernel.models.master_data import BinModel, ProductModel
from wms_kernel.models.movement_history import MovementHistoryModel

__all__ = [
    "InventoryItemModel",
    "ProductModel",
    "BinModel",
    "MovementHistoryModel",
]
