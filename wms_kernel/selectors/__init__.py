"""Read-only query selectors."""

from wms_kernel.selectors.stock_selector import StockQueryService

__all__ = ["StockQueryService"]
