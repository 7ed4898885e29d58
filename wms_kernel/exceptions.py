"""
Typed Exception Hierarchy for the WMS Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Stock operations fail for a small number of well-defined reasons, and callers
(HTTP handlers, pick-list generators, batch jobs) react differently to each
of them. Matching on message text is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (quantities, ids) as attributes

Example:
    try:
        result = reservations.reserve(product_id, 8, tenant_id)
    except InsufficientStockError as e:
        api_response(code=e.code, requested=e.requested, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from WmsKernelError:

    WmsKernelError (base)
    |
    +-- InvalidArgumentError
    |   +-- ReleaseExceedsReservedError
    |
    +-- NotFoundError
    |   +-- InventoryItemNotFoundError
    |   +-- ProductNotFoundError
    |   +-- BinNotFoundError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |
    +-- InventoryItemConflictError
    |   +-- DuplicateInventoryItemError
    |   +-- InventoryItemNotEmptyError
    |
    +-- ConcurrencyError
        +-- ConcurrentModificationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Argument        | INVALID_ARGUMENT            | Non-positive quantity, bad reason, etc.
                | RELEASE_EXCEEDS_RESERVED    | Release quantity > reserved quantity
----------------|-----------------------------|-----------------------------------------
Lookup          | INVENTORY_ITEM_NOT_FOUND    | Item id unknown for the tenant
                | PRODUCT_NOT_FOUND           | Product id unknown for the tenant
                | BIN_NOT_FOUND               | Bin id unknown for the tenant
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Reserve/decrease would go negative
----------------|-----------------------------|-----------------------------------------
Item            | DUPLICATE_INVENTORY_ITEM    | Same product/bin/batch/lot already held
                | INVENTORY_ITEM_NOT_EMPTY    | Delete attempted with stock remaining
----------------|-----------------------------|-----------------------------------------
Concurrency     | CONCURRENT_MODIFICATION     | Row changed between read and write

===============================================================================
DESIGN DECISIONS
===============================================================================

1. ReleaseExceedsReservedError is an InvalidArgumentError.
   Releasing more than is reserved is a caller mistake about a single row,
   not a stock shortage, so it is caught together with other argument errors.
   It still carries requested/reserved/shortfall so callers can report the
   same detail an InsufficientStockError would.

2. ConcurrencyError is never retried inside the kernel.
   The caller owns the transaction and decides whether to retry.

===============================================================================
"""


class WmsKernelError(Exception):
    """
    Base exception for all WMS kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "WMS_KERNEL_ERROR"


# Argument exceptions


class InvalidArgumentError(WmsKernelError):
    """A caller-supplied argument is structurally invalid."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class ReleaseExceedsReservedError(InvalidArgumentError):
    """Attempted to release more units than the row has reserved."""

    code: str = "RELEASE_EXCEEDS_RESERVED"

    def __init__(self, inventory_item_id: str, requested: int, reserved: int):
        self.inventory_item_id = inventory_item_id
        self.requested = requested
        self.reserved = reserved
        self.shortfall = requested - reserved
        super().__init__(
            "quantity",
            f"cannot release {requested} units from item {inventory_item_id}, "
            f"only {reserved} reserved",
        )


# Lookup exceptions


class NotFoundError(WmsKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class InventoryItemNotFoundError(NotFoundError):
    """Inventory item does not exist for the tenant."""

    code: str = "INVENTORY_ITEM_NOT_FOUND"

    def __init__(self, inventory_item_id: str):
        self.inventory_item_id = inventory_item_id
        super().__init__(f"Inventory item not found: {inventory_item_id}")


class ProductNotFoundError(NotFoundError):
    """Product does not exist for the tenant."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class BinNotFoundError(NotFoundError):
    """Bin does not exist for the tenant."""

    code: str = "BIN_NOT_FOUND"

    def __init__(self, bin_id: str):
        self.bin_id = bin_id
        super().__init__(f"Bin not found: {bin_id}")


# Stock exceptions


class StockError(WmsKernelError):
    """Base exception for stock-level errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """Not enough available stock to satisfy a reservation or decrease."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        subject_id: str,
        requested: int,
        available: int,
    ):
        self.subject_id = subject_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient stock for {subject_id}: requested {requested}, "
            f"available {available} (short by {self.shortfall})"
        )


# Item lifecycle exceptions


class InventoryItemConflictError(WmsKernelError):
    """Base exception for item lifecycle conflicts."""

    code: str = "INVENTORY_ITEM_CONFLICT"


class DuplicateInventoryItemError(InventoryItemConflictError):
    """A row for this product/bin/batch/lot combination already exists."""

    code: str = "DUPLICATE_INVENTORY_ITEM"

    def __init__(
        self,
        product_id: str,
        bin_id: str,
        batch_number: str | None,
        lot_number: str | None,
    ):
        self.product_id = product_id
        self.bin_id = bin_id
        self.batch_number = batch_number
        self.lot_number = lot_number
        super().__init__(
            f"Inventory item already exists for product {product_id} in bin "
            f"{bin_id} (batch={batch_number!r}, lot={lot_number!r})"
        )


class InventoryItemNotEmptyError(InventoryItemConflictError):
    """Cannot delete an inventory item that still holds stock."""

    code: str = "INVENTORY_ITEM_NOT_EMPTY"

    def __init__(self, inventory_item_id: str, available: int, reserved: int):
        self.inventory_item_id = inventory_item_id
        self.available = available
        self.reserved = reserved
        super().__init__(
            f"Cannot delete inventory item {inventory_item_id} with remaining "
            f"stock (available={available}, reserved={reserved})"
        )


# Concurrency exceptions


class ConcurrencyError(WmsKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """Row quantities changed between read and conditional write."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Concurrent modification on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
