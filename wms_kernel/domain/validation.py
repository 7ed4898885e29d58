"""
wms_kernel.domain.validation -- Structural validation for inventory requests.

Responsibility:
    Pure checks on caller-supplied values: quantity ranges, label and reason
    lengths, cost sign, expiry window bounds.  Existence and uniqueness
    checks need the database and live in the services.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Failure modes:
    - InvalidArgumentError naming the offending field.
"""

from decimal import Decimal, InvalidOperation

from wms_kernel.exceptions import InvalidArgumentError
from wms_kernel.domain.values import AdjustmentDirection


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def require_positive_quantity(value, field: str = "quantity") -> int:
    if not _is_int(value):
        raise InvalidArgumentError(field, f"must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidArgumentError(field, f"must be greater than 0, got {value}")
    return value


def require_non_negative_quantity(value, field: str = "quantity") -> int:
    if not _is_int(value):
        raise InvalidArgumentError(field, f"must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(field, f"cannot be negative, got {value}")
    return value


def normalize_label(value: str | None, field: str, max_length: int) -> str | None:
    """Strip a batch/lot label; blank labels become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError(field, f"must be a string, got {value!r}")
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise InvalidArgumentError(
            field, f"must be at most {max_length} characters, got {len(value)}"
        )
    return value


def normalize_reason(value, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError("reason", "is required")
    value = value.strip()
    if len(value) > max_length:
        raise InvalidArgumentError(
            "reason", f"must be at most {max_length} characters, got {len(value)}"
        )
    return value


def normalize_cost(value) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, float):
        value = str(value)
    try:
        cost = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError("cost_per_unit", f"not a number: {value!r}")
    if not cost.is_finite():
        raise InvalidArgumentError("cost_per_unit", f"not a number: {value!r}")
    if cost < 0:
        raise InvalidArgumentError("cost_per_unit", f"cannot be negative, got {cost}")
    return cost


def parse_direction(value) -> AdjustmentDirection:
    try:
        return AdjustmentDirection(value)
    except ValueError:
        raise InvalidArgumentError(
            "direction",
            f"must be one of {[d.value for d in AdjustmentDirection]}, got {value!r}",
        )


def require_expiry_window(days, max_days: int) -> int:
    if not _is_int(days):
        raise InvalidArgumentError("days", f"must be an integer, got {days!r}")
    if days < 0:
        raise InvalidArgumentError("days", f"cannot be negative, got {days}")
    if days > max_days:
        raise InvalidArgumentError("days", f"must be at most {max_days}, got {days}")
    return days


def is_empty(available_quantity: int, reserved_quantity: int) -> bool:
    """Deletion guard: an item may be removed only when it holds no stock."""
    return available_quantity == 0 and reserved_quantity == 0
