"""
WMS Kernel - multitenant inventory allocation and reservation engine.

Core invariants:
- Available and reserved quantities are never negative
- Total on-hand stock changes only through receipt or explicit adjustment
- Reservations are FEFO (first-expired-first-out) and all-or-nothing
- Every stock mutation leaves a movement-history record
- Every call is scoped by an explicit tenant id
"""

__version__ = "0.1.0"
