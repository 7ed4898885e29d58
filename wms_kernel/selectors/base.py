"""
Module: wms_kernel.selectors.base
Responsibility: Common base for read-only stock queries.
Architecture position: Kernel > Selectors.  Selectors may read models/ and
    call domain/ helpers; they never import services/.

Selectors only issue SELECTs on the caller's session and hand back frozen
DTOs (StockTotals, InventoryItemInfo, ...), never ORM rows.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from wms_kernel.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseSelector(ABC, Generic[ModelT]):

    def __init__(self, session: Session):
        self.session = session
