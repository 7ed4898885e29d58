"""
BaseService -- shared constructor for the stock-mutating services.

Services write through the caller's ``Session`` and stop at ``flush()``.
Whoever opened the transaction (a request handler, a batch job,
``session_scope()``, a test fixture) decides whether it commits.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from wms_kernel.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseService(ABC, Generic[ModelT]):

    def __init__(self, session: Session):
        self.session = session
