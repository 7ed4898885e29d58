"""
Tests for module-level engine management and session_scope().
"""

import pytest
from sqlalchemy import func, select

from wms_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    session_scope,
)
from wms_kernel.models import BinModel


@pytest.fixture
def module_engine():
    reset_engine()
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    reset_engine()


def _bin(tenant_id, actor_id, name="A-01-01"):
    return BinModel(tenant_id=tenant_id, name=name, created_by_id=actor_id)


def _bin_count():
    with session_scope() as session:
        return session.scalar(select(func.count()).select_from(BinModel))


class TestUninitialized:

    def test_accessors_raise_before_init(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
        with pytest.raises(RuntimeError):
            get_session_factory()
        assert is_postgres() is False


class TestSessionScope:

    def test_commit_on_success(self, module_engine, tenant_id, test_actor_id):
        with session_scope() as session:
            session.add(_bin(tenant_id, test_actor_id))

        assert _bin_count() == 1

    def test_rollback_on_error(self, module_engine, tenant_id, test_actor_id):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(_bin(tenant_id, test_actor_id))
                session.flush()
                raise ValueError("boom")

        assert _bin_count() == 0

    def test_rollback_logged(self, module_engine, captured_logs):
        with pytest.raises(KeyError):
            with session_scope():
                raise KeyError("missing")

        messages = [r["message"] for r in captured_logs()]
        assert "transaction_rolled_back" in messages

    def test_dialect(self, module_engine):
        assert get_engine() is module_engine
        assert is_postgres() is False

    def test_reinit_replaces_engine(self, module_engine):
        replacement = init_engine_from_url("sqlite://")
        assert get_engine() is replacement
        assert replacement is not module_engine
