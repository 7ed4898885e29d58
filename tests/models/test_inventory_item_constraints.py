"""
Database-level constraints on inventory items.

These are the backstop behind service validation: negative quantities and
duplicate slots must be rejected even when written directly.
"""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from wms_kernel.models import InventoryItemModel


class TestQuantityConstraints:

    def test_negative_available_rejected(self, session, product, make_item):
        with pytest.raises(IntegrityError):
            make_item(product, -1)

    def test_negative_reserved_rejected(self, session, product, make_item):
        with pytest.raises(IntegrityError):
            make_item(product, 5, reserved=-1)

    def test_reserved_defaults_to_zero(
        self, session, tenant_id, product, bin_location, test_actor_id
    ):
        item = InventoryItemModel(
            tenant_id=tenant_id,
            product_id=product.id,
            bin_id=bin_location.id,
            available_quantity=4,
            created_by_id=test_actor_id,
        )
        session.add(item)
        session.flush()

        assert item.reserved_quantity == 0
        assert item.created_at is not None


class TestSlotUniqueness:

    def test_duplicate_with_null_labels_rejected(
        self, session, product, bin_location, make_item
    ):
        make_item(product, 5, bin_=bin_location)
        with pytest.raises(IntegrityError):
            make_item(product, 3, bin_=bin_location)

    def test_duplicate_with_same_labels_rejected(
        self, session, product, bin_location, make_item
    ):
        make_item(product, 5, bin_=bin_location, batch_number="B1", lot_number="L1")
        with pytest.raises(IntegrityError):
            make_item(product, 3, bin_=bin_location, batch_number="B1", lot_number="L1")

    def test_different_batch_allowed(self, session, product, bin_location, make_item):
        make_item(product, 5, bin_=bin_location, batch_number="B1")
        make_item(product, 5, bin_=bin_location, batch_number="B2")
        make_item(product, 5, bin_=bin_location)

        assert session.query(InventoryItemModel).count() == 3

    def test_same_slot_in_other_tenant_allowed(
        self, session, product, bin_location, make_item, other_tenant_id
    ):
        make_item(product, 5, bin_=bin_location)
        make_item(product, 5, bin_=bin_location, tenant=other_tenant_id)

        assert session.query(InventoryItemModel).count() == 2


class TestRoundTrip:

    def test_to_dto_carries_all_fields(self, session, product, make_item, deterministic_clock):
        item = make_item(
            product,
            7,
            reserved=2,
            expiry_date=date(2024, 6, 1),
            received_date=date(2023, 12, 1),
            batch_number="B-7",
            lot_number="L-7",
        )
        session.expire_all()

        info = session.get(InventoryItemModel, item.id).to_dto()

        assert info.id == item.id
        assert info.available_quantity == 7
        assert info.reserved_quantity == 2
        assert info.total_quantity == 9
        assert info.expiry_date == date(2024, 6, 1)
        assert info.received_date == date(2023, 12, 1)
        assert info.batch_number == "B-7"
        assert info.lot_number == "L-7"
        assert info.updated_at == deterministic_clock.now()
        assert info.updated_at.tzinfo is not None
