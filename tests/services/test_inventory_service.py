"""
Tests for the InventoryService.
"""

from decimal import Decimal

import pytest

from shop_ledger.exceptions import InventoryConsistencyError
from shop_ledger.services.inventory_service import InventoryService


class TestQuantities:

    def test_unknown_pair_has_nothing(self, db_session):
        assert InventoryService(db_session).get_quantity("A", "main") == Decimal("0")

    def test_set_creates_then_updates(self, db_session):
        service = InventoryService(db_session)

        created = service.set_quantity("A", "main", Decimal("5"))
        updated = service.set_quantity("A", "main", Decimal("7.5"))

        assert created.id == updated.id
        assert service.get_quantity("A", "main") == Decimal("7.5")

    def test_negative_stock_rejected(self, db_session):
        with pytest.raises(ValueError, match="cannot be negative"):
            InventoryService(db_session).set_quantity("A", "main", Decimal("-1"))

    def test_locations_are_separate(self, db_session):
        service = InventoryService(db_session)
        service.set_quantity("A", "main", Decimal("5"))
        service.set_quantity("A", "annex", Decimal("2"))

        assert service.get_quantities([("A", "main"), ("A", "annex"), ("A", "x")]) == {
            ("A", "main"): Decimal("5"),
            ("A", "annex"): Decimal("2"),
            ("A", "x"): Decimal("0"),
        }

    def test_list_records_sorted(self, db_session):
        service = InventoryService(db_session)
        service.set_quantity("B", "main", Decimal("1"))
        service.set_quantity("A", "main", Decimal("1"))
        service.set_quantity("A", "annex", Decimal("1"))

        assert [r.key for r in service.list_records()] == [
            ("A", "annex"), ("A", "main"), ("B", "main"),
        ]
        assert [r.key for r in service.list_records("main")] == [
            ("A", "main"), ("B", "main"),
        ]


class TestApplyDeductions:

    def test_deducts_every_row(self, db_session):
        service = InventoryService(db_session)
        service.set_quantity("A", "main", Decimal("10"))
        service.set_quantity("B", "main", Decimal("5"))

        service.apply_deductions([
            ("A", "main", Decimal("4")),
            ("B", "main", Decimal("5")),
        ])

        assert service.get_quantity("A", "main") == Decimal("6")
        assert service.get_quantity("B", "main") == Decimal("0")

    def test_one_short_row_changes_nothing(self, db_session):
        service = InventoryService(db_session)
        service.set_quantity("A", "main", Decimal("10"))
        service.set_quantity("B", "main", Decimal("1"))

        with pytest.raises(InventoryConsistencyError) as exc_info:
            service.apply_deductions([
                ("A", "main", Decimal("4")),
                ("B", "main", Decimal("2")),
            ])

        assert exc_info.value.item_id == "B"
        assert exc_info.value.available == Decimal("1")
        assert service.get_quantity("A", "main") == Decimal("10")

    def test_missing_record_is_short(self, db_session):
        with pytest.raises(InventoryConsistencyError):
            InventoryService(db_session).apply_deductions([
                ("Z", "main", Decimal("1")),
            ])

    def test_empty_batch(self, db_session):
        assert InventoryService(db_session).apply_deductions([]) == []

    def test_rereads_stock_changed_by_another_session(
        self, db_session, session_factory
    ):
        InventoryService(db_session).set_quantity("A", "main", Decimal("10"))
        db_session.commit()
        other = session_factory()
        stale = InventoryService(other)
        assert stale.get_quantity("A", "main") == Decimal("10")

        InventoryService(db_session).set_quantity("A", "main", Decimal("3"))
        db_session.commit()

        with pytest.raises(InventoryConsistencyError) as exc_info:
            stale.apply_deductions([("A", "main", Decimal("5"))])

        assert exc_info.value.available == Decimal("3")

    def test_deduction_is_relative_to_stored_stock(
        self, db_session, session_factory
    ):
        InventoryService(db_session).set_quantity("A", "main", Decimal("10"))
        db_session.commit()
        other = session_factory()
        stale = InventoryService(other)
        stale.list_records()

        InventoryService(db_session).set_quantity("A", "main", Decimal("7"))
        db_session.commit()

        stale.apply_deductions([("A", "main", Decimal("2"))])
        other.commit()

        assert stale.get_quantity("A", "main") == Decimal("5")
        db_session.expire_all()
        assert InventoryService(db_session).get_quantity("A", "main") == Decimal("5")
