"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from flockbook.database.factories import create_memory_database
from flockbook.domain import entities
from flockbook.domain.errors import NotFoundError

DAY = date(2024, 3, 1)
T0 = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_purchase_returns_domain_model(self, temp_db, user_id):
        """Test that get_purchase returns a domain Purchase entity."""
        purchase_id = temp_db.create_purchase(
            user_id, "Broiler", 100, Decimal("150.5"), Decimal("100"), Decimal("15050"), DAY, created_at=T0
        )

        purchase = temp_db.get_purchase(user_id, purchase_id)

        assert isinstance(purchase, entities.Purchase)
        assert purchase.id == purchase_id
        assert purchase.weight_kg == Decimal("150.5")
        assert purchase.total == Decimal("15050")
        assert purchase.is_credit is False
        assert purchase.created_at == T0

    def test_list_cash_logs_returns_domain_models(self, temp_db, user_id):
        """Test that list_cash_logs returns domain CashLog entities."""
        temp_db.create_cash_log(user_id, entities.CashLogType.OPENING, Decimal("500"), DAY)
        temp_db.create_cash_log(
            user_id,
            entities.CashLogType.ADD,
            Decimal("0"),
            DAY,
            note="Cash matched",
            denominations={"500": "1"},
        )

        logs = temp_db.list_cash_logs(user_id)

        assert len(logs) == 2
        for log in logs:
            assert isinstance(log, entities.CashLog)
            assert isinstance(log.type, entities.CashLogType)
        assert [log.is_cash_count for log in logs] == [True, False]

    def test_due_logs_survive_storage(self, temp_db, user_id):
        """Test that the due log array round-trips through the JSON column."""
        logs = (
            entities.DueLog(1, DAY, "08:00 AM", entities.DueLogType.DUE, Decimal("100")),
            entities.DueLog(2, DAY, "09:00 AM", entities.DueLogType.ADD, Decimal("40.50")),
        )
        due_id = temp_db.create_due(user_id, "Rahim", Decimal("100"), Decimal("40.50"), DAY, logs=logs)

        due = temp_db.get_due(user_id, due_id)

        assert isinstance(due, entities.DueRecord)
        assert due.logs == logs
        assert due.balance == Decimal("59.50")

    def test_records_are_scoped_to_their_user(self, temp_db, user_id):
        expense_id = temp_db.create_expense(user_id, "Feed", Decimal("100"), DAY)

        assert temp_db.get_expense("someone-else", expense_id) is None
        assert temp_db.list_expenses("someone-else") == []
        assert len(temp_db.list_expenses(user_id)) == 1

    def test_update_missing_record_raises(self, temp_db, user_id):
        with pytest.raises(NotFoundError):
            temp_db.update_sale(user_id, 42, total=Decimal("10"))

    def test_delete_missing_record_is_noop(self, temp_db, user_id):
        temp_db.delete_sale(user_id, 42)
        temp_db.delete_cash_log(user_id, 42)

    def test_update_skips_none_fields(self, temp_db, user_id):
        expense_id = temp_db.create_expense(user_id, "Feed", Decimal("100"), DAY, note="starter")

        temp_db.update_expense(user_id, expense_id, amount=Decimal("120"))

        expense = temp_db.get_expense(user_id, expense_id)
        assert expense.amount == Decimal("120")
        assert expense.note == "starter"

    def test_created_window_filters(self, temp_db, user_id):
        for minutes in (0, 5, 10):
            temp_db.create_sale(
                user_id, "Broiler", 1, Decimal("1"), DAY, created_at=T0.replace(minute=minutes)
            )

        sales = temp_db.list_sales(
            user_id, product_type="Broiler", created_after=T0, created_until=T0.replace(minute=5)
        )

        assert [s.created_at for s in sales] == [T0.replace(minute=5)]


class TestResetMarkers:
    """Tests for the reset marker history."""

    def test_last_reset_and_map(self, temp_db, user_id):
        assert temp_db.get_last_reset(user_id, "Broiler") is None

        temp_db.add_reset_marker(user_id, "Broiler", T0)
        temp_db.add_reset_marker(user_id, "Broiler", T0.replace(hour=10))
        temp_db.add_reset_marker(user_id, "Layer", T0.replace(hour=9))

        assert temp_db.get_last_reset(user_id, "Broiler") == T0.replace(hour=10)
        assert temp_db.get_reset_map(user_id) == {
            "Broiler": T0.replace(hour=10),
            "Layer": T0.replace(hour=9),
        }
        assert [m.reset_time for m in temp_db.list_reset_markers(user_id, "Broiler")] == [
            T0,
            T0.replace(hour=10),
        ]

    def test_has_reset_since_includes_equal_time(self, temp_db, user_id):
        temp_db.add_reset_marker(user_id, "Broiler", T0)

        assert temp_db.has_reset_since(user_id, "Broiler", T0)
        assert temp_db.has_reset_since(user_id, "Broiler", T0.replace(hour=7))
        assert not temp_db.has_reset_since(user_id, "Broiler", T0.replace(second=1))

    def test_delete_lot_archives_only_touches_one_type(self, temp_db, user_id):
        temp_db.create_lot_archive(user_id, "Broiler", Decimal("1"), Decimal("2"), Decimal("1"), T0, T0.replace(hour=7))
        temp_db.create_lot_archive(user_id, "Layer", Decimal("1"), Decimal("2"), Decimal("1"), T0, T0.replace(hour=7))

        assert temp_db.delete_lot_archives(user_id, "Broiler") == 1

        assert temp_db.list_lot_archives(user_id, "Broiler") == []
        assert len(temp_db.list_lot_archives(user_id)) == 1


class TestAtomic:
    """Tests for the transactional boundary."""

    def test_atomic_commits_together(self, temp_db, user_id):
        with temp_db.atomic():
            temp_db.create_expense(user_id, "Feed", Decimal("100"), DAY)
            temp_db.create_cash_log(user_id, entities.CashLogType.WITHDRAW, Decimal("100"), DAY)

        assert len(temp_db.list_expenses(user_id)) == 1
        assert len(temp_db.list_cash_logs(user_id)) == 1

    def test_atomic_rolls_back_on_error(self, temp_db, user_id):
        with pytest.raises(RuntimeError):
            with temp_db.atomic():
                temp_db.create_expense(user_id, "Feed", Decimal("100"), DAY)
                raise RuntimeError("boom")

        assert temp_db.list_expenses(user_id) == []

    def test_nested_atomic_rolls_back_outer_block(self, temp_db, user_id):
        with pytest.raises(RuntimeError):
            with temp_db.atomic():
                temp_db.create_expense(user_id, "Feed", Decimal("100"), DAY)
                with temp_db.atomic():
                    temp_db.create_expense(user_id, "Gas", Decimal("50"), DAY)
                raise RuntimeError("boom")

        assert temp_db.list_expenses(user_id) == []


def test_memory_database():
    db = create_memory_database()
    db.connect()
    db.initialize_schema()

    expense_id = db.create_expense("owner", "Feed", Decimal("10"), DAY)

    assert db.get_expense("owner", expense_id).amount == Decimal("10")
    db.disconnect()
