"""Tests for the customer due ledger."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from flockbook.domain.due import due_totals, next_log_id, replay_history
from flockbook.domain.entities import CashLogType, DueLog, DueLogType, SourceKind
from flockbook.domain.errors import NotFoundError, ValidationError

DAY = date(2024, 3, 1)


def _log(id, type, amount, on_date=DAY):
    return DueLog(id=id, date=on_date, time="08:00 AM", type=type, amount=Decimal(amount))


class TestReplay:
    """Tests for the pure due ledger helpers."""

    def test_replay_due_payment_due(self):
        logs = [
            _log(1, DueLogType.DUE, "100"),
            _log(2, DueLogType.ADD, "40"),
            _log(3, DueLogType.DUE, "10"),
        ]

        rows = replay_history(logs)

        assert [row.log.id for row in rows] == [3, 2, 1]
        assert [row.balance for row in rows] == [Decimal("70"), Decimal("60"), Decimal("100")]
        assert due_totals(logs) == (Decimal("110"), Decimal("40"))

    def test_replay_orders_by_date_then_id(self):
        logs = [
            _log(5, DueLogType.ADD, "30", date(2024, 3, 3)),
            _log(9, DueLogType.DUE, "100", date(2024, 3, 1)),
            _log(7, DueLogType.DUE, "20", date(2024, 3, 3)),
        ]

        rows = replay_history(logs)

        # Oldest first: 9 (100), then 5 (70), then 7 (90)
        assert [(row.log.id, row.balance) for row in rows] == [
            (7, Decimal("90")),
            (5, Decimal("70")),
            (9, Decimal("100")),
        ]

    def test_empty_history(self):
        assert replay_history([]) == []
        assert due_totals([]) == (Decimal("0"), Decimal("0"))

    def test_next_log_id_is_time_based_and_monotonic(self):
        now = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)
        millis = int(now.timestamp() * 1000)

        assert next_log_id(now, []) == millis
        assert next_log_id(now, [_log(millis + 5, DueLogType.DUE, "1")]) == millis + 6


class TestDueService:
    """Tests for DueService."""

    def test_create_due_has_opening_entry_and_no_mirror(self, due_service, temp_db, user_id):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY, mobile="01711000000")

        due = due_service.require_due(due_id)
        assert due.amount == Decimal("100")
        assert due.paid == Decimal("0")
        assert due.balance == Decimal("100")
        assert len(due.logs) == 1
        assert due.logs[0].type == DueLogType.DUE
        assert temp_db.list_cash_logs(user_id) == []

    def test_entries_are_mirrored_and_totals_cached(self, due_service, temp_db, user_id):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)

        payment = due_service.add_transaction(due_id, DueLogType.ADD, Decimal("40"), on_date=DAY)
        extra = due_service.add_transaction(due_id, DueLogType.DUE, Decimal("10"), on_date=DAY)

        due = due_service.require_due(due_id)
        assert due.amount == Decimal("110")
        assert due.paid == Decimal("40")
        assert due.balance == Decimal("70")
        assert [row.balance for row in due_service.history(due_id)] == [
            Decimal("70"),
            Decimal("60"),
            Decimal("100"),
        ]

        collected = temp_db.find_cash_logs_by_source(user_id, SourceKind.DUE, due_id, payment.id)
        given = temp_db.find_cash_logs_by_source(user_id, SourceKind.DUE, due_id, extra.id)
        assert len(collected) == 1
        assert collected[0].type == CashLogType.ADD
        assert collected[0].amount == Decimal("40")
        assert f"[ref:due:{due_id}:{payment.id}]" in collected[0].note
        assert collected[0].note.startswith("Due collected: Rahim")
        assert given[0].type == CashLogType.WITHDRAW
        assert given[0].note.startswith("Due given: Rahim")

    def test_delete_transaction_recomputes_and_retracts(self, due_service, temp_db, user_id):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)
        payment = due_service.add_transaction(due_id, DueLogType.ADD, Decimal("40"))

        due_service.delete_transaction(due_id, payment.id)

        due = due_service.require_due(due_id)
        assert due.paid == Decimal("0")
        assert due.balance == Decimal("100")
        assert temp_db.list_cash_logs(user_id) == []

    def test_delete_unknown_transaction(self, due_service):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)

        with pytest.raises(NotFoundError):
            due_service.delete_transaction(due_id, 12345)

    def test_update_logs_diffs_mirrors(self, due_service, temp_db, user_id):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)
        payment = due_service.add_transaction(due_id, DueLogType.ADD, Decimal("40"))
        due = due_service.require_due(due_id)
        opening = due.logs[0]
        new_entry = _log(payment.id + 1000, DueLogType.ADD, "25")

        due_service.update_logs(due_id, [opening, new_entry])

        due = due_service.require_due(due_id)
        assert due.paid == Decimal("25")
        assert temp_db.find_cash_logs_by_source(user_id, SourceKind.DUE, due_id, payment.id) == []
        mirrors = temp_db.find_cash_logs_by_source(user_id, SourceKind.DUE, due_id, new_entry.id)
        assert len(mirrors) == 1
        assert mirrors[0].amount == Decimal("25")
        # The opening entry still has no mirror
        assert temp_db.find_cash_logs_by_source(user_id, SourceKind.DUE, due_id, opening.id) == []

    def test_delete_due_retracts_every_mirror(self, due_service, temp_db, user_id):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)
        due_service.add_transaction(due_id, DueLogType.ADD, Decimal("40"))
        due_service.add_transaction(due_id, DueLogType.ADD, Decimal("10"))

        due_service.delete_due(due_id)

        assert due_service.get_due(due_id) is None
        assert temp_db.list_cash_logs(user_id) == []

    def test_rename_refreshes_mirror_notes(self, due_service, temp_db, user_id):
        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)
        payment = due_service.add_transaction(due_id, DueLogType.ADD, Decimal("40"))

        due_service.update_details(due_id, customer_name="Rahim Uddin", mobile="01811000000")

        due = due_service.require_due(due_id)
        assert due.customer_name == "Rahim Uddin"
        assert due.mobile == "01811000000"
        assert len(due.logs) == 2
        mirror = temp_db.find_cash_logs_by_source(user_id, SourceKind.DUE, due_id, payment.id)[0]
        assert mirror.note.startswith("Due collected: Rahim Uddin")

    def test_validation(self, due_service, temp_db, user_id):
        with pytest.raises(ValidationError):
            due_service.create_due("  ", Decimal("100"), DAY)
        with pytest.raises(ValidationError):
            due_service.create_due("Rahim", Decimal("0"), DAY)

        due_id = due_service.create_due("Rahim", Decimal("100"), DAY)
        with pytest.raises(ValidationError):
            due_service.add_transaction(due_id, DueLogType.ADD, Decimal("-5"))
        assert len(due_service.require_due(due_id).logs) == 1

    def test_unknown_due(self, due_service):
        with pytest.raises(NotFoundError):
            due_service.add_transaction(99, DueLogType.ADD, Decimal("5"))

    def test_search_and_total_outstanding(self, due_service):
        rahim = due_service.create_due("Rahim", Decimal("100"), DAY, mobile="01711000000")
        due_service.create_due("Karim", Decimal("50"), DAY)
        due_service.add_transaction(rahim, DueLogType.ADD, Decimal("30"))

        assert [d.customer_name for d in due_service.list_dues(search="rah")] == ["Rahim"]
        assert [d.customer_name for d in due_service.list_dues(search="0171")] == ["Rahim"]
        assert len(due_service.list_dues()) == 2
        assert due_service.total_outstanding() == Decimal("120")
