"""Tests for the cash ledger and its mirrors of other records."""

import logging

import pytest
from datetime import date
from decimal import Decimal

from flockbook.domain.cash import adjustment_note, cash_balance, count_notes, display_note
from flockbook.domain.entities import CashLog, CashLogType, SourceKind
from flockbook.domain.errors import NotFoundError, ValidationError

DAY = date(2024, 3, 1)


def _mirrors(temp_db, user_id, kind, source_id):
    return temp_db.find_cash_logs_by_source(user_id, kind, source_id)


class TestPureHelpers:
    """Tests for the module-level cash helpers."""

    def test_balance_is_order_independent(self):
        logs = [
            CashLog(id=1, type=CashLogType.WITHDRAW, amount=Decimal("300"), date=DAY),
            CashLog(id=2, type=CashLogType.OPENING, amount=Decimal("1000"), date=DAY),
            CashLog(id=3, type=CashLogType.ADD, amount=Decimal("50"), date=DAY),
        ]

        assert cash_balance(logs) == Decimal("750")
        assert cash_balance(reversed(logs)) == Decimal("750")
        assert cash_balance(logs, exclude_log_id=1) == Decimal("1050")

    def test_display_note_strips_token(self):
        assert display_note("Sale income: Broiler [ref:sale:4]") == "Sale income: Broiler"
        assert display_note(None) == "General entry"

    def test_count_notes_drops_blank_and_zero_counts(self):
        denominations, total = count_notes({1000: "2", "500": 1, 100: "", 50: "0"})

        assert denominations == {"1000": "2", "500": "1"}
        assert total == Decimal("2500")

    def test_count_notes_rejects_garbage(self):
        with pytest.raises(ValidationError):
            count_notes({500: "two"})

    def test_adjustment_note(self):
        assert adjustment_note(Decimal("0")) == "Cash matched"
        assert adjustment_note(Decimal("20")) == "Cash adjustment (excess 20)"
        assert adjustment_note(Decimal("-15")) == "Cash adjustment (short 15)"


class TestMirrors:
    """Tests for the cash mirrors of purchases, sales and expenses."""

    def test_cash_purchase_is_mirrored_as_withdrawal(self, purchase_service, temp_db, user_id):
        purchase_id = purchase_service.add_purchase("Broiler", 100, Decimal("150"), Decimal("100"), DAY)

        mirrors = _mirrors(temp_db, user_id, SourceKind.PURCHASE, purchase_id)
        assert len(mirrors) == 1
        assert mirrors[0].type == CashLogType.WITHDRAW
        assert mirrors[0].amount == Decimal("15000")
        assert mirrors[0].date == DAY
        assert f"[ref:purchase:{purchase_id}]" in mirrors[0].note
        assert mirrors[0].note.startswith("Purchase: Broiler")

    def test_credit_purchase_has_no_mirror(self, purchase_service, temp_db, user_id):
        purchase_id = purchase_service.add_purchase(
            "Broiler", 100, Decimal("150"), Decimal("100"), DAY, is_credit=True
        )

        assert _mirrors(temp_db, user_id, SourceKind.PURCHASE, purchase_id) == []

    def test_flipping_credit_creates_and_removes_mirror(self, purchase_service, temp_db, user_id):
        purchase_id = purchase_service.add_purchase(
            "Broiler", 100, Decimal("150"), Decimal("100"), DAY, is_credit=True
        )

        purchase_service.update_purchase(purchase_id, is_credit=False)
        assert len(_mirrors(temp_db, user_id, SourceKind.PURCHASE, purchase_id)) == 1

        purchase_service.update_purchase(purchase_id, is_credit=True)
        assert _mirrors(temp_db, user_id, SourceKind.PURCHASE, purchase_id) == []

    def test_sale_edit_updates_mirror_in_place(self, sale_service, temp_db, user_id):
        sale_id = sale_service.add_sale("Sonali", 10, DAY, total=Decimal("3000"))
        original = _mirrors(temp_db, user_id, SourceKind.SALE, sale_id)[0]

        sale_service.update_sale(sale_id, total=Decimal("3200"), on_date=date(2024, 3, 2))

        mirrors = _mirrors(temp_db, user_id, SourceKind.SALE, sale_id)
        assert len(mirrors) == 1
        assert mirrors[0].id == original.id
        assert mirrors[0].type == CashLogType.ADD
        assert mirrors[0].amount == Decimal("3200")
        assert mirrors[0].date == date(2024, 3, 2)

    def test_per_piece_sale_is_repriced_when_pieces_change(self, sale_service, temp_db, user_id):
        sale_id = sale_service.add_sale("Broiler", 10, DAY, rate=Decimal("100"))

        sale_service.update_sale(sale_id, pieces=20)

        sale = sale_service.require_sale(sale_id)
        assert sale.total == Decimal("2000")
        assert _mirrors(temp_db, user_id, SourceKind.SALE, sale_id)[0].amount == Decimal("2000")

    def test_weighed_sale_keeps_weight_price_when_pieces_change(self, sale_service):
        sale_id = sale_service.add_sale("Broiler", 10, DAY, weight_kg=Decimal("15"), rate=Decimal("200"))

        sale_service.update_sale(sale_id, pieces=12)

        assert sale_service.require_sale(sale_id).total == Decimal("3000")

    def test_sale_without_rate_keeps_total_when_pieces_change(self, sale_service):
        sale_id = sale_service.add_sale("Broiler", 10, DAY, total=Decimal("1800"))

        sale_service.update_sale(sale_id, pieces=9)

        assert sale_service.require_sale(sale_id).total == Decimal("1800")

    def test_mortality_only_sale_gets_zero_mirror(self, sale_service, temp_db, user_id):
        sale_id = sale_service.add_sale("Broiler", 0, DAY, mortality=3)

        mirrors = _mirrors(temp_db, user_id, SourceKind.SALE, sale_id)
        assert len(mirrors) == 1
        assert mirrors[0].amount == Decimal("0")

    def test_expense_mirror_follows_edits_and_delete(self, expense_service, temp_db, user_id):
        expense_id = expense_service.add_expense("Feed", Decimal("2500"), DAY, note="starter")
        mirror = _mirrors(temp_db, user_id, SourceKind.EXPENSE, expense_id)[0]
        assert mirror.type == CashLogType.WITHDRAW
        assert mirror.note.startswith("Expense: Feed - starter")

        expense_service.update_expense(expense_id, amount=Decimal("2600"))
        assert _mirrors(temp_db, user_id, SourceKind.EXPENSE, expense_id)[0].amount == Decimal("2600")

        expense_service.delete_expense(expense_id)
        assert _mirrors(temp_db, user_id, SourceKind.EXPENSE, expense_id) == []
        assert temp_db.get_expense(user_id, expense_id) is None

    def test_delete_removes_mirror_with_source(self, purchase_service, sale_service, temp_db, user_id):
        purchase_id = purchase_service.add_purchase("Broiler", 100, Decimal("150"), Decimal("100"), DAY)
        sale_id = sale_service.add_sale("Broiler", 10, DAY, total=Decimal("2000"))

        purchase_service.delete_purchase(purchase_id)
        sale_service.delete_sale(sale_id)

        assert temp_db.list_cash_logs(user_id) == []

    def test_missing_mirror_is_recreated_on_update(self, sale_service, cash_service, temp_db, user_id):
        sale_id = sale_service.add_sale("Broiler", 10, DAY, total=Decimal("2000"))
        mirror = _mirrors(temp_db, user_id, SourceKind.SALE, sale_id)[0]
        temp_db.delete_cash_log(user_id, mirror.id)

        sale_service.update_sale(sale_id, total=Decimal("2100"))

        mirrors = _mirrors(temp_db, user_id, SourceKind.SALE, sale_id)
        assert len(mirrors) == 1
        assert mirrors[0].amount == Decimal("2100")

    def test_legacy_token_mirror_is_found(self, sale_service, temp_db, user_id, clock):
        sale_id = temp_db.create_sale(user_id, "Broiler", 10, Decimal("2000"), DAY, created_at=clock())
        legacy_id = temp_db.create_cash_log(
            user_id, CashLogType.ADD, Decimal("2000"), DAY, note=f"Sale income: Broiler [ref:sale:{sale_id}]"
        )

        sale_service.update_sale(sale_id, total=Decimal("2500"))

        logs = temp_db.list_cash_logs(user_id)
        assert [log.id for log in logs] == [legacy_id]
        assert logs[0].amount == Decimal("2500")
        assert logs[0].source_kind == SourceKind.SALE
        assert logs[0].source_id == sale_id

    def test_adopted_legacy_mirror_is_removed_with_its_sale(
        self, sale_service, cash_service, temp_db, user_id, clock
    ):
        sale_id = temp_db.create_sale(user_id, "Broiler", 10, Decimal("2000"), DAY, created_at=clock())
        temp_db.create_cash_log(
            user_id, CashLogType.ADD, Decimal("2000"), DAY, note=f"Sale income: Broiler [ref:sale:{sale_id}]"
        )
        sale_service.update_sale(sale_id, total=Decimal("2100"))
        temp_db.delete_sale(user_id, sale_id)

        result = cash_service.reconcile_mirrors()

        assert result["orphans_removed"] == 1
        assert temp_db.list_cash_logs(user_id) == []

    def test_token_of_other_id_does_not_match(self, temp_db, user_id):
        temp_db.create_cash_log(user_id, CashLogType.ADD, Decimal("10"), DAY, note="Sale income [ref:sale:10]")

        assert _mirrors(temp_db, user_id, SourceKind.SALE, 1) == []
        assert len(_mirrors(temp_db, user_id, SourceKind.SALE, 10)) == 1

    def test_duplicate_mirrors_are_collapsed(self, cash_service, sale_service, temp_db, user_id, caplog):
        sale_id = sale_service.add_sale("Broiler", 10, DAY, total=Decimal("2000"))
        temp_db.create_cash_log(
            user_id,
            CashLogType.ADD,
            Decimal("2000"),
            DAY,
            note=f"Sale income: Broiler [ref:sale:{sale_id}]",
            source_kind=SourceKind.SALE,
            source_id=sale_id,
        )

        with caplog.at_level(logging.WARNING, logger="flockbook"):
            cash_service.sync_sale(sale_service.get_sale(sale_id))

        assert len(_mirrors(temp_db, user_id, SourceKind.SALE, sale_id)) == 1
        assert "duplicate cash mirror" in caplog.text

    def test_failed_source_write_leaves_no_mirror(self, purchase_service, temp_db, user_id, monkeypatch):
        def broken_sync(purchase):
            raise RuntimeError("cash ledger unavailable")

        monkeypatch.setattr(purchase_service.cash, "sync_purchase", broken_sync)

        with pytest.raises(RuntimeError):
            purchase_service.add_purchase("Broiler", 10, Decimal("15"), Decimal("100"), DAY)

        assert temp_db.list_purchases(user_id) == []
        assert temp_db.list_cash_logs(user_id) == []


class TestReconcileMirrors:
    """Tests for the mirror repair pass."""

    def test_recreates_missing_and_removes_orphans(
        self, purchase_service, expense_service, cash_service, temp_db, user_id
    ):
        purchase_id = purchase_service.add_purchase("Broiler", 10, Decimal("15"), Decimal("100"), DAY)
        expense_service.add_expense("Gas", Decimal("300"), DAY)
        mirror = _mirrors(temp_db, user_id, SourceKind.PURCHASE, purchase_id)[0]
        temp_db.delete_cash_log(user_id, mirror.id)
        temp_db.create_cash_log(
            user_id, CashLogType.ADD, Decimal("99"), DAY, note="Sale income [ref:sale:999]",
            source_kind=SourceKind.SALE, source_id=999,
        )
        manual_id = cash_service.add_cash_log(CashLogType.OPENING, Decimal("5000"), DAY)

        result = cash_service.reconcile_mirrors()

        assert result == {"synced": 2, "orphans_removed": 1}
        assert len(_mirrors(temp_db, user_id, SourceKind.PURCHASE, purchase_id)) == 1
        assert _mirrors(temp_db, user_id, SourceKind.SALE, 999) == []
        assert temp_db.get_cash_log(user_id, manual_id) is not None
        assert cash_service.balance() == Decimal("5000") - Decimal("1500") - Decimal("300")


class TestManualCash:
    """Tests for manual cash entries."""

    def test_default_notes(self, cash_service):
        opening = cash_service.add_cash_log(CashLogType.OPENING, Decimal("5000"), DAY)
        deposit = cash_service.add_cash_log(CashLogType.ADD, Decimal("100"), DAY, note="  ")
        withdrawal = cash_service.add_cash_log(CashLogType.WITHDRAW, Decimal("50"), DAY, note="Rent")

        notes = {log.id: log.note for log in cash_service.list_cash_logs()}
        assert notes[opening] == "Opening cash"
        assert notes[deposit] == "Owner deposit"
        assert notes[withdrawal] == "Rent"
        assert cash_service.balance() == Decimal("5050")

    def test_amount_must_be_positive(self, cash_service, temp_db, user_id):
        with pytest.raises(ValidationError):
            cash_service.add_cash_log(CashLogType.ADD, Decimal("0"), DAY)

        assert temp_db.list_cash_logs(user_id) == []

    def test_list_filters_by_date_newest_first(self, cash_service):
        first = cash_service.add_cash_log(CashLogType.ADD, Decimal("10"), DAY)
        second = cash_service.add_cash_log(CashLogType.ADD, Decimal("20"), DAY)
        cash_service.add_cash_log(CashLogType.ADD, Decimal("30"), date(2024, 3, 2))

        logs = cash_service.list_cash_logs(on_date=DAY)

        assert [log.id for log in logs] == [second, first]

    def test_update_and_delete(self, cash_service):
        log_id = cash_service.add_cash_log(CashLogType.ADD, Decimal("10"), DAY)

        cash_service.update_cash_log(log_id, amount=Decimal("15"), type=CashLogType.WITHDRAW)
        assert cash_service.balance() == Decimal("-15")

        cash_service.delete_cash_log(log_id)
        assert cash_service.list_cash_logs() == []

    def test_delete_missing_log(self, cash_service):
        with pytest.raises(NotFoundError):
            cash_service.delete_cash_log(42)


class TestCashCount:
    """Tests for reconciling against a physical note count."""

    def test_matching_count(self, cash_service):
        cash_service.add_cash_log(CashLogType.OPENING, Decimal("5000"), DAY)

        result = cash_service.record_cash_count({1000: 3, 500: 4}, DAY)

        assert result.physical_total == Decimal("5000")
        assert result.gap == 0
        log = cash_service.require_cash_log(result.log_id)
        assert log.note == "Cash matched"
        assert log.type == CashLogType.ADD
        assert log.amount == Decimal("0")
        assert log.denominations == {"1000": "3", "500": "4"}
        assert cash_service.balance() == Decimal("5000")

    def test_short_count_books_a_withdrawal(self, cash_service):
        cash_service.add_cash_log(CashLogType.OPENING, Decimal("5000"), DAY)

        result = cash_service.record_cash_count({1000: 4, 500: 1, 200: 1, 100: 1}, DAY)

        assert result.gap == Decimal("-200")
        log = cash_service.require_cash_log(result.log_id)
        assert log.type == CashLogType.WITHDRAW
        assert log.amount == Decimal("200")
        assert log.note.startswith("Cash adjustment (short")
        assert cash_service.balance() == Decimal("4800")

    def test_editing_a_count_ignores_its_own_effect(self, cash_service):
        cash_service.add_cash_log(CashLogType.OPENING, Decimal("5000"), DAY)
        first = cash_service.record_cash_count({1000: 5}, DAY)

        second = cash_service.record_cash_count({1000: 5, 100: 2}, DAY, log_id=first.log_id)

        assert second.log_id == first.log_id
        assert second.system_balance == Decimal("5000")
        assert second.gap == Decimal("200")
        assert cash_service.balance() == Decimal("5200")
        assert len(cash_service.list_cash_counts()) == 1

    def test_empty_count_is_rejected(self, cash_service):
        with pytest.raises(ValidationError):
            cash_service.record_cash_count({1000: 0, 500: ""}, DAY)

    def test_only_counts_can_be_rewritten(self, cash_service):
        log_id = cash_service.add_cash_log(CashLogType.OPENING, Decimal("5000"), DAY)

        with pytest.raises(ValidationError):
            cash_service.record_cash_count({1000: 5}, DAY, log_id=log_id)
