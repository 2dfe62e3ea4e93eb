"""
BOL Back Office Facade Tests
==============================
Sale lifecycle end to end: record → journal posting → points → audit,
and delete → points restored.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.audit.log import ACTIVITY_LOG_COLLECTION, InMemoryAuditLog
from core.primitives.loyalty import PointTransactionType
from core.store.memory import InMemoryStore
from core.time.clock import FixedClock
from engines.accounting.chart import seed_default_chart
from engines.accounting.errors import PeriodLockedError
from engines.accounting.posting_rules import PostingOutcome
from engines.backoffice import BackOfficeLedger
from engines.loyalty.recalculation import PRESCRIPTIONS_COLLECTION
from engines.promotion.models import SPEND_SAVE, Promotion, PromotionConditions

NOW = datetime(2026, 2, 19, 12, 0, 0, tzinfo=timezone.utc)


def _backoffice(points=0, seed=True):
    store = InMemoryStore({"customers/c-1": {"id": "c-1", "points": points}})
    if seed:
        seed_default_chart(store)
    log = InMemoryAuditLog()
    backoffice = BackOfficeLedger(store, audit_log=log, clock=FixedClock(NOW))
    return backoffice, store, log


def _lines(backoffice, entry_id):
    entry = backoffice.journal.get(entry_id)
    return {(line.account_id, line.debit, line.credit) for line in entry.lines}


# ══════════════════════════════════════════════════════════════
# PURCHASES
# ══════════════════════════════════════════════════════════════

class TestPurchases:
    def test_purchase_posts_and_earns(self):
        backoffice, _, log = _backoffice()
        sale = backoffice.record_purchase("c-1", 1000)

        assert sale.posting.outcome == PostingOutcome.COMPLETE
        assert _lines(backoffice, sale.posting.entry_id) == {
            ("acc_1001", Decimal("1000.00"), Decimal("0.00")),
            ("acc_4001", Decimal("0.00"), Decimal("1000.00")),
        }
        entry = backoffice.journal.get(sale.posting.entry_id)
        assert entry.reference == f"POS-{sale.record_id[:6]}"
        assert entry.date == "2026-02-19"

        assert sale.points_earned == 40
        assert backoffice.points.balance("c-1") == 40
        assert log.records[-1].module == "INVOICE"
        assert log.records[-1].action_type == "CREATE"

    def test_points_used_are_redeemed(self):
        backoffice, _, _ = _backoffice(points=50)
        backoffice.record_purchase("c-1", 1000, points_used=10)

        assert backoffice.points.balance("c-1") == 80
        kinds = [t.transaction_type for t in backoffice.points.transactions("c-1")]
        assert kinds.count(PointTransactionType.REDEEM) == 1
        assert kinds.count(PointTransactionType.EARN) == 1

    def test_delete_restores_points_and_keeps_journal(self):
        backoffice, store, log = _backoffice(points=50)
        sale = backoffice.record_purchase("c-1", 1000, points_used=10)

        deleted = backoffice.delete_purchase(sale.record_id)

        assert deleted.total == Decimal("1000.00")
        assert backoffice.points.balance("c-1") == 50
        assert store.list("purchases") == []
        assert len(backoffice.journal.list_entries()) == 1
        assert log.records[-1].action_type == "DELETE"

    def test_locked_period_rejects_sale(self):
        backoffice, _, _ = _backoffice()
        backoffice.close_period(2026, 2)
        assert backoffice.is_period_locked(2026, 2)

        with pytest.raises(PeriodLockedError):
            backoffice.record_purchase("c-1", 1000, date="2026-02-10")
        assert backoffice.journal.list_entries() == []

    def test_missing_chart_skips_posting_but_earns(self):
        backoffice, _, _ = _backoffice(seed=False)
        sale = backoffice.record_purchase("c-1", 500)

        assert sale.posting.outcome == PostingOutcome.SKIPPED
        assert not sale.posting.posted
        assert backoffice.journal.list_entries() == []
        assert sale.points_earned == 20


# ══════════════════════════════════════════════════════════════
# PRESCRIPTIONS & PAYMENTS
# ══════════════════════════════════════════════════════════════

class TestPrescriptions:
    def _record(self, backoffice):
        return backoffice.record_prescription(
            "c-1", 2000, 1500, discount=500, deposit=1000, points_used=20,
            frame_brand="Ray-Ban",
        )

    def test_prescription_posts_net_to_receivable(self):
        backoffice, store, log = _backoffice(points=100)
        sale = self._record(backoffice)

        assert _lines(backoffice, sale.posting.entry_id) == {
            ("acc_1200", Decimal("3000.00"), Decimal("0.00")),
            ("acc_4002", Decimal("0.00"), Decimal("3000.00")),
        }
        record = store.get(f"{PRESCRIPTIONS_COLLECTION}/{sale.record_id}")
        assert record["remaining"] == "2000.00"
        assert record["frame_brand"] == "Ray-Ban"

        # 100 - 20 redeemed + 40 earned on the deposit
        assert sale.points_earned == 40
        assert backoffice.points.balance("c-1") == 120
        assert log.for_module("ORDER")[0].action_type == "CREATE"

    def test_delete_refunds_and_reverses(self):
        backoffice, store, log = _backoffice(points=100)
        sale = self._record(backoffice)

        backoffice.delete_prescription(sale.record_id)

        assert backoffice.points.balance("c-1") == 100
        assert store.get(f"{PRESCRIPTIONS_COLLECTION}/{sale.record_id}") is None
        assert [r.action_type for r in log.for_module("ORDER")] == ["CREATE", "DELETE"]

    def test_discount_over_total_rejected(self):
        backoffice, store, log = _backoffice(points=100)
        with pytest.raises(ValueError, match="exceeds"):
            backoffice.record_prescription("c-1", 100, 100, discount=500)
        assert store.list(PRESCRIPTIONS_COLLECTION) == []
        assert backoffice.journal.list_entries() == []
        assert log.records == []

    def test_delete_unknown_is_noop_for_points(self):
        backoffice, _, log = _backoffice(points=100)
        assert backoffice.delete_prescription("missing") is None
        assert backoffice.points.balance("c-1") == 100
        assert log.records[-1].action_type == "DELETE"


class TestPayments:
    def test_transfer_goes_to_bank_and_tops_up_deposit(self):
        backoffice, store, _ = _backoffice()
        rx = backoffice.record_prescription("c-1", 2000, 1500, deposit=1000)

        payment = backoffice.record_payment(
            "c-1", 500, "โอนเงิน", prescription_id=rx.record_id,
        )

        assert _lines(backoffice, payment.posting.entry_id) == {
            ("acc_1002", Decimal("500.00"), Decimal("0.00")),
            ("acc_1200", Decimal("0.00"), Decimal("500.00")),
        }
        record = store.get(f"{PRESCRIPTIONS_COLLECTION}/{rx.record_id}")
        assert record["deposit"] == "1500.00"
        assert record["remaining"] == "2000.00"
        assert payment.points_earned == 20
        assert backoffice.points.balance("c-1") == 60

    def test_cash_goes_to_cash(self):
        backoffice, _, _ = _backoffice()
        payment = backoffice.record_payment("c-1", 300, "cash")
        assert ("acc_1001", Decimal("300.00"), Decimal("0.00")) in _lines(
            backoffice, payment.posting.entry_id
        )

    def test_delete_moves_deposit_back(self):
        backoffice, store, _ = _backoffice()
        rx = backoffice.record_prescription("c-1", 2000, 1500, deposit=1000)
        payment = backoffice.record_payment(
            "c-1", 500, "card", prescription_id=rx.record_id,
        )

        backoffice.delete_payment(payment.record_id)

        record = store.get(f"{PRESCRIPTIONS_COLLECTION}/{rx.record_id}")
        assert record["deposit"] == "1000.00"
        assert store.list("payments") == []
        assert backoffice.points.balance("c-1") == 40

    def test_payment_for_missing_prescription_still_recorded(self, caplog):
        backoffice, store, _ = _backoffice()
        with caplog.at_level("WARNING", logger="bol.backoffice"):
            payment = backoffice.record_payment(
                "c-1", 100, "cash", prescription_id="gone",
            )
        assert payment.posting.posted
        assert "deposit not updated" in caplog.text
        assert store.get("prescriptions/gone") is None

    def test_installment(self):
        backoffice, store, log = _backoffice()
        sale = backoffice.pay_installment(
            "abcdef12", 3, 250, "cash", customer_id="c-1",
        )

        entry = backoffice.journal.get(sale.posting.entry_id)
        assert entry.reference == "INST-abcd-3"
        assert sale.points_earned == 10
        stored = store.get(f"payments/{sale.record_id}")
        assert stored["installment_id"] == "abcdef12"
        assert stored["term"] == 3

        record = log.records[-1]
        assert record.action_type == "UPDATE"
        assert record.ref_id == "abcdef12"
        assert record.new_data == {"term": 3, "amount": "250.00", "method": "cash"}


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class TestInventoryReceipt:
    def test_receipt_posts_inventory_against_payables(self):
        backoffice, _, log = _backoffice()
        result = backoffice.record_inventory_receipt("item-1", "Lens cloth", 10, 150)

        assert _lines(backoffice, result.entry_id) == {
            ("acc_1300", Decimal("1500.00"), Decimal("0.00")),
            ("acc_2001", Decimal("0.00"), Decimal("1500.00")),
        }
        assert backoffice.journal.get(result.entry_id).reference == "IN-item-1"
        assert log.records[-1].module == "STOCK"

    @pytest.mark.parametrize("quantity,cost", [(0, 150), (5, 0)])
    def test_nothing_posted_without_quantity_and_cost(self, quantity, cost):
        backoffice, _, log = _backoffice()
        assert backoffice.record_inventory_receipt("i", "x", quantity, cost) is None
        assert backoffice.journal.list_entries() == []
        assert log.records == []


# ══════════════════════════════════════════════════════════════
# POINTS & PROMOTIONS THROUGH THE FACADE
# ══════════════════════════════════════════════════════════════

class TestFacadeQueries:
    def test_recalculate_all_points(self):
        backoffice, store, _ = _backoffice()
        backoffice.record_purchase("c-1", 1000)
        store.merge("customers/c-1", {"points": 7})

        assert backoffice.recalculate_all_points() == 1
        assert backoffice.points.balance("c-1") == 40
        assert backoffice.recalculate_points("c-1") == 0

    def test_adjust_points(self):
        backoffice, _, log = _backoffice(points=5)
        txn = backoffice.adjust_points("c-1", 15, PointTransactionType.ADJUST, "Goodwill")
        assert txn.points == 15
        assert backoffice.points.balance("c-1") == 20
        assert log.records[-1].module == "CUSTOMER"

    def test_promotions(self):
        backoffice, _, log = _backoffice()
        backoffice.save_promotion(Promotion(
            "s", "Spend & save", SPEND_SAVE,
            conditions=PromotionConditions(min_spend=500, discount_amount=50),
        ))

        [quote] = backoffice.get_applicable_promotions("c-1", 400, 200, now=NOW)
        assert quote.discount_amount == 50
        assert backoffice.get_applicable_promotions("c-1", 300, 100) == []

        assert backoffice.delete_promotion("s") is True
        assert [r.module for r in log.records] == ["SETTINGS", "SETTINGS"]


# ══════════════════════════════════════════════════════════════
# DJANGO-BACKED
# ══════════════════════════════════════════════════════════════

@pytest.mark.django_db(transaction=True)
def test_django_backed_purchase(settings):
    settings.LEDGER = {"earnRate": 50}
    backoffice = BackOfficeLedger.from_django_settings(clock=FixedClock(NOW))
    store = backoffice._store
    store.set("customers/c-1", {"id": "c-1", "points": 0})
    seed_default_chart(store)

    sale = backoffice.record_purchase("c-1", 1000)

    assert backoffice.config.earn_rate == Decimal("50")
    assert sale.points_earned == 20
    assert sale.posting.posted
    assert backoffice.points.balance("c-1") == 20
    modules = {r["module"] for r in store.list(ACTIVITY_LOG_COLLECTION)}
    assert modules == {"ACCOUNTING", "CUSTOMER", "INVOICE"}
