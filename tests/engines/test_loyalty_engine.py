"""
BOL Loyalty Engine — Point Ledger & Recalculation Tests
=========================================================
Balance adjustments, earn helpers, redemption guard, and the
replay-based recalculation with its single-batch commit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.audit.log import AuditTrail, InMemoryAuditLog
from core.config.rules import LedgerConfig
from core.primitives.loyalty import PointTransaction, PointTransactionType
from core.store.errors import BatchWriteRejected
from core.store.memory import InMemoryStore
from core.time.clock import FixedClock
from core.time.temporal import DateRange
from engines.loyalty.commands import PointAdjustRequest
from engines.loyalty.errors import InsufficientPointsError, RecalculationFailure
from engines.loyalty.policies import points_enabled_policy, sufficient_balance_policy
from engines.loyalty.recalculation import (
    PointRecalculator,
    RecalculationSnapshot,
    effective_earn_rate,
    plan_recalculation,
)
from engines.loyalty.services import (
    POINT_TRANSACTIONS_COLLECTION,
    PointLedger,
    calculate_earn_points,
)

NOW = datetime(2026, 2, 19, 12, 0, 0, tzinfo=timezone.utc)


def _store(**customers):
    return InMemoryStore({
        f"customers/{cid}": {"id": cid, "name": cid.upper(), "points": points}
        for cid, points in customers.items()
    })


def _ledger(store, config=None):
    log = InMemoryAuditLog()
    clock = FixedClock(NOW)
    ledger = PointLedger(
        store,
        config=config,
        audit=AuditTrail(log, clock=clock),
        clock=clock,
    )
    return ledger, log


def _recalculator(store, config=None):
    log = InMemoryAuditLog()
    clock = FixedClock(NOW)
    recalculator = PointRecalculator(
        store,
        config=config,
        audit=AuditTrail(log, clock=clock),
        clock=clock,
    )
    return recalculator, log


def _purchase(store, pid, customer_id, total, date="2026-02-01"):
    store.set(f"purchases/{pid}", {
        "id": pid, "customer_id": customer_id, "date": date, "total": str(total),
    })


# ══════════════════════════════════════════════════════════════
# EARN FORMULA & POLICIES
# ══════════════════════════════════════════════════════════════

class TestEarnFormula:
    @pytest.mark.parametrize("amount,rate,expected", [
        (1000, 25, 40),
        (1049, 25, 41),
        (24.99, 25, 0),
        (1000, 0, 0),
        (1000, -5, 0),
        (-100, 25, 0),
        ("150.50", "0.5", 301),
    ])
    def test_floor_division(self, amount, rate, expected):
        assert calculate_earn_points(amount, rate) == expected

    def test_points_disabled_earns_nothing(self):
        ledger, _ = _ledger(_store(a=0), LedgerConfig(enable_points=False))
        assert ledger.earnable_points(1000) == 0
        assert points_enabled_policy(LedgerConfig(enable_points=False)).code == "POINTS_DISABLED"

    def test_redeem_value(self):
        ledger, _ = _ledger(_store(), LedgerConfig(redeem_rate="0.5"))
        assert ledger.redeem_value(30) == Decimal("15.00")


class TestAdjustRequest:
    def test_redeem_stores_negative_delta(self):
        request = PointAdjustRequest.redeem("a", 10)
        assert request.delta == -10
        assert request.transaction_type == PointTransactionType.REDEEM

    def test_redeem_requires_positive(self):
        with pytest.raises(ValueError):
            PointAdjustRequest.redeem("a", 0)

    def test_type_from_string(self):
        request = PointAdjustRequest("a", 5, "adjust")
        assert request.transaction_type == PointTransactionType.ADJUST

    def test_delta_must_be_int(self):
        with pytest.raises(ValueError):
            PointAdjustRequest("a", 1.5, PointTransactionType.ADJUST)

    def test_sufficient_balance_policy(self):
        request = PointAdjustRequest.redeem("a", 10)
        assert sufficient_balance_policy(request) is None
        assert sufficient_balance_policy(request, lambda cid: 10) is None
        rejection = sufficient_balance_policy(request, lambda cid: 9)
        assert rejection.details == {"balance": 9, "needed": 10}


# ══════════════════════════════════════════════════════════════
# POINT LEDGER
# ══════════════════════════════════════════════════════════════

class TestPointLedgerAdjust:
    def test_adjust_updates_balance_and_appends(self):
        store = _store(a=0)
        ledger, log = _ledger(store)

        txn = ledger.adjust(PointAdjustRequest(
            "a", 40, PointTransactionType.EARN, note="Point-of-sale purchase",
            related_id="p-1",
        ))

        assert ledger.balance("a") == 40
        assert store.get("customers/a")["name"] == "A"
        assert txn.points == 40
        assert txn.date == NOW.isoformat()
        assert [t.transaction_id for t in ledger.transactions("a")] == [txn.transaction_id]

        [record] = log.records
        assert record.module == "CUSTOMER"
        assert record.action_type == "UPDATE"
        assert record.old_data == {"points": 0}
        assert record.new_data == {"points": 40}
        assert record.ref_id == "a"

    def test_balance_matches_transaction_sum(self):
        store = _store(a=0)
        ledger, _ = _ledger(store)
        ledger.adjust(PointAdjustRequest("a", 40, PointTransactionType.EARN))
        ledger.adjust(PointAdjustRequest.redeem("a", 10))
        ledger.adjust(PointAdjustRequest("a", -3, PointTransactionType.ADJUST))

        assert ledger.balance("a") == 27
        assert sum(t.points for t in ledger.transactions("a")) == 27

    def test_unknown_customer_stays_absent(self, caplog):
        store = _store()
        ledger, _ = _ledger(store)
        with caplog.at_level("WARNING", logger="bol.loyalty"):
            ledger.adjust(PointAdjustRequest("ghost", 5, PointTransactionType.EARN))

        assert store.get("customers/ghost") is None
        assert len(store.list(POINT_TRANSACTIONS_COLLECTION)) == 1
        assert "not found" in caplog.text

    def test_unknown_customer_audit_has_no_balance(self):
        ledger, log = _ledger(_store())
        ledger.adjust(PointAdjustRequest("ghost", 5, PointTransactionType.EARN))

        [record] = log.records
        assert record.ref_id == "ghost"
        assert record.old_data is None
        assert record.new_data is None

    def test_over_redemption_allowed_by_default(self):
        store = _store(a=5)
        ledger, _ = _ledger(store)
        ledger.adjust(PointAdjustRequest.redeem("a", 10))
        assert ledger.balance("a") == -5

    def test_over_redemption_checked_on_request(self):
        store = _store(a=5)
        ledger, _ = _ledger(store)
        with pytest.raises(InsufficientPointsError) as exc:
            ledger.adjust(PointAdjustRequest.redeem("a", 10), check_balance=True)
        assert exc.value.needed == 10
        assert ledger.balance("a") == 5
        assert ledger.transactions("a") == []


class TestPointLedgerLifecycle:
    def test_earn_for(self):
        ledger, _ = _ledger(_store(a=0))
        assert ledger.earn_for("a", 1000, related_id="p-1") == 40
        [txn] = ledger.transactions("a")
        assert txn.is_earn
        assert txn.related_id == "p-1"

    def test_earn_for_small_amount_writes_nothing(self):
        ledger, log = _ledger(_store(a=0))
        assert ledger.earn_for("a", 10) == 0
        assert ledger.transactions() == []
        assert log.records == []

    def test_reverse_earned_is_adjust(self):
        ledger, _ = _ledger(_store(a=40))
        assert ledger.reverse_earned("a", 1000) == 40
        [txn] = ledger.transactions("a")
        assert txn.transaction_type == PointTransactionType.ADJUST
        assert txn.points == -40
        assert ledger.balance("a") == 0

    def test_refund_redeemed(self):
        ledger, _ = _ledger(_store(a=0))
        assert ledger.refund_redeemed("a", 15) == 15
        assert ledger.refund_redeemed("a", 0) == 0
        assert ledger.balance("a") == 15


# ══════════════════════════════════════════════════════════════
# RECALCULATION
# ══════════════════════════════════════════════════════════════

class TestRecalculationPlan:
    def _plan(self, store, rate=Decimal("25"), date_range=None):
        ids = iter(f"t-{n}" for n in range(100))
        return plan_recalculation(
            RecalculationSnapshot.load(store),
            rate=rate,
            date_range=date_range,
            now=NOW.isoformat(),
            new_id=lambda: next(ids),
        )

    def test_plan_is_pure(self):
        store = _store(a=0)
        _purchase(store, "p-1", "a", 1000)
        plan = self._plan(store)
        assert plan.changed_count == 1
        assert len(plan.writes) == 2
        assert store.get("customers/a")["points"] == 0

    def test_prescriptions_count_net(self):
        store = _store(a=0)
        store.set("prescriptions/rx-1", {
            "id": "rx-1", "customer_id": "a", "date": "2026-02-01",
            "frame_price": "2000", "lens_price": "1500", "discount": "500",
        })
        [result] = self._plan(store).customers
        assert result.total_spend == Decimal("3000.00")
        assert result.target_earned == 120

    def test_date_range_bounds_spend_only(self):
        store = _store(a=0)
        _purchase(store, "p-1", "a", 1000, date="2026-01-15")
        _purchase(store, "p-2", "a", 500, date="2026-02-15")
        store.set("point_transactions/r-1", PointTransaction(
            "r-1", "a", "2025-12-01", PointTransactionType.REDEEM, -4,
        ).to_dict())

        [result] = self._plan(
            store, date_range=DateRange("2026-02-01", "2026-02-28"),
        ).customers
        assert result.total_spend == Decimal("500.00")
        assert result.non_sales_balance == -4
        assert result.new_balance == 16

    def test_never_negative(self):
        store = _store(a=3)
        store.set("point_transactions/r-1", PointTransaction(
            "r-1", "a", "2026-01-01", PointTransactionType.REDEEM, -50,
        ).to_dict())
        [result] = self._plan(store).customers
        assert result.new_balance == 0
        assert result.diff == -3

    def test_undated_sales_left_out(self, caplog):
        store = _store(a=0, b=0)
        _purchase(store, "p-1", "a", 1000)
        store.set("purchases/p-2", {"id": "p-2", "customer_id": "b", "total": "500"})
        store.set("prescriptions/rx-1", {
            "id": "rx-1", "customer_id": "b", "frame_price": "2000",
            "lens_price": "0",
        })

        with caplog.at_level("WARNING", logger="bol.loyalty"):
            plan = self._plan(store)

        by_id = {c.customer_id: c for c in plan.customers}
        assert by_id["a"].new_balance == 40
        assert by_id["b"].total_spend == Decimal("0.00")
        assert "Purchase p-2 has no date" in caplog.text
        assert "Prescription rx-1 has no date" in caplog.text

    def test_fallback_rate(self):
        assert effective_earn_rate(LedgerConfig(earn_rate=0)) == Decimal("100")
        assert effective_earn_rate(LedgerConfig(earn_rate=25)) == Decimal("25")


class TestPointRecalculator:
    def test_purchase_then_redeem_scenario(self):
        store = _store(a=0)
        _purchase(store, "p-1", "a", 1000)
        recalculator, log = _recalculator(store)

        assert recalculator.recalculate_all() == 1
        assert store.get("customers/a")["points"] == 40

        ledger, _ = _ledger(store)
        ledger.adjust(PointAdjustRequest.redeem("a", 10))
        assert ledger.balance("a") == 30

        assert recalculator.recalculate_all() == 0
        assert store.get("customers/a")["points"] == 30

    def test_correction_transaction(self):
        store = _store(a=0)
        _purchase(store, "p-1", "a", 1000)
        recalculator, log = _recalculator(store)
        recalculator.recalculate_all()

        [txn] = [
            PointTransaction.from_dict(r)
            for r in store.list(POINT_TRANSACTIONS_COLLECTION)
        ]
        assert txn.transaction_type == PointTransactionType.ADJUST
        assert txn.points == 40
        assert txn.note == "System Recalculation (Rate 1:25)"
        assert txn.source == "recalculation"
        assert txn.date == NOW.isoformat()

        [record] = log.records
        assert record.module == "SETTINGS"
        assert record.new_data == {"updated_count": 1}

    def test_idempotent(self):
        store = _store(a=7, b=0, c=99)
        _purchase(store, "p-1", "a", 1000)
        _purchase(store, "p-2", "b", 260)
        recalculator, log = _recalculator(store)

        first = recalculator.recalculate_all()
        balances = {c["id"]: c["points"] for c in store.list("customers")}
        assert recalculator.recalculate_all() == 0
        assert {c["id"]: c["points"] for c in store.list("customers")} == balances
        assert first == 3
        assert balances == {"a": 40, "b": 10, "c": 0}

    def test_manual_adjust_with_similar_note_still_counts(self):
        store = _store(a=0)
        _purchase(store, "p-1", "a", 1000)
        ledger, _ = _ledger(store)
        ledger.adjust(PointAdjustRequest(
            "a", 5, PointTransactionType.ADJUST, note="System Recalculation fix",
        ))
        recalculator, log = _recalculator(store)

        assert recalculator.recalculate_all() == 1
        assert store.get("customers/a")["points"] == 45
        assert recalculator.recalculate_all() == 0
        assert len(log.records) == 1

    def test_no_change_writes_nothing(self):
        store = _store(a=0)
        recalculator, log = _recalculator(store)
        assert recalculator.recalculate_all() == 0
        assert store.list(POINT_TRANSACTIONS_COLLECTION) == []
        assert log.records == []

    def test_single_customer(self):
        store = _store(a=0, b=0)
        _purchase(store, "p-1", "a", 1000)
        _purchase(store, "p-2", "b", 1000)
        recalculator, _ = _recalculator(store)

        assert recalculator.recalculate_customer("a") == 1
        assert store.get("customers/a")["points"] == 40
        assert store.get("customers/b")["points"] == 0

    def test_batch_failure_applies_nothing(self):
        store = _store(a=0, b=0)
        _purchase(store, "p-1", "a", 1000)
        _purchase(store, "p-2", "b", 500)
        recalculator, log = _recalculator(store)

        plan = recalculator.plan()
        store.delete("customers/b")

        with pytest.raises(RecalculationFailure) as exc:
            recalculator._commit(plan)

        assert isinstance(exc.value.cause, BatchWriteRejected)
        assert exc.value.planned_changes == 2
        assert store.get("customers/a")["points"] == 0
        assert store.list(POINT_TRANSACTIONS_COLLECTION) == []
        assert log.records == []

    def test_store_error_is_wrapped(self):
        class FailingStore(InMemoryStore):
            def batch_write(self, ops):
                raise RuntimeError("connection reset")

        store = FailingStore({
            "customers/a": {"id": "a", "points": 0},
            "purchases/p-1": {
                "id": "p-1", "customer_id": "a", "date": "2026-02-01",
                "total": "1000",
            },
        })
        recalculator, _ = _recalculator(store)
        with pytest.raises(RecalculationFailure, match="connection reset"):
            recalculator.recalculate_all()
