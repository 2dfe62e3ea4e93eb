"""
BOL Loyalty Engine — Point Recalculation
==========================================
Replays spend history to reconcile each customer's denormalized
balance with what it should be. History is never rewritten; drift
is bridged by one `adjust` transaction per changed customer.

Per customer, optionally bounded by [start_date, end_date]:
    1. total_spend       = Σ purchase totals + Σ prescription nets in range
    2. target_earned     = floor(total_spend / rate)
    3. non_sales_balance = Σ points of redeem + adjust transactions,
                           excluding earlier recalculation corrections
                           (all history, NOT range-bounded)
    4. new_balance       = max(0, target_earned + non_sales_balance)
    5. diff              = new_balance − customer.points
    6. diff ≠ 0          → set balance, append adjust(diff) dated now

rate is the configured earn rate, or 100 when it is not set.
Purchases and prescriptions without a date are left out with a warning.

plan_recalculation() is pure: snapshot in, writes out.
PointRecalculator commits the plan with ONE batch write. A failed
batch raises RecalculationFailure and nothing is applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.audit.log import AuditTrail
from core.config.rules import LedgerConfig
from core.primitives.loyalty import (
    RECALCULATION_SOURCE,
    PointTransaction,
    PointTransactionType,
    customer_points,
    non_sales_total,
)
from core.primitives.sales import Prescription, Purchase
from core.store.protocol import KeyValueStore, Record, WriteOp, make_key
from core.time.clock import Clock, SystemClock
from core.time.temporal import DateRange
from engines.loyalty.errors import RecalculationFailure
from engines.loyalty.events import (
    ACTION_UPDATE,
    SETTINGS_MODULE,
    recalculation_description,
    recalculation_note,
)
from engines.loyalty.services import (
    CUSTOMERS_COLLECTION,
    POINT_TRANSACTIONS_COLLECTION,
    calculate_earn_points,
)

logger = logging.getLogger("bol.loyalty")

PURCHASES_COLLECTION = "purchases"
PRESCRIPTIONS_COLLECTION = "prescriptions"

FALLBACK_EARN_RATE = Decimal("100")


def effective_earn_rate(config: LedgerConfig) -> Decimal:
    return config.earn_rate if config.earn_rate > 0 else FALLBACK_EARN_RATE


# ══════════════════════════════════════════════════════════════
# SNAPSHOT & PLAN
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RecalculationSnapshot:
    """Everything recalculation reads, captured at one moment."""
    customers: Tuple[Record, ...]
    purchases: Tuple[Purchase, ...]
    prescriptions: Tuple[Prescription, ...]
    transactions: Tuple[PointTransaction, ...]

    @classmethod
    def load(cls, store: KeyValueStore) -> RecalculationSnapshot:
        return cls(
            customers=tuple(store.list(CUSTOMERS_COLLECTION)),
            purchases=tuple(
                Purchase.from_dict(r) for r in store.list(PURCHASES_COLLECTION)
            ),
            prescriptions=tuple(
                Prescription.from_dict(r)
                for r in store.list(PRESCRIPTIONS_COLLECTION)
            ),
            transactions=tuple(
                PointTransaction.from_dict(r)
                for r in store.list(POINT_TRANSACTIONS_COLLECTION)
            ),
        )


@dataclass(frozen=True)
class CustomerRecalculation:
    customer_id: str
    total_spend: Decimal
    target_earned: int
    non_sales_balance: int
    current_balance: int
    new_balance: int

    @property
    def diff(self) -> int:
        return self.new_balance - self.current_balance

    @property
    def changed(self) -> bool:
        return self.diff != 0


@dataclass(frozen=True)
class RecalculationPlan:
    rate: Decimal
    customers: Tuple[CustomerRecalculation, ...]
    writes: Tuple[WriteOp, ...]

    @property
    def changed(self) -> Tuple[CustomerRecalculation, ...]:
        return tuple(c for c in self.customers if c.changed)

    @property
    def changed_count(self) -> int:
        return len(self.changed)


def recalculate_customer_balance(
    customer: Record,
    purchases: Sequence[Purchase],
    prescriptions: Sequence[Prescription],
    transactions: Sequence[PointTransaction],
    *,
    rate: Decimal,
    date_range: DateRange,
) -> CustomerRecalculation:
    """Steps 1-5 for one customer. Inputs must already be that customer's."""
    total_spend = sum(
        (p.spend for p in purchases if date_range.contains(p.date)),
        Decimal("0.00"),
    ) + sum(
        (p.spend for p in prescriptions if date_range.contains(p.date)),
        Decimal("0.00"),
    )
    target_earned = calculate_earn_points(total_spend, rate)
    non_sales = non_sales_total(transactions)
    return CustomerRecalculation(
        customer_id=str(customer["id"]),
        total_spend=total_spend,
        target_earned=target_earned,
        non_sales_balance=non_sales,
        current_balance=customer_points(customer),
        new_balance=max(0, target_earned + non_sales),
    )


def _dated(records, label: str, record_id: Callable) -> list:
    """Records that carry a date; undated ones are logged and left out."""
    dated = []
    for record in records:
        if not record.date:
            logger.warning(
                f"{label} {record_id(record)} has no date; "
                f"left out of point recalculation"
            )
            continue
        dated.append(record)
    return dated


def plan_recalculation(
    snapshot: RecalculationSnapshot,
    *,
    rate: Decimal,
    date_range: Optional[DateRange] = None,
    now: str,
    new_id: Callable[[], str],
) -> RecalculationPlan:
    """Compute every customer's new balance and the writes to commit."""
    date_range = date_range or DateRange()

    purchases: Dict[str, List[Purchase]] = {}
    for p in _dated(snapshot.purchases, "Purchase", lambda r: r.purchase_id):
        purchases.setdefault(p.customer_id, []).append(p)
    prescriptions: Dict[str, List[Prescription]] = {}
    for p in _dated(
        snapshot.prescriptions, "Prescription", lambda r: r.prescription_id,
    ):
        prescriptions.setdefault(p.customer_id, []).append(p)
    transactions: Dict[str, List[PointTransaction]] = {}
    for t in snapshot.transactions:
        transactions.setdefault(t.customer_id, []).append(t)

    results: List[CustomerRecalculation] = []
    writes: List[WriteOp] = []
    for customer in snapshot.customers:
        customer_id = str(customer["id"])
        result = recalculate_customer_balance(
            customer,
            purchases.get(customer_id, ()),
            prescriptions.get(customer_id, ()),
            transactions.get(customer_id, ()),
            rate=rate,
            date_range=date_range,
        )
        results.append(result)
        if not result.changed:
            continue

        correction = PointTransaction(
            transaction_id=new_id(),
            customer_id=customer_id,
            date=now,
            transaction_type=PointTransactionType.ADJUST,
            points=result.diff,
            note=recalculation_note(rate),
            source=RECALCULATION_SOURCE,
        )
        writes.append(WriteOp.merge(
            make_key(CUSTOMERS_COLLECTION, customer_id),
            {"points": result.new_balance},
        ))
        writes.append(WriteOp.set(
            make_key(POINT_TRANSACTIONS_COLLECTION, correction.transaction_id),
            correction.to_dict(),
        ))

    return RecalculationPlan(
        rate=rate, customers=tuple(results), writes=tuple(writes),
    )


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class PointRecalculator:
    """Loads a snapshot, plans, and commits in one batch."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        config: Optional[LedgerConfig] = None,
        audit: Optional[AuditTrail] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._config = config or LedgerConfig()
        self._audit = audit or AuditTrail()
        self._clock = clock or SystemClock()

    def plan(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        *,
        customer_id: Optional[str] = None,
    ) -> RecalculationPlan:
        snapshot = RecalculationSnapshot.load(self._store)
        if customer_id is not None:
            snapshot = RecalculationSnapshot(
                customers=tuple(
                    c for c in snapshot.customers if str(c.get("id")) == customer_id
                ),
                purchases=snapshot.purchases,
                prescriptions=snapshot.prescriptions,
                transactions=snapshot.transactions,
            )
        return plan_recalculation(
            snapshot,
            rate=effective_earn_rate(self._config),
            date_range=DateRange(start_date, end_date),
            now=self._clock.now().isoformat(),
            new_id=lambda: self._store.new_id(POINT_TRANSACTIONS_COLLECTION),
        )

    def recalculate_all(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None,
    ) -> int:
        """Returns the number of customers whose balance changed."""
        return self._commit(self.plan(start_date, end_date))

    def recalculate_customer(
        self,
        customer_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> int:
        """Single-customer variant; returns 1 if the balance changed, else 0."""
        return self._commit(
            self.plan(start_date, end_date, customer_id=customer_id)
        )

    def _commit(self, plan: RecalculationPlan) -> int:
        count = plan.changed_count
        if count == 0:
            logger.info("Point recalculation: no balances changed")
            return 0

        try:
            self._store.batch_write(plan.writes)
        except Exception as exc:
            logger.error(f"Point recalculation batch failed: {exc}")
            raise RecalculationFailure(count, exc) from exc

        logger.info(
            f"Point recalculation updated {count} customers (Rate 1:{plan.rate})"
        )
        self._audit.record(
            ACTION_UPDATE,
            SETTINGS_MODULE,
            recalculation_description(count, plan.rate),
            new_data={"updated_count": count},
        )
        return count
