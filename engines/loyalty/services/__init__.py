"""
BOL Loyalty Engine — Point Ledger
===================================
Append-only point transactions plus the denormalized balance on
the customer record.

adjust():
    1. atomic read-modify-write of customers/<id>: points += delta
    2. append one PointTransaction carrying the same delta
    3. audit UPDATE on CUSTOMER with old / new balance

An unknown customer stays absent (no record is created); the
transaction is still appended.

Earning: floor(amount / earn_rate), 0 when points are disabled or
the rate is not positive. Points are earned on money actually
received (deposit, payment, POS total).
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any, List, Optional

from core.audit.log import AuditTrail
from core.config.rules import LedgerConfig
from core.primitives.ledger import to_money
from core.primitives.loyalty import (
    PointTransaction,
    PointTransactionType,
    customer_points,
)
from core.store.protocol import KeyValueStore, Record, make_key
from core.time.clock import Clock, SystemClock
from engines.loyalty.commands import PointAdjustRequest
from engines.loyalty.errors import InsufficientPointsError
from engines.loyalty.events import (
    ACTION_UPDATE,
    CUSTOMER_MODULE,
    points_adjusted_description,
)
from engines.loyalty.policies import points_enabled_policy, sufficient_balance_policy

logger = logging.getLogger("bol.loyalty")

CUSTOMERS_COLLECTION = "customers"
POINT_TRANSACTIONS_COLLECTION = "point_transactions"


def calculate_earn_points(amount: Any, earn_rate: Any) -> int:
    """floor(amount / earn_rate); 0 for a non-positive rate or amount."""
    rate = Decimal(str(earn_rate or 0))
    value = to_money(amount)
    if rate <= 0 or value <= 0:
        return 0
    return int(math.floor(value / rate))


class PointLedger:
    """Per-customer point balances and their transaction history."""

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

    # ── balance movements ─────────────────────────────────────

    def adjust(
        self, request: PointAdjustRequest, *, check_balance: bool = False,
    ) -> PointTransaction:
        if check_balance:
            rejection = sufficient_balance_policy(request, self.balance)
            if rejection is not None:
                raise InsufficientPointsError(
                    request.customer_id,
                    rejection.details["balance"],
                    rejection.details["needed"],
                )

        old_points = 0

        def apply(current: Optional[Record]) -> Optional[Record]:
            nonlocal old_points
            if current is None:
                return None
            old_points = customer_points(current)
            current["points"] = old_points + request.delta
            return current

        committed = self._store.transact(
            make_key(CUSTOMERS_COLLECTION, request.customer_id), apply
        )
        if committed is None:
            logger.warning(
                f"Customer {request.customer_id} not found; "
                f"transaction recorded without a balance update"
            )

        transaction = PointTransaction(
            transaction_id=self._store.new_id(POINT_TRANSACTIONS_COLLECTION),
            customer_id=request.customer_id,
            date=self._clock.now().isoformat(),
            transaction_type=request.transaction_type,
            points=request.delta,
            note=request.note,
            related_id=request.related_id,
        )
        self._store.set(
            make_key(POINT_TRANSACTIONS_COLLECTION, transaction.transaction_id),
            transaction.to_dict(),
        )

        balance_written = committed is not None
        new_points = old_points + request.delta
        logger.info(
            f"Customer {request.customer_id} points "
            f"{request.transaction_type.value} {request.delta:+d} "
            f"({old_points} -> {new_points})"
        )
        self._audit.record(
            ACTION_UPDATE,
            CUSTOMER_MODULE,
            points_adjusted_description(
                request.transaction_type.value, request.delta
            ),
            ref_id=request.customer_id,
            old_data={"points": old_points} if balance_written else None,
            new_data={"points": new_points} if balance_written else None,
        )
        return transaction

    def earn_for(
        self, customer_id: str, amount: Any, *, note: str = "",
        related_id: Optional[str] = None,
    ) -> int:
        """Award points for money received. Returns points awarded."""
        points = self.earnable_points(amount)
        if points > 0:
            self.adjust(PointAdjustRequest(
                customer_id=customer_id,
                delta=points,
                transaction_type=PointTransactionType.EARN,
                note=note,
                related_id=related_id,
            ))
        return points

    def reverse_earned(
        self, customer_id: str, amount: Any, *, note: str = "",
        related_id: Optional[str] = None,
    ) -> int:
        """Take back what `amount` earned, as an adjust. Returns points removed."""
        points = self.earnable_points(amount)
        if points > 0:
            self.adjust(PointAdjustRequest(
                customer_id=customer_id,
                delta=-points,
                transaction_type=PointTransactionType.ADJUST,
                note=note,
                related_id=related_id,
            ))
        return points

    def refund_redeemed(
        self, customer_id: str, points: int, *, note: str = "",
        related_id: Optional[str] = None,
    ) -> int:
        """Give back points that were spent on a deleted sale."""
        if points > 0:
            self.adjust(PointAdjustRequest(
                customer_id=customer_id,
                delta=points,
                transaction_type=PointTransactionType.ADJUST,
                note=note,
                related_id=related_id,
            ))
        return max(points, 0)

    # ── calculations ──────────────────────────────────────────

    def earnable_points(self, amount: Any) -> int:
        if points_enabled_policy(self._config) is not None:
            return 0
        return calculate_earn_points(amount, self._config.earn_rate)

    def redeem_value(self, points: int) -> Decimal:
        """Currency discount worth `points`."""
        return to_money(Decimal(points) * self._config.redeem_rate)

    # ── reads ─────────────────────────────────────────────────

    def balance(self, customer_id: str) -> int:
        return customer_points(
            self._store.get(make_key(CUSTOMERS_COLLECTION, customer_id))
        )

    def transactions(self, customer_id: Optional[str] = None) -> List[PointTransaction]:
        records = self._store.list(POINT_TRANSACTIONS_COLLECTION)
        transactions = [PointTransaction.from_dict(r) for r in records]
        if customer_id is not None:
            transactions = [t for t in transactions if t.customer_id == customer_id]
        return sorted(transactions, key=lambda t: t.date)
