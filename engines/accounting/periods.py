"""
BOL Accounting Engine — Period Lock Manager
=============================================
Tracks which (year, month) periods are closed.

States:
    Open    — no lock record for (year, month)
    Closed  — lock record exists with is_closed=True

Rules:
- close() is idempotent: closing a closed period logs a warning
  and returns the existing lock record
- reopen() deletes the lock record; no-op if the period is open
- There is no "was once closed" history
- Lock records are keyed by period ("2026-02"), so at most one
  record exists per (year, month)

The journal ledger checks is_locked() before writing. The check and
the write are separate store calls; a period closed between them
does not stop that one write.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from core.audit.log import AuditTrail
from core.identity.actor import IdentityProvider, resolve_display_name
from core.primitives.ledger import AccountingPeriod, validate_period
from core.store.protocol import KeyValueStore, Record, make_key
from core.time.clock import Clock, SystemClock
from engines.accounting.events import (
    ACCOUNTING_MODULE,
    ACTION_UPDATE,
    period_closed_description,
    period_reopened_description,
)

logger = logging.getLogger("bol.accounting")

PERIODS_COLLECTION = "accounting_periods"


def period_key(year: int, month: int) -> str:
    validate_period(year, month)
    return make_key(PERIODS_COLLECTION, f"{year:04d}-{month:02d}")


class PeriodLockManager:
    """Closes and reopens accounting periods."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        audit: Optional[AuditTrail] = None,
        identity: Optional[IdentityProvider] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._audit = audit or AuditTrail()
        self._identity = identity
        self._clock = clock or SystemClock()

    def is_locked(self, year: int, month: int) -> bool:
        record = self._store.get(period_key(year, month))
        return bool(record and record.get("is_closed"))

    def get(self, year: int, month: int) -> Optional[AccountingPeriod]:
        record = self._store.get(period_key(year, month))
        if not record or not record.get("is_closed"):
            return None
        return AccountingPeriod.from_dict(record)

    def close(self, year: int, month: int) -> AccountingPeriod:
        key = period_key(year, month)
        candidate = AccountingPeriod(
            period_id=f"{year:04d}-{month:02d}",
            year=year,
            month=month,
            is_closed=True,
            closed_by=resolve_display_name(self._identity),
            closed_at=self._clock.now().isoformat(),
        )
        already_closed = False

        def apply(current: Optional[Record]) -> Record:
            nonlocal already_closed
            if current and current.get("is_closed"):
                already_closed = True
                return current
            return candidate.to_dict()

        committed = self._store.transact(key, apply)
        period = AccountingPeriod.from_dict(committed)

        if already_closed:
            logger.warning(f"Period {month}/{year} already closed")
            return period

        logger.info(f"Period {month}/{year} closed by {period.closed_by}")
        self._audit.record(
            ACTION_UPDATE,
            ACCOUNTING_MODULE,
            period_closed_description(year, month),
            ref_id=period.period_id,
            new_data=period,
        )
        return period

    def reopen(self, year: int, month: int) -> bool:
        """Delete the lock record. Returns False if the period was open."""
        key = period_key(year, month)
        removed: List[Record] = []

        def apply(current: Optional[Record]) -> None:
            if current and current.get("is_closed"):
                removed.append(current)
            return None

        self._store.transact(key, apply)
        if not removed:
            logger.info(f"Period {month}/{year} is not closed; nothing to reopen")
            return False

        period = AccountingPeriod.from_dict(removed[0])
        logger.info(f"Period {month}/{year} reopened")
        self._audit.record(
            ACTION_UPDATE,
            ACCOUNTING_MODULE,
            period_reopened_description(year, month),
            ref_id=period.period_id,
            old_data=period,
        )
        return True

    def closed_periods(self) -> List[AccountingPeriod]:
        return sorted(
            (
                AccountingPeriod.from_dict(record)
                for record in self._store.list(PERIODS_COLLECTION)
                if record.get("is_closed")
            ),
            key=lambda p: (p.year, p.month),
        )
