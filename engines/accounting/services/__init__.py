"""
BOL Accounting Engine — Journal Ledger Service
================================================
Stores journal entries in the `journal_entries` collection.

post(request)         → period-lock check, assign id/author/time, persist
update(id, patch)     → shallow field patch (no period-lock re-check)
delete(id)            → remove outright (no period-lock re-check)

Balance (Σdebit == Σcredit within 0.01) is NOT checked unless
LedgerConfig.enforce_balance is on. Callers building entries by hand
are responsible for balancing them.

Every mutation emits one audit record; audit failure never fails
the mutation.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.audit.functions import to_snapshot
from core.audit.log import AuditTrail
from core.config.rules import LedgerConfig
from core.identity.actor import IdentityProvider, resolve_display_name
from core.primitives.ledger import JournalEntry
from core.store.protocol import KeyValueStore, make_key
from core.time.clock import Clock, SystemClock
from engines.accounting.commands import JournalPostRequest
from engines.accounting.errors import (
    JournalEntryNotFoundError,
    PeriodLockedError,
    UnbalancedEntryError,
)
from engines.accounting.events import (
    ACCOUNTING_MODULE,
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    journal_deleted_description,
    journal_posted_description,
    journal_updated_description,
)
from engines.accounting.periods import PeriodLockManager
from engines.accounting.policies import balanced_entry_policy, period_open_policy

logger = logging.getLogger("bol.accounting")

JOURNAL_COLLECTION = "journal_entries"

# Fields a patch may never overwrite.
_IMMUTABLE_FIELDS = frozenset({"id"})


class JournalLedger:
    """Journal entry store with period locking."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        periods: Optional[PeriodLockManager] = None,
        config: Optional[LedgerConfig] = None,
        audit: Optional[AuditTrail] = None,
        identity: Optional[IdentityProvider] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._config = config or LedgerConfig()
        self._audit = audit or AuditTrail()
        self._identity = identity
        self._clock = clock or SystemClock()
        self._periods = periods or PeriodLockManager(
            store, audit=self._audit, identity=identity, clock=self._clock,
        )

    @property
    def periods(self) -> PeriodLockManager:
        return self._periods

    # ── writes ────────────────────────────────────────────────

    def post(self, request: JournalPostRequest) -> str:
        year, month = request.period
        rejection = period_open_policy(
            year, month, self._periods.is_locked(year, month)
        )
        if rejection is not None:
            logger.warning(f"Post rejected: {rejection.message}")
            raise PeriodLockedError(year, month)

        if self._config.enforce_balance:
            self._check_balance(request.lines)

        entry_id = self._store.new_id(JOURNAL_COLLECTION)
        entry = request.to_entry(
            entry_id=entry_id,
            created_by=resolve_display_name(self._identity),
            created_at=self._clock.now().isoformat(),
        )
        self._store.set(make_key(JOURNAL_COLLECTION, entry_id), entry.to_dict())

        logger.info(
            f"Journal entry {entry_id} posted ({entry.reference}, "
            f"{entry.total_amount})"
        )
        self._audit.record(
            ACTION_CREATE,
            ACCOUNTING_MODULE,
            journal_posted_description(entry),
            ref_id=entry_id,
            new_data=entry,
        )
        return entry_id

    def update(self, entry_id: str, patch: Dict[str, Any]) -> JournalEntry:
        old = self._require(entry_id)
        fields = {
            k: v for k, v in to_snapshot(dict(patch)).items()
            if k not in _IMMUTABLE_FIELDS
        }
        updated = old.patched(fields)

        if self._config.enforce_balance and "lines" in fields:
            self._check_balance(updated.lines)

        self._store.merge(make_key(JOURNAL_COLLECTION, entry_id), fields)

        logger.info(f"Journal entry {entry_id} updated: {sorted(fields)}")
        self._audit.record(
            ACTION_UPDATE,
            ACCOUNTING_MODULE,
            journal_updated_description(entry_id),
            ref_id=entry_id,
            old_data=old,
            new_data=fields,
        )
        return updated

    def delete(self, entry_id: str) -> JournalEntry:
        old = self._require(entry_id)
        self._store.delete(make_key(JOURNAL_COLLECTION, entry_id))

        logger.info(f"Journal entry {entry_id} deleted")
        self._audit.record(
            ACTION_DELETE,
            ACCOUNTING_MODULE,
            journal_deleted_description(entry_id),
            ref_id=entry_id,
            old_data=old,
        )
        return old

    # ── reads ─────────────────────────────────────────────────

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        record = self._store.get(make_key(JOURNAL_COLLECTION, entry_id))
        return JournalEntry.from_dict(record) if record else None

    def list_entries(
        self, year: Optional[int] = None, month: Optional[int] = None,
    ) -> List[JournalEntry]:
        entries = [
            JournalEntry.from_dict(record)
            for record in self._store.list(JOURNAL_COLLECTION)
        ]
        if year is not None:
            entries = [e for e in entries if e.period[0] == year]
        if month is not None:
            entries = [e for e in entries if e.period[1] == month]
        return sorted(entries, key=lambda e: (e.date, e.created_at))

    # ── internals ─────────────────────────────────────────────

    def _require(self, entry_id: str) -> JournalEntry:
        entry = self.get(entry_id)
        if entry is None:
            raise JournalEntryNotFoundError(entry_id)
        return entry

    def _check_balance(self, lines) -> None:
        rejection = balanced_entry_policy(lines)
        if rejection is not None:
            logger.warning(f"Post rejected: {rejection.message}")
            raise UnbalancedEntryError(
                Decimal(rejection.details["total_debit"]),
                Decimal(rejection.details["total_credit"]),
            )
