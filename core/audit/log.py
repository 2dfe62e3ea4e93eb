"""
BOL Core Audit — Audit Log Collaborator
=========================================
The ledger calls the audit log after every mutating operation
but never depends on its success.

    record(action_type, module, description, ref_id, old, new)

Implementations:
    StoreAuditLog     — appends to the `activity_logs` collection
    InMemoryAuditLog  — list-backed, for tests

AuditTrail wraps any implementation with identity + clock stamping
and failure isolation: an audit failure is logged, never raised.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol

from core.audit.functions import create_audit_record
from core.audit.models import AuditRecord
from core.identity.actor import (
    IdentityProvider,
    resolve_actor_id,
    resolve_display_name,
)
from core.store.protocol import KeyValueStore, make_key
from core.time.clock import Clock, SystemClock

logger = logging.getLogger("bol.audit")

ACTIVITY_LOG_COLLECTION = "activity_logs"


class AuditLog(Protocol):
    def append(self, record: AuditRecord) -> None:
        ...  # pragma: no cover


class InMemoryAuditLog:
    """Append-only list of audit records."""

    def __init__(self) -> None:
        self._records: List[AuditRecord] = []

    def append(self, record: AuditRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> List[AuditRecord]:
        return list(self._records)

    def for_module(self, module: str) -> List[AuditRecord]:
        return [r for r in self._records if r.module == module]


class StoreAuditLog:
    """Persists audit records as documents in the store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def append(self, record: AuditRecord) -> None:
        self._store.set(
            make_key(ACTIVITY_LOG_COLLECTION, record.record_id),
            record.to_dict(),
        )


class AuditTrail:
    """Stamps and forwards audit records; swallows nothing silently."""

    def __init__(
        self,
        audit_log: Optional[AuditLog] = None,
        *,
        identity: Optional[IdentityProvider] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._audit_log = audit_log
        self._identity = identity
        self._clock = clock or SystemClock()

    def record(
        self,
        action_type: str,
        module: str,
        description: str,
        ref_id: Optional[str] = None,
        old_data: Any = None,
        new_data: Any = None,
    ) -> Optional[AuditRecord]:
        if self._audit_log is None:
            return None
        try:
            record = create_audit_record(
                action_type=action_type,
                module=module,
                description=description,
                user_id=resolve_actor_id(self._identity),
                user_name=resolve_display_name(self._identity),
                occurred_at=self._clock.now(),
                ref_id=ref_id,
                old_data=old_data,
                new_data=new_data,
            )
            self._audit_log.append(record)
            return record
        except Exception:
            logger.exception(
                f"Audit record failed: {action_type} {module} ref={ref_id}"
            )
            return None
