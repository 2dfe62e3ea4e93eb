"""
BOL Core Audit — Public API
==============================
Immutable activity logging for ledger mutations.
"""

from core.audit.functions import create_audit_record, to_snapshot
from core.audit.log import (
    ACTIVITY_LOG_COLLECTION,
    AuditLog,
    AuditTrail,
    InMemoryAuditLog,
    StoreAuditLog,
)
from core.audit.models import AuditRecord

__all__ = [
    "AuditRecord",
    "AuditLog",
    "AuditTrail",
    "InMemoryAuditLog",
    "StoreAuditLog",
    "ACTIVITY_LOG_COLLECTION",
    "create_audit_record",
    "to_snapshot",
]
