"""
BOL Core Audit — Pure Audit Functions
========================================
Factory and snapshot helpers for audit records.
All functions are pure — they return new objects, never mutate.
"""

from __future__ import annotations

import dataclasses
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from core.audit.models import AuditRecord


# ══════════════════════════════════════════════════════════════
# SNAPSHOTS
# ══════════════════════════════════════════════════════════════

def to_snapshot(value: Any) -> Any:
    """
    JSON-compatible deep copy of a value.

    Objects with to_dict() are serialized through it. None values
    inside mappings are dropped, matching how records are stored.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return to_snapshot(value.to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_snapshot(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {
            str(k): to_snapshot(v) for k, v in value.items() if v is not None
        }
    if isinstance(value, (list, tuple)):
        return [to_snapshot(v) for v in value]
    raise TypeError(f"Cannot snapshot {type(value).__name__}.")


# ══════════════════════════════════════════════════════════════
# AUDIT RECORD CREATION
# ══════════════════════════════════════════════════════════════

def create_audit_record(
    *,
    action_type: str,
    module: str,
    description: str,
    user_id: str,
    user_name: str,
    occurred_at: datetime,
    ref_id: Optional[str] = None,
    old_data: Any = None,
    new_data: Any = None,
) -> AuditRecord:
    """Create an immutable audit record with snapshotted payloads."""
    return AuditRecord(
        record_id=uuid.uuid4().hex,
        timestamp=occurred_at.isoformat(),
        user_id=user_id,
        user_name=user_name,
        action_type=action_type,
        module=module,
        description=description,
        ref_id=ref_id,
        old_data=to_snapshot(old_data),
        new_data=to_snapshot(new_data),
    )
