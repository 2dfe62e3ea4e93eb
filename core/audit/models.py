"""
BOL Core Audit — Immutable Audit Models
==========================================
Append-only activity records. One per mutating ledger operation.
Frozen dataclasses — once created, never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


VALID_ACTION_TYPES = frozenset({"CREATE", "UPDATE", "DELETE"})

VALID_MODULES = frozenset({
    "ACCOUNTING", "AUTH", "CUSTOMER", "INVOICE", "ORDER", "PRODUCT",
    "SETTINGS", "STOCK",
})


# ══════════════════════════════════════════════════════════════
# AUDIT RECORD
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable record of a mutating action.

    old_data / new_data are JSON snapshots (before / after).
    Absent sides are None, never an empty dict.
    """

    record_id: str
    timestamp: str
    user_id: str
    user_name: str
    action_type: str
    module: str
    description: str
    ref_id: Optional[str] = None
    old_data: Optional[Any] = None
    new_data: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.action_type not in VALID_ACTION_TYPES:
            raise ValueError(
                f"AuditRecord action_type must be one of "
                f"{sorted(VALID_ACTION_TYPES)}, got '{self.action_type}'."
            )
        if self.module not in VALID_MODULES:
            raise ValueError(
                f"AuditRecord module must be one of "
                f"{sorted(VALID_MODULES)}, got '{self.module}'."
            )
        if not self.description:
            raise ValueError("description must be non-empty.")

    def to_dict(self) -> dict:
        data = {
            "id": self.record_id,
            "timestamp": self.timestamp,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "action_type": self.action_type,
            "module": self.module,
            "description": self.description,
            "ref_id": self.ref_id,
            "old_data": self.old_data,
            "new_data": self.new_data,
        }
        return {k: v for k, v in data.items() if v is not None}
