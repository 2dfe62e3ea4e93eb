"""
BOL Command Layer — Rejection Model
======================================
Structured rejection reasons returned by engine policies.

A policy never raises. It returns None (allowed) or a
RejectionReason. The owning service decides which domain
exception the rejection becomes.

Every rejection must be:
- Deterministic (same input → same rejection)
- Auditable (code + message + policy)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a denied operation.

    Fields:
        code:        Machine-readable rejection code (e.g. 'PERIOD_LOCKED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
        details:     Optional structured context (year, month, totals...).
    """

    code: str
    message: str
    policy_name: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
            "details": dict(self.details),
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Accounting ────────────────────────────────────────────
    PERIOD_LOCKED = "PERIOD_LOCKED"
    UNBALANCED_ENTRY = "UNBALANCED_ENTRY"

    # ── Loyalty ───────────────────────────────────────────────
    POINTS_DISABLED = "POINTS_DISABLED"
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
