"""
BOL Loyalty Engine — Audit Events
===================================
Engine: Loyalty

    point adjustment  → UPDATE  CUSTOMER  (before/after {"points": n})
    recalculation     → UPDATE  SETTINGS  (after {"updated_count": n})
"""

from __future__ import annotations

from decimal import Decimal

from core.primitives.loyalty import RECALCULATION_NOTE_PREFIX


CUSTOMER_MODULE = "CUSTOMER"
SETTINGS_MODULE = "SETTINGS"

ACTION_UPDATE = "UPDATE"


def points_adjusted_description(transaction_type: str, delta: int) -> str:
    return f"Points adjusted: {transaction_type} {delta} points"


def recalculation_description(updated_count: int, rate: Decimal) -> str:
    return (
        f"Points recalculated: {updated_count} customers updated "
        f"(Rate 1:{rate})"
    )


def recalculation_note(rate: Decimal) -> str:
    return f"{RECALCULATION_NOTE_PREFIX} (Rate 1:{rate})"
