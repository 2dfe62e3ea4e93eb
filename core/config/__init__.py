"""
BOL Core Config — Public API
===============================
Admin-configurable ledger settings (VAT, loyalty, strictness).
"""

from core.config.rules import (
    DEFAULT_TIER_THRESHOLDS,
    LedgerConfig,
    MissingAccountPolicy,
)

__all__ = [
    "LedgerConfig",
    "MissingAccountPolicy",
    "DEFAULT_TIER_THRESHOLDS",
]
