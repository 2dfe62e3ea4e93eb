"""
BOL Core Config — Ledger Settings
===================================
Doctrine: No hardcoded shop settings in engine logic.
VAT, loyalty earn/redeem rates and ledger strictness come from
admin-configurable data and are injected into the engines.

Sources:
- LedgerConfig()                         defaults
- LedgerConfig.from_dict(settings_doc)   the shop settings document
- LedgerConfig.from_django_settings()    settings.LEDGER
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


# ══════════════════════════════════════════════════════════════
# MISSING ACCOUNT POLICY
# ══════════════════════════════════════════════════════════════

class MissingAccountPolicy(Enum):
    """
    What auto-posting does when a chart-of-accounts code is absent.

    SKIP_LINE   — omit just that journal line (may leave the entry
                  unbalanced; the ledger does not detect it)
    SKIP_ENTRY  — post nothing for the event
    FAIL        — raise MissingAccountError
    """
    SKIP_LINE = "SKIP_LINE"
    SKIP_ENTRY = "SKIP_ENTRY"
    FAIL = "FAIL"


# ══════════════════════════════════════════════════════════════
# TIER THRESHOLDS
# ══════════════════════════════════════════════════════════════

DEFAULT_TIER_THRESHOLDS: Tuple[Tuple[str, int], ...] = (
    ("platinum", 1000),
    ("gold", 500),
    ("silver", 100),
)


# ══════════════════════════════════════════════════════════════
# LEDGER CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LedgerConfig:
    """
    Shop-level ledger settings.

    earn_rate:   currency amount needed to earn 1 point (e.g. 25)
    redeem_rate: currency discount per redeemed point (e.g. 1)
    tier_thresholds: (tier, points) pairs, highest first; a customer
                     belongs to the first tier whose threshold their
                     balance strictly exceeds, otherwise bronze
    """

    enable_vat: bool = False
    vat_rate: Decimal = Decimal("7")
    enable_points: bool = True
    earn_rate: Decimal = Decimal("25")
    redeem_rate: Decimal = Decimal("1")
    enforce_balance: bool = False
    missing_account_policy: MissingAccountPolicy = MissingAccountPolicy.SKIP_LINE
    tier_thresholds: Tuple[Tuple[str, int], ...] = field(
        default=DEFAULT_TIER_THRESHOLDS
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "vat_rate", Decimal(str(self.vat_rate)))
        object.__setattr__(self, "earn_rate", Decimal(str(self.earn_rate)))
        object.__setattr__(self, "redeem_rate", Decimal(str(self.redeem_rate)))
        if self.vat_rate < 0:
            raise ValueError(f"vat_rate must be >= 0, got {self.vat_rate}.")
        if self.earn_rate < 0:
            raise ValueError(f"earn_rate must be >= 0, got {self.earn_rate}.")
        if self.redeem_rate < 0:
            raise ValueError(f"redeem_rate must be >= 0, got {self.redeem_rate}.")
        if not isinstance(self.missing_account_policy, MissingAccountPolicy):
            object.__setattr__(
                self,
                "missing_account_policy",
                MissingAccountPolicy(self.missing_account_policy),
            )
        thresholds = tuple(
            (str(name), int(points)) for name, points in self.tier_thresholds
        )
        if list(thresholds) != sorted(thresholds, key=lambda t: -t[1]):
            raise ValueError("tier_thresholds must be ordered highest first.")
        object.__setattr__(self, "tier_thresholds", thresholds)

    @property
    def points_active(self) -> bool:
        return self.enable_points and self.earn_rate > 0

    def with_overrides(self, **changes: Any) -> LedgerConfig:
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> LedgerConfig:
        """
        Build from a settings document.

        Accepts both snake_case keys and the shop settings document
        keys (enableVat, vatRate, enablePoints, earnRate, redeemRate).
        """
        data = dict(data or {})
        aliases = {
            "enableVat": "enable_vat",
            "vatRate": "vat_rate",
            "enablePoints": "enable_points",
            "earnRate": "earn_rate",
            "redeemRate": "redeem_rate",
            "enforceBalance": "enforce_balance",
            "missingAccountPolicy": "missing_account_policy",
            "tierThresholds": "tier_thresholds",
        }
        known = set(cls.__dataclass_fields__)
        kwargs = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_django_settings(cls) -> LedgerConfig:
        from django.conf import settings

        return cls.from_dict(getattr(settings, "LEDGER", None))
