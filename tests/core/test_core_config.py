"""
Tests for core.config — Admin-configurable ledger settings.
"""

import pytest
from decimal import Decimal

from core.config.rules import (
    DEFAULT_TIER_THRESHOLDS,
    LedgerConfig,
    MissingAccountPolicy,
)


# ── LedgerConfig Tests ───────────────────────────────────────

class TestLedgerConfigDefaults:
    def test_defaults(self):
        config = LedgerConfig()
        assert config.enable_vat is False
        assert config.vat_rate == Decimal("7")
        assert config.earn_rate == Decimal("25")
        assert config.redeem_rate == Decimal("1")
        assert config.enforce_balance is False
        assert config.missing_account_policy == MissingAccountPolicy.SKIP_LINE
        assert config.tier_thresholds == DEFAULT_TIER_THRESHOLDS

    def test_frozen_immutability(self):
        config = LedgerConfig()
        with pytest.raises(AttributeError):
            config.earn_rate = Decimal("10")

    def test_points_active(self):
        assert LedgerConfig().points_active
        assert not LedgerConfig(enable_points=False).points_active
        assert not LedgerConfig(earn_rate=0).points_active


class TestLedgerConfigValidation:
    def test_negative_rates_rejected(self):
        with pytest.raises(ValueError, match="vat_rate"):
            LedgerConfig(vat_rate=-1)
        with pytest.raises(ValueError, match="earn_rate"):
            LedgerConfig(earn_rate=-1)
        with pytest.raises(ValueError, match="redeem_rate"):
            LedgerConfig(redeem_rate=-1)

    def test_policy_from_string(self):
        config = LedgerConfig(missing_account_policy="FAIL")
        assert config.missing_account_policy == MissingAccountPolicy.FAIL

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            LedgerConfig(missing_account_policy="IGNORE")

    def test_thresholds_must_descend(self):
        with pytest.raises(ValueError, match="highest first"):
            LedgerConfig(tier_thresholds=(("silver", 100), ("gold", 500)))

    def test_thresholds_normalized(self):
        config = LedgerConfig(tier_thresholds=[["vip", "50"]])
        assert config.tier_thresholds == (("vip", 50),)


class TestLedgerConfigSources:
    def test_from_settings_document_keys(self):
        config = LedgerConfig.from_dict({
            "enableVat": True,
            "vatRate": 7,
            "enablePoints": True,
            "earnRate": 100,
            "redeemRate": "0.5",
            "shopName": "ignored",
        })
        assert config.enable_vat is True
        assert config.earn_rate == Decimal("100")
        assert config.redeem_rate == Decimal("0.5")

    def test_from_dict_skips_none(self):
        assert LedgerConfig.from_dict({"earnRate": None}).earn_rate == Decimal("25")

    def test_from_empty(self):
        assert LedgerConfig.from_dict(None) == LedgerConfig()

    def test_with_overrides(self):
        config = LedgerConfig().with_overrides(enable_vat=True)
        assert config.enable_vat is True
        assert LedgerConfig().enable_vat is False

    def test_from_django_settings(self, settings):
        settings.LEDGER = {"earnRate": 50, "missing_account_policy": "SKIP_ENTRY"}
        config = LedgerConfig.from_django_settings()
        assert config.earn_rate == Decimal("50")
        assert config.missing_account_policy == MissingAccountPolicy.SKIP_ENTRY
