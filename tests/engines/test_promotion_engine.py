"""
BOL Promotion Engine Tests
============================
Tier lookup, rule evaluation and the applicable-promotion list.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.audit.log import AuditTrail, InMemoryAuditLog
from core.config.rules import DEFAULT_TIER_THRESHOLDS, LedgerConfig
from core.store.memory import InMemoryStore
from core.time.clock import FixedClock
from engines.promotion.commands import PromotionQuoteRequest
from engines.promotion.models import (
    BRAND_DISCOUNT,
    BUNDLE_FRAME_LENS,
    SPEND_SAVE,
    TIER_DISCOUNT,
    TIME_BASED,
    Promotion,
    PromotionConditions,
)
from engines.promotion.policies import evaluate_promotion, tier_for_points
from engines.promotion.services import PromotionCalculator, PromotionCatalog

NOW = datetime(2026, 2, 19, 12, 0, 0, tzinfo=timezone.utc)


def _promo(pid, kind, **conditions):
    return Promotion(
        promotion_id=pid,
        name=pid.replace("-", " ").title(),
        promotion_type=kind,
        start_date="2026-02-01",
        end_date="2026-02-28",
        conditions=PromotionConditions(**conditions),
    )


def _calculator(*promotions, points=0, now=NOW):
    store = InMemoryStore({"customers/c-1": {"id": "c-1", "points": points}})
    for promo in promotions:
        store.set(f"promotions/{promo.promotion_id}", promo.to_dict())
    return PromotionCalculator(store, config=LedgerConfig(), clock=FixedClock(now))


def _request(frame=2000, lens=1500, brand=None):
    return PromotionQuoteRequest("c-1", frame, lens, brand)


# ══════════════════════════════════════════════════════════════
# TIERS
# ══════════════════════════════════════════════════════════════

class TestTierForPoints:
    @pytest.mark.parametrize("points,tier", [
        (0, "bronze"),
        (100, "bronze"),
        (101, "silver"),
        (500, "silver"),
        (501, "gold"),
        (1000, "gold"),
        (1001, "platinum"),
    ])
    def test_strictly_greater_than(self, points, tier):
        assert tier_for_points(points, DEFAULT_TIER_THRESHOLDS) == tier


# ══════════════════════════════════════════════════════════════
# MODELS
# ══════════════════════════════════════════════════════════════

class TestPromotionModel:
    def test_round_trip(self):
        promo = _promo("tier-1", TIER_DISCOUNT, tier_rates={"Gold": 10})
        again = Promotion.from_dict(promo.to_dict())
        assert again == promo
        assert again.conditions.tier_rates == {"gold": Decimal("10")}

    def test_runs_on(self):
        promo = _promo("p", SPEND_SAVE)
        assert promo.runs_on("2026-02-01")
        assert promo.runs_on("2026-02-28T23:00:00")
        assert not promo.runs_on("2026-03-01")

    def test_inactive_never_runs(self):
        promo = Promotion("p", "P", SPEND_SAVE, is_active=False)
        assert not promo.runs_on("2026-02-19")

    def test_bad_window_rejected(self):
        with pytest.raises(ValueError):
            Promotion("p", "P", SPEND_SAVE, start_date="2026-03-01", end_date="2026-02-01")

    def test_request_rejects_negative(self):
        with pytest.raises(ValueError):
            PromotionQuoteRequest("c-1", -1, 0)


# ══════════════════════════════════════════════════════════════
# RULES
# ══════════════════════════════════════════════════════════════

class TestRuleEvaluation:
    def _eval(self, promo, request=None, tier="bronze", time="12:00"):
        return evaluate_promotion(
            promo, request or _request(), tier=tier, time_of_day=time,
        )

    def test_bundle_capped_by_lens(self):
        promo = _promo("b", BUNDLE_FRAME_LENS, discount_amount=2000)
        assert self._eval(promo) == Decimal("1500.00")
        promo = _promo("b", BUNDLE_FRAME_LENS, discount_amount=500)
        assert self._eval(promo) == Decimal("500.00")

    def test_bundle_without_both_not_applicable(self):
        promo = _promo("b", BUNDLE_FRAME_LENS, discount_amount=500)
        assert self._eval(promo, _request(lens=0)) is None
        assert self._eval(promo, _request(frame=0)) is None

    def test_tier_rates(self):
        promo = _promo("t", TIER_DISCOUNT, tier_rates={"gold": 10, "silver": 5})
        assert self._eval(promo, tier="gold") == Decimal("350")
        assert self._eval(promo, tier="bronze") == 0

    def test_spend_save_threshold(self):
        promo = _promo("s", SPEND_SAVE, min_spend=500, discount_amount=50)
        assert self._eval(promo, _request(300, 100)) is None
        assert self._eval(promo, _request(300, 200)) == Decimal("50.00")

    def test_time_based_window(self):
        promo = _promo(
            "h", TIME_BASED, start_hour="10:00", end_hour="14:00", discount_percent=10,
        )
        assert self._eval(promo, time="10:00") == Decimal("350")
        assert self._eval(promo, time="14:01") is None

    def test_time_based_without_window_not_applicable(self):
        promo = _promo("h", TIME_BASED, start_hour="10:00", discount_percent=10)
        assert self._eval(promo) is None
        assert self._eval(_promo("h", TIME_BASED, discount_percent=10)) is None

    def test_brand_contains_case_insensitive(self):
        promo = _promo("r", BRAND_DISCOUNT, target_brand="ray-ban", discount_percent=20)
        assert self._eval(promo, _request(brand="Ray-Ban Aviator")) == Decimal("400")
        assert self._eval(promo, _request(brand="Oakley")) is None
        assert self._eval(promo, _request(brand=None)) is None

    def test_brand_without_target_not_applicable(self):
        promo = _promo("r", BRAND_DISCOUNT, discount_percent=20)
        assert self._eval(promo, _request(brand="Ray-Ban")) is None

    def test_unknown_type_skipped(self):
        assert self._eval(_promo("x", "buy_one_get_one")) is None


# ══════════════════════════════════════════════════════════════
# CALCULATOR
# ══════════════════════════════════════════════════════════════

class TestPromotionCalculator:
    def test_spend_save_scenario(self):
        calc = _calculator(_promo("s", SPEND_SAVE, min_spend=500, discount_amount=50))
        assert calc.get_applicable_promotions(_request(300, 100)) == []

        [quote] = calc.get_applicable_promotions(_request(400, 200))
        assert quote.promotion.promotion_id == "s"
        assert quote.discount_amount == 50

    def test_sorted_descending_and_floored(self):
        calc = _calculator(
            _promo("bundle", BUNDLE_FRAME_LENS, discount_amount=300),
            _promo("hour", TIME_BASED, start_hour="11:00", end_hour="13:00",
                   discount_percent="3.3"),
            _promo("save", SPEND_SAVE, min_spend=1000, discount_amount=100),
        )
        quotes = calc.get_applicable_promotions(_request(1999, 1500))
        assert [q.promotion.promotion_id for q in quotes] == ["bundle", "hour", "save"]
        assert [q.discount_amount for q in quotes] == [300, 115, 100]
        assert all(isinstance(q.discount_amount, int) for q in quotes)

    def test_unconfigured_or_unmet_promotions_not_listed(self):
        calc = _calculator(
            _promo("bundle", BUNDLE_FRAME_LENS, discount_amount=500),
            _promo("hour", TIME_BASED, discount_percent=10),
            _promo("brand", BRAND_DISCOUNT, discount_percent=20),
        )
        assert calc.get_applicable_promotions(_request(2000, 0, brand="Ray-Ban")) == []

    def test_tier_comes_from_points(self):
        promo = _promo("t", TIER_DISCOUNT, tier_rates={"platinum": 15, "gold": 10})
        [quote] = _calculator(promo, points=1001).get_applicable_promotions(_request())
        assert quote.discount_amount == 525
        [quote] = _calculator(promo, points=600).get_applicable_promotions(_request())
        assert quote.discount_amount == 350

    def test_out_of_window_excluded(self):
        promo = _promo("s", SPEND_SAVE, min_spend=0, discount_amount=50)
        calc = _calculator(promo, now=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
        assert calc.get_applicable_promotions(_request()) == []

    def test_explicit_now_overrides_clock(self):
        promo = _promo("h", TIME_BASED, start_hour="18:00", end_hour="20:00",
                       discount_percent=10)
        calc = _calculator(promo)
        assert calc.get_applicable_promotions(_request()) == []
        evening = datetime(2026, 2, 19, 19, 0, tzinfo=timezone.utc)
        assert len(calc.get_applicable_promotions(_request(), now=evening)) == 1

    def test_quote_to_dict(self):
        calc = _calculator(_promo("s", SPEND_SAVE, min_spend=0, discount_amount=50))
        [quote] = calc.get_applicable_promotions(_request())
        assert quote.to_dict()["discount_amount"] == 50
        assert quote.to_dict()["promotion"]["type"] == SPEND_SAVE


class TestPromotionCatalog:
    def _catalog(self):
        store = InMemoryStore()
        log = InMemoryAuditLog()
        catalog = PromotionCatalog(
            store, audit=AuditTrail(log, clock=FixedClock(NOW)),
        )
        return catalog, store, log

    def test_save_create_then_update(self):
        catalog, store, log = self._catalog()
        promo = _promo("s", SPEND_SAVE, min_spend=500, discount_amount=50)
        catalog.save_promotion(promo)
        catalog.save_promotion(
            Promotion("s", "Spend more", SPEND_SAVE, conditions=promo.conditions)
        )

        assert catalog.get("s").name == "Spend more"
        assert [r.action_type for r in log.records] == ["CREATE", "UPDATE"]
        assert all(r.module == "SETTINGS" for r in log.records)
        assert len(catalog.list_promotions()) == 1

    def test_unknown_type_saved_with_warning(self, caplog):
        catalog, _, _ = self._catalog()
        with caplog.at_level("WARNING", logger="bol.promotion"):
            catalog.save_promotion(Promotion("x", "Mystery", "buy_one_get_one"))
        assert catalog.get("x").promotion_type == "buy_one_get_one"
        assert "never apply" in caplog.text

    def test_delete(self):
        catalog, store, log = self._catalog()
        catalog.save_promotion(_promo("s", SPEND_SAVE))
        assert catalog.delete_promotion("s") is True
        assert catalog.delete_promotion("s") is False
        assert store.list("promotions") == []
        assert log.records[-1].action_type == "DELETE"
