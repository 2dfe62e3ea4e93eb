"""
BOL Promotion Engine — Rule Evaluation
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, Optional, Sequence, Tuple

from core.time.temporal import within_time_window
from engines.promotion.commands import PromotionQuoteRequest
from engines.promotion import models

BRONZE = "bronze"

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def tier_for_points(points: int, thresholds: Sequence[Tuple[str, int]]) -> str:
    """First tier whose threshold the balance strictly exceeds, else bronze."""
    for tier, minimum in thresholds:
        if points > minimum:
            return tier
    return BRONZE


# Each evaluator returns the raw discount, or None when the
# promotion does not apply.

def _bundle(promo, request, tier, time_of_day) -> Optional[Decimal]:
    if request.frame_price > 0 and request.lens_price > 0:
        cap = promo.conditions.discount_amount or ZERO
        return min(request.lens_price, cap)
    return None


def _tier(promo, request, tier, time_of_day) -> Optional[Decimal]:
    rates = promo.conditions.tier_rates
    if not rates:
        return ZERO
    return request.total * rates.get(tier, ZERO) / HUNDRED


def _spend_save(promo, request, tier, time_of_day) -> Optional[Decimal]:
    minimum = promo.conditions.min_spend or ZERO
    if request.total >= minimum:
        return promo.conditions.discount_amount or ZERO
    return None


def _time_based(promo, request, tier, time_of_day) -> Optional[Decimal]:
    c = promo.conditions
    if not (c.start_hour and c.end_hour):
        return None
    if not within_time_window(time_of_day, c.start_hour, c.end_hour):
        return None
    return request.total * (c.discount_percent or ZERO) / HUNDRED


def _brand(promo, request, tier, time_of_day) -> Optional[Decimal]:
    c = promo.conditions
    if not c.target_brand:
        return None
    brand = (request.brand or "").lower()
    if not brand or c.target_brand.lower() not in brand:
        return None
    return request.frame_price * (c.discount_percent or ZERO) / HUNDRED


RULE_EVALUATORS: Dict[str, Callable] = {
    models.BUNDLE_FRAME_LENS: _bundle,
    models.TIER_DISCOUNT: _tier,
    models.SPEND_SAVE: _spend_save,
    models.TIME_BASED: _time_based,
    models.BRAND_DISCOUNT: _brand,
}


def evaluate_promotion(
    promo: models.Promotion,
    request: PromotionQuoteRequest,
    *,
    tier: str,
    time_of_day: str,
) -> Optional[Decimal]:
    evaluator = RULE_EVALUATORS.get(promo.promotion_type)
    if evaluator is None:
        return None
    return evaluator(promo, request, tier, time_of_day)
