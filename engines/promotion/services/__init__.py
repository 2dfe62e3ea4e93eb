"""
BOL Promotion Engine — Discount Calculator & Catalogue
========================================================
get_applicable_promotions():
    1. tier from the customer's point balance
    2. active promotions whose [start_date, end_date] contains today
    3. evaluate each rule; inapplicable and unknown kinds are dropped
    4. floor discounts to whole units, sort descending

"Today" and time-of-day come from the injected clock (shop local time).
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import List, Optional

from core.audit.log import AuditTrail
from core.config.rules import LedgerConfig
from core.primitives.loyalty import customer_points
from core.store.protocol import KeyValueStore, make_key
from core.time.clock import Clock, SystemClock
from core.time.temporal import time_of_day
from engines.promotion.commands import PromotionQuoteRequest
from engines.promotion.events import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    SETTINGS_MODULE,
    promotion_deleted_description,
    promotion_saved_description,
)
from engines.promotion.models import KNOWN_PROMOTION_TYPES, Promotion, PromotionQuote
from engines.promotion.policies import evaluate_promotion, tier_for_points

logger = logging.getLogger("bol.promotion")

PROMOTIONS_COLLECTION = "promotions"
CUSTOMERS_COLLECTION = "customers"


class PromotionCalculator:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._config = config or LedgerConfig()
        self._clock = clock or SystemClock()

    def tier_of(self, customer_id: str) -> str:
        points = customer_points(
            self._store.get(make_key(CUSTOMERS_COLLECTION, customer_id))
        )
        return tier_for_points(points, self._config.tier_thresholds)

    def get_applicable_promotions(
        self,
        request: PromotionQuoteRequest,
        now: Optional[datetime] = None,
    ) -> List[PromotionQuote]:
        now = now or self._clock.now()
        today = now.date().isoformat()
        tier = self.tier_of(request.customer_id)
        current_time = time_of_day(now)

        quotes: List[PromotionQuote] = []
        for record in self._store.list(PROMOTIONS_COLLECTION):
            promo = Promotion.from_dict(record)
            if not promo.runs_on(today):
                continue
            discount = evaluate_promotion(
                promo, request, tier=tier, time_of_day=current_time,
            )
            if discount is None:
                continue
            quotes.append(PromotionQuote(promo, int(math.floor(discount))))

        quotes.sort(key=lambda q: q.discount_amount, reverse=True)
        logger.debug(
            f"{len(quotes)} promotions apply for customer "
            f"{request.customer_id} (tier {tier})"
        )
        return quotes


class PromotionCatalog:
    def __init__(self, store: KeyValueStore, *, audit: Optional[AuditTrail] = None):
        self._store = store
        self._audit = audit or AuditTrail()

    def get(self, promotion_id: str) -> Optional[Promotion]:
        record = self._store.get(make_key(PROMOTIONS_COLLECTION, promotion_id))
        return Promotion.from_dict(record) if record else None

    def list_promotions(self) -> List[Promotion]:
        return [
            Promotion.from_dict(r) for r in self._store.list(PROMOTIONS_COLLECTION)
        ]

    def save_promotion(self, promotion: Promotion) -> str:
        if promotion.promotion_type not in KNOWN_PROMOTION_TYPES:
            logger.warning(
                f"Promotion {promotion.promotion_id} has unknown type "
                f"'{promotion.promotion_type}' and will never apply"
            )
        old = self.get(promotion.promotion_id)
        self._store.set(
            make_key(PROMOTIONS_COLLECTION, promotion.promotion_id),
            promotion.to_dict(),
        )
        logger.info(f"Promotion {promotion.promotion_id} saved ({promotion.promotion_type})")
        self._audit.record(
            ACTION_CREATE if old is None else ACTION_UPDATE,
            SETTINGS_MODULE,
            promotion_saved_description(promotion.name, created=old is None),
            ref_id=promotion.promotion_id,
            old_data=old,
            new_data=promotion,
        )
        return promotion.promotion_id

    def delete_promotion(self, promotion_id: str) -> bool:
        old = self.get(promotion_id)
        if old is None:
            return False
        self._store.delete(make_key(PROMOTIONS_COLLECTION, promotion_id))
        logger.info(f"Promotion {promotion_id} deleted")
        self._audit.record(
            ACTION_DELETE,
            SETTINGS_MODULE,
            promotion_deleted_description(promotion_id),
            ref_id=promotion_id,
            old_data=old,
        )
        return True
