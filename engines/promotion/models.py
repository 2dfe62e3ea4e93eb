"""
BOL Promotion Engine — Promotion Records
==========================================
Promotions live in the `promotions` collection.

Rule kinds:
    bundle_frame_lens  — min(lens, discount_amount) when frame and lens are both bought
    tier_discount      — total × tier_rates[tier] / 100
    spend_save         — flat discount_amount when total >= min_spend
    time_based         — total × discount_percent / 100 inside [start_hour, end_hour]
    brand_discount     — frame × discount_percent / 100 when the brand matches

Any other type string is stored as-is and never applies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from core.primitives.ledger import to_money
from core.time.temporal import DateRange


BUNDLE_FRAME_LENS = "bundle_frame_lens"
TIER_DISCOUNT = "tier_discount"
SPEND_SAVE = "spend_save"
TIME_BASED = "time_based"
BRAND_DISCOUNT = "brand_discount"

KNOWN_PROMOTION_TYPES = frozenset({
    BUNDLE_FRAME_LENS, TIER_DISCOUNT, SPEND_SAVE, TIME_BASED, BRAND_DISCOUNT,
})


def _optional_money(value: Any) -> Optional[Decimal]:
    return None if value is None else to_money(value)


@dataclass(frozen=True)
class PromotionConditions:
    min_spend: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    discount_percent: Optional[Decimal] = None
    target_brand: Optional[str] = None
    start_hour: Optional[str] = None
    end_hour: Optional[str] = None
    tier_rates: Dict[str, Decimal] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "min_spend", _optional_money(self.min_spend))
        object.__setattr__(
            self, "discount_amount", _optional_money(self.discount_amount)
        )
        if self.discount_percent is not None:
            object.__setattr__(
                self, "discount_percent", Decimal(str(self.discount_percent))
            )
        object.__setattr__(
            self,
            "tier_rates",
            {str(k).lower(): Decimal(str(v)) for k, v in (self.tier_rates or {}).items()},
        )

    def to_dict(self) -> dict:
        data = {
            "min_spend": self.min_spend,
            "discount_amount": self.discount_amount,
            "discount_percent": self.discount_percent,
            "target_brand": self.target_brand,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
        }
        data = {k: str(v) for k, v in data.items() if v is not None}
        if self.tier_rates:
            data["tier_rates"] = {k: str(v) for k, v in self.tier_rates.items()}
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> PromotionConditions:
        data = data or {}
        return cls(
            min_spend=data.get("min_spend"),
            discount_amount=data.get("discount_amount"),
            discount_percent=data.get("discount_percent"),
            target_brand=data.get("target_brand"),
            start_hour=data.get("start_hour"),
            end_hour=data.get("end_hour"),
            tier_rates=data.get("tier_rates") or {},
        )


@dataclass(frozen=True)
class Promotion:
    promotion_id: str
    name: str
    promotion_type: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_active: bool = True
    description: str = ""
    conditions: PromotionConditions = field(default_factory=PromotionConditions)

    def __post_init__(self):
        if not self.promotion_id:
            raise ValueError("promotion_id must be non-empty.")
        if not self.name:
            raise ValueError("name must be non-empty.")
        if not self.promotion_type:
            raise ValueError("promotion_type must be non-empty.")
        # Validates the dates and their order.
        DateRange(self.start_date, self.end_date)

    def runs_on(self, today: str) -> bool:
        return self.is_active and DateRange(self.start_date, self.end_date).contains(today)

    def to_dict(self) -> dict:
        data = {
            "id": self.promotion_id,
            "name": self.name,
            "description": self.description,
            "type": self.promotion_type,
            "is_active": self.is_active,
            "conditions": self.conditions.to_dict(),
        }
        if self.start_date:
            data["start_date"] = self.start_date
        if self.end_date:
            data["end_date"] = self.end_date
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Promotion:
        return cls(
            promotion_id=data["id"],
            name=data["name"],
            promotion_type=data["type"],
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            is_active=bool(data.get("is_active", False)),
            description=data.get("description", ""),
            conditions=PromotionConditions.from_dict(data.get("conditions")),
        )


@dataclass(frozen=True)
class PromotionQuote:
    """One applicable promotion and the whole-unit discount it gives."""
    promotion: Promotion
    discount_amount: int

    def to_dict(self) -> dict:
        return {
            "promotion": self.promotion.to_dict(),
            "discount_amount": self.discount_amount,
        }
