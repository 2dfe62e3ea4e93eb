"""
BOL Promotion Engine — Request Commands
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.primitives.ledger import to_money


@dataclass(frozen=True)
class PromotionQuoteRequest:
    """What a customer is about to buy, for promotion lookup."""
    customer_id: str
    frame_price: Decimal
    lens_price: Decimal
    brand: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "frame_price", to_money(self.frame_price))
        object.__setattr__(self, "lens_price", to_money(self.lens_price))
        if self.frame_price < 0 or self.lens_price < 0:
            raise ValueError("prices must be >= 0.")

    @property
    def total(self) -> Decimal:
        return self.frame_price + self.lens_price
