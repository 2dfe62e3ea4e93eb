"""
BOL Sales Primitive — Source Records
======================================
Engine: Core Primitives
Consumed by: Accounting Engine (auto-posting),
             Loyalty Engine (earning, recalculation)

Business records that feed the ledger. They are written by the
back-office facade and read by recalculation. This core never
edits them after the fact.

    Purchase       — point-of-sale sale, paid at the counter
    Prescription   — spectacle order (frame + lens − discount)
    Payment        — money received against A/R

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.primitives.ledger import to_money


# ══════════════════════════════════════════════════════════════
# PURCHASE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Purchase:
    purchase_id: str
    customer_id: str
    date: str
    total: Decimal
    points_used: int = 0

    def __post_init__(self):
        if not self.purchase_id:
            raise ValueError("purchase_id must be non-empty.")
        object.__setattr__(self, "total", to_money(self.total))
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}.")

    @property
    def spend(self) -> Decimal:
        return self.total

    def to_dict(self) -> dict:
        return {
            "id": self.purchase_id,
            "customer_id": self.customer_id,
            "date": self.date,
            "total": str(self.total),
            "points_used": self.points_used,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Purchase:
        return cls(
            purchase_id=data["id"],
            customer_id=str(data.get("customer_id", "")),
            date=data.get("date", ""),
            total=data.get("total", 0),
            points_used=int(data.get("points_used") or 0),
        )


# ══════════════════════════════════════════════════════════════
# PRESCRIPTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Prescription:
    """
    Spectacle order.

    net = frame_price + lens_price − discount (the billed amount).
    deposit is what was paid up front and is what earns points
    at order time.
    """
    prescription_id: str
    customer_id: str
    date: str
    frame_price: Decimal
    lens_price: Decimal
    discount: Decimal = Decimal("0.00")
    deposit: Decimal = Decimal("0.00")
    points_used: int = 0
    frame_brand: Optional[str] = None
    promotion_id: Optional[str] = None

    def __post_init__(self):
        if not self.prescription_id:
            raise ValueError("prescription_id must be non-empty.")
        for name in ("frame_price", "lens_price", "discount", "deposit"):
            value = to_money(getattr(self, name))
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}.")
            object.__setattr__(self, name, value)
        if self.net < 0:
            raise ValueError(
                f"discount ({self.discount}) exceeds frame + lens "
                f"({self.frame_price + self.lens_price})."
            )

    @property
    def net(self) -> Decimal:
        return self.frame_price + self.lens_price - self.discount

    @property
    def remaining(self) -> Decimal:
        return self.net - self.deposit

    @property
    def spend(self) -> Decimal:
        return self.net

    def to_dict(self) -> dict:
        data = {
            "id": self.prescription_id,
            "customer_id": self.customer_id,
            "date": self.date,
            "frame_price": str(self.frame_price),
            "lens_price": str(self.lens_price),
            "discount": str(self.discount),
            "deposit": str(self.deposit),
            "remaining": str(self.remaining),
            "points_used": self.points_used,
        }
        if self.frame_brand:
            data["frame_brand"] = self.frame_brand
        if self.promotion_id:
            data["promotion_id"] = self.promotion_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Prescription:
        return cls(
            prescription_id=data["id"],
            customer_id=str(data.get("customer_id", "")),
            date=data.get("date", ""),
            frame_price=data.get("frame_price", 0),
            lens_price=data.get("lens_price", 0),
            discount=data.get("discount", 0),
            deposit=data.get("deposit", 0),
            points_used=int(data.get("points_used") or 0),
            frame_brand=data.get("frame_brand"),
            promotion_id=data.get("promotion_id"),
        )


# ══════════════════════════════════════════════════════════════
# PAYMENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Payment:
    """
    Money received from a customer.

    Linked to a prescription (deposit top-up) or to an installment
    plan term; either link may be absent.
    """
    payment_id: str
    customer_id: str
    date: str
    amount: Decimal
    method: str
    prescription_id: Optional[str] = None
    installment_id: Optional[str] = None
    term: Optional[int] = None
    note: str = ""

    def __post_init__(self):
        if not self.payment_id:
            raise ValueError("payment_id must be non-empty.")
        object.__setattr__(self, "amount", to_money(self.amount))
        if self.amount <= 0:
            raise ValueError(f"amount must be > 0, got {self.amount}.")

    def to_dict(self) -> dict:
        data = {
            "id": self.payment_id,
            "customer_id": self.customer_id,
            "date": self.date,
            "amount": str(self.amount),
            "method": self.method,
            "note": self.note,
        }
        if self.prescription_id:
            data["prescription_id"] = self.prescription_id
        if self.installment_id:
            data["installment_id"] = self.installment_id
        if self.term is not None:
            data["term"] = self.term
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Payment:
        term = data.get("term")
        return cls(
            payment_id=data["id"],
            customer_id=str(data.get("customer_id", "")),
            date=data.get("date", ""),
            amount=data.get("amount", 0),
            method=data.get("method", ""),
            prescription_id=data.get("prescription_id"),
            installment_id=data.get("installment_id"),
            term=int(term) if term is not None else None,
            note=data.get("note", ""),
        )
