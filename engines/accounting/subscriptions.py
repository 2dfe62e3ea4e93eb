"""
BOL Accounting Engine — Event Subscriptions
==============================================
Accounting reacts to business events from sales and inventory.

Subscriptions:
- inventory.stock.received    → DR Inventory,    CR A/P
- sales.prescription.created  → DR A/R,          CR Service revenue (+VAT)
- sales.purchase.created      → DR Cash,         CR Sales revenue (+VAT)
- sales.payment.received      → DR Cash or Bank, CR A/R
- sales.installment.paid      → DR Cash or Bank, CR A/R

Event shape: {"event_type": str, "payload": dict}.

A payload missing the fields a rule needs is logged and ignored.
PeriodLockedError and MissingAccountError (FAIL policy) propagate.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from engines.accounting.posting_rules import (
    AutoPoster,
    BusinessEvent,
    PostingEvent,
    PostingResult,
)

logger = logging.getLogger("bol.accounting")


ACCOUNTING_SUBSCRIPTIONS: Dict[str, str] = {
    "inventory.stock.received": "handle_stock_received",
    "sales.prescription.created": "handle_prescription_created",
    "sales.purchase.created": "handle_purchase_created",
    "sales.payment.received": "handle_payment_received",
    "sales.installment.paid": "handle_installment_paid",
}


class AccountingSubscriptionHandler:
    """Maps business events onto posting rules and posts them."""

    def __init__(self, auto_poster: Optional[AutoPoster] = None):
        self._auto_poster = auto_poster

    def dispatch(self, event_data: dict) -> Optional[PostingResult]:
        method_name = ACCOUNTING_SUBSCRIPTIONS.get(event_data.get("event_type", ""))
        if method_name is None:
            return None
        return getattr(self, method_name)(event_data)

    def _post(self, event_type: str, build) -> Optional[PostingResult]:
        if self._auto_poster is None:
            return None
        try:
            event = build()
        except (KeyError, ValueError, TypeError, InvalidOperation) as exc:
            logger.warning(f"Ignoring malformed {event_type} event: {exc}")
            return None
        if event is None:
            return None
        return self._auto_poster.post(event)

    def handle_stock_received(self, event_data: dict) -> Optional[PostingResult]:
        """
        Payload fields used: item_id, item_name, quantity, unit_cost, date.
        Nothing is posted without quantity and cost.
        """
        payload = event_data.get("payload", {})

        def build() -> Optional[BusinessEvent]:
            quantity = int(payload.get("quantity") or 0)
            unit_cost = Decimal(str(payload.get("unit_cost") or 0))
            if quantity <= 0 or unit_cost <= 0:
                return None
            return BusinessEvent.inventory_receipt(
                source_id=str(payload["item_id"]),
                date=payload["date"],
                quantity=quantity,
                unit_cost=unit_cost,
                label=str(payload.get("item_name", "")),
            )

        return self._post("inventory.stock.received", build)

    def handle_prescription_created(self, event_data: dict) -> Optional[PostingResult]:
        """total = frame_price + lens_price − discount."""
        payload = event_data.get("payload", {})

        def build() -> BusinessEvent:
            total = (
                Decimal(str(payload.get("frame_price", 0)))
                + Decimal(str(payload.get("lens_price", 0)))
                - Decimal(str(payload.get("discount", 0)))
            )
            return BusinessEvent(
                kind=PostingEvent.PRESCRIPTION_SALE,
                source_id=str(payload["prescription_id"]),
                date=payload["date"],
                amount=total,
            )

        return self._post("sales.prescription.created", build)

    def handle_purchase_created(self, event_data: dict) -> Optional[PostingResult]:
        payload = event_data.get("payload", {})
        return self._post(
            "sales.purchase.created",
            lambda: BusinessEvent(
                kind=PostingEvent.POS_SALE,
                source_id=str(payload["purchase_id"]),
                date=payload["date"],
                amount=payload["total"],
            ),
        )

    def handle_payment_received(self, event_data: dict) -> Optional[PostingResult]:
        payload = event_data.get("payload", {})
        return self._post(
            "sales.payment.received",
            lambda: BusinessEvent(
                kind=PostingEvent.PAYMENT_RECEIVED,
                source_id=str(payload["payment_id"]),
                date=payload["date"],
                amount=payload["amount"],
                method=str(payload.get("method", "")),
            ),
        )

    def handle_installment_paid(self, event_data: dict) -> Optional[PostingResult]:
        payload = event_data.get("payload", {})
        return self._post(
            "sales.installment.paid",
            lambda: BusinessEvent(
                kind=PostingEvent.INSTALLMENT_PAYMENT,
                source_id=str(payload["plan_id"]),
                date=payload["date"],
                amount=payload["amount"],
                method=str(payload.get("method", "")),
                term=int(payload["term"]),
            ),
        )
