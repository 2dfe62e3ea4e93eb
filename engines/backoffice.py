"""
BOL Back Office — Ledger Facade
=================================
One entry point over the accounting, loyalty and promotion engines.

Ledger operations:
    post / update / delete journal entries
    close / reopen / query accounting periods
    adjust points, recalculate points
    applicable promotions for a basket

Sale lifecycle (each step audited):
    record_inventory_receipt  → IN   posting
    record_purchase           → POS  posting, earn on total
    record_prescription       → RX   posting, redeem points_used,
                                     earn on deposit
    record_payment            → RC   posting, deposit top-up, earn on amount
    pay_installment           → INST posting, earn on amount
    delete_*                  → earned points taken back as adjust,
                                spent points refunded as adjust

Journal entries are NOT reversed when a sale record is deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.audit.log import AuditLog, AuditTrail
from core.config.rules import LedgerConfig
from core.identity.actor import IdentityProvider
from core.primitives.ledger import AccountingPeriod, JournalEntry, to_money
from core.primitives.loyalty import PointTransaction, PointTransactionType
from core.primitives.sales import Payment, Prescription, Purchase
from core.store.protocol import KeyValueStore, Record, make_key
from core.time.clock import Clock, SystemClock
from engines.accounting.chart import load_chart
from engines.accounting.commands import JournalPostRequest
from engines.accounting.periods import PeriodLockManager
from engines.accounting.posting_rules import (
    AutoPoster,
    BusinessEvent,
    PostingEvent,
    PostingResult,
)
from engines.accounting.services import JournalLedger
from engines.loyalty.commands import PointAdjustRequest
from engines.loyalty.recalculation import (
    PRESCRIPTIONS_COLLECTION,
    PURCHASES_COLLECTION,
    PointRecalculator,
)
from engines.loyalty.services import PointLedger
from engines.promotion.commands import PromotionQuoteRequest
from engines.promotion.models import Promotion, PromotionQuote
from engines.promotion.services import PromotionCalculator, PromotionCatalog

logger = logging.getLogger("bol.backoffice")

PAYMENTS_COLLECTION = "payments"

INVOICE_MODULE = "INVOICE"
ORDER_MODULE = "ORDER"
STOCK_MODULE = "STOCK"


@dataclass(frozen=True)
class RecordedSale:
    """What recording one business record did to the books."""
    record_id: str
    posting: Optional[PostingResult]
    points_earned: int = 0


class BackOfficeLedger:
    """Wires every engine to one store, config, audit log and clock."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        config: Optional[LedgerConfig] = None,
        audit_log: Optional[AuditLog] = None,
        identity: Optional[IdentityProvider] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._config = config or LedgerConfig()
        self._clock = clock or SystemClock()
        self._audit = AuditTrail(audit_log, identity=identity, clock=self._clock)

        self.periods = PeriodLockManager(
            store, audit=self._audit, identity=identity, clock=self._clock,
        )
        self.journal = JournalLedger(
            store,
            periods=self.periods,
            config=self._config,
            audit=self._audit,
            identity=identity,
            clock=self._clock,
        )
        self.auto_poster = AutoPoster(
            self.journal,
            chart_loader=lambda: load_chart(store),
            config=self._config,
        )
        self.points = PointLedger(
            store, config=self._config, audit=self._audit, clock=self._clock,
        )
        self.recalculator = PointRecalculator(
            store, config=self._config, audit=self._audit, clock=self._clock,
        )
        self.promotions = PromotionCalculator(
            store, config=self._config, clock=self._clock,
        )
        self.catalog = PromotionCatalog(store, audit=self._audit)

    @classmethod
    def from_django_settings(cls, **kwargs: Any) -> BackOfficeLedger:
        """Django-backed ledger configured from settings.LEDGER."""
        from core.audit.log import StoreAuditLog
        from core.store.django_store import DjangoStore

        store = DjangoStore()
        kwargs.setdefault("config", LedgerConfig.from_django_settings())
        kwargs.setdefault("audit_log", StoreAuditLog(store))
        return cls(store, **kwargs)

    @property
    def config(self) -> LedgerConfig:
        return self._config

    # ══════════════════════════════════════════════════════════
    # JOURNAL
    # ══════════════════════════════════════════════════════════

    def post_journal_entry(self, request: JournalPostRequest) -> str:
        return self.journal.post(request)

    def update_journal_entry(self, entry_id: str, patch: Dict[str, Any]) -> JournalEntry:
        return self.journal.update(entry_id, patch)

    def delete_journal_entry(self, entry_id: str) -> JournalEntry:
        return self.journal.delete(entry_id)

    # ══════════════════════════════════════════════════════════
    # PERIODS
    # ══════════════════════════════════════════════════════════

    def close_period(self, year: int, month: int) -> AccountingPeriod:
        return self.periods.close(year, month)

    def reopen_period(self, year: int, month: int) -> bool:
        return self.periods.reopen(year, month)

    def is_period_locked(self, year: int, month: int) -> bool:
        return self.periods.is_locked(year, month)

    # ══════════════════════════════════════════════════════════
    # POINTS
    # ══════════════════════════════════════════════════════════

    def adjust_points(
        self,
        customer_id: str,
        delta: int,
        transaction_type: PointTransactionType,
        note: str = "",
        related_id: Optional[str] = None,
    ) -> PointTransaction:
        return self.points.adjust(PointAdjustRequest(
            customer_id=customer_id,
            delta=delta,
            transaction_type=transaction_type,
            note=note,
            related_id=related_id,
        ))

    def recalculate_all_points(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None,
    ) -> int:
        return self.recalculator.recalculate_all(start_date, end_date)

    def recalculate_points(
        self,
        customer_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> int:
        return self.recalculator.recalculate_customer(
            customer_id, start_date, end_date,
        )

    # ══════════════════════════════════════════════════════════
    # PROMOTIONS
    # ══════════════════════════════════════════════════════════

    def get_applicable_promotions(
        self,
        customer_id: str,
        frame_price: Any,
        lens_price: Any,
        brand: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[PromotionQuote]:
        request = PromotionQuoteRequest(
            customer_id=customer_id,
            frame_price=frame_price,
            lens_price=lens_price,
            brand=brand,
        )
        return self.promotions.get_applicable_promotions(request, now=now)

    def save_promotion(self, promotion: Promotion) -> str:
        return self.catalog.save_promotion(promotion)

    def delete_promotion(self, promotion_id: str) -> bool:
        return self.catalog.delete_promotion(promotion_id)

    # ══════════════════════════════════════════════════════════
    # INVENTORY
    # ══════════════════════════════════════════════════════════

    def record_inventory_receipt(
        self,
        item_id: str,
        item_name: str,
        quantity: int,
        unit_cost: Any,
        date: Optional[str] = None,
    ) -> Optional[PostingResult]:
        """Post stock bought on credit. Nothing is posted without quantity and cost."""
        if quantity <= 0 or to_money(unit_cost) <= 0:
            return None
        result = self.auto_poster.post(BusinessEvent.inventory_receipt(
            source_id=item_id,
            date=date or self._today(),
            quantity=quantity,
            unit_cost=unit_cost,
            label=item_name,
        ))
        self._audit.record(
            "UPDATE",
            STOCK_MODULE,
            f"Stock received: {item_name} x{quantity}",
            ref_id=item_id,
            new_data={"quantity": quantity, "unit_cost": to_money(unit_cost)},
        )
        return result

    # ══════════════════════════════════════════════════════════
    # PURCHASES (point of sale)
    # ══════════════════════════════════════════════════════════

    def record_purchase(
        self,
        customer_id: str,
        total: Any,
        date: Optional[str] = None,
        points_used: int = 0,
    ) -> RecordedSale:
        purchase = Purchase(
            purchase_id=self._store.new_id(PURCHASES_COLLECTION),
            customer_id=customer_id,
            date=date or self._today(),
            total=total,
            points_used=points_used,
        )
        self._store.set(
            make_key(PURCHASES_COLLECTION, purchase.purchase_id), purchase.to_dict(),
        )

        posting = self.auto_poster.post(BusinessEvent(
            kind=PostingEvent.POS_SALE,
            source_id=purchase.purchase_id,
            date=purchase.date,
            amount=purchase.total,
        ))
        if points_used > 0:
            self.points.adjust(PointAdjustRequest.redeem(
                customer_id, points_used,
                note="Points used at point of sale",
                related_id=purchase.purchase_id,
            ))
        earned = self.points.earn_for(
            customer_id, purchase.total,
            note="Point-of-sale purchase",
            related_id=purchase.purchase_id,
        )

        logger.info(f"Purchase {purchase.purchase_id} recorded ({purchase.total})")
        self._audit.record(
            "CREATE",
            INVOICE_MODULE,
            f"Point-of-sale purchase, total {purchase.total}",
            ref_id=purchase.purchase_id,
            new_data=purchase,
        )
        return RecordedSale(purchase.purchase_id, posting, earned)

    def delete_purchase(self, purchase_id: str) -> Optional[Purchase]:
        key = make_key(PURCHASES_COLLECTION, purchase_id)
        record = self._store.get(key)
        purchase = Purchase.from_dict(record) if record else None
        if purchase is not None:
            self.points.reverse_earned(
                purchase.customer_id, purchase.total,
                note="Points reversed for deleted purchase",
                related_id=purchase_id,
            )
            self.points.refund_redeemed(
                purchase.customer_id, purchase.points_used,
                note="Points refunded for deleted purchase",
                related_id=purchase_id,
            )
        self._store.delete(key)

        logger.info(f"Purchase {purchase_id} deleted")
        self._audit.record(
            "DELETE",
            INVOICE_MODULE,
            f"Purchase deleted: {purchase_id}",
            ref_id=purchase_id,
            old_data=purchase,
        )
        return purchase

    # ══════════════════════════════════════════════════════════
    # PRESCRIPTIONS
    # ══════════════════════════════════════════════════════════

    def record_prescription(
        self,
        customer_id: str,
        frame_price: Any,
        lens_price: Any,
        *,
        discount: Any = 0,
        deposit: Any = 0,
        points_used: int = 0,
        frame_brand: Optional[str] = None,
        promotion_id: Optional[str] = None,
        date: Optional[str] = None,
    ) -> RecordedSale:
        prescription = Prescription(
            prescription_id=self._store.new_id(PRESCRIPTIONS_COLLECTION),
            customer_id=customer_id,
            date=date or self._today(),
            frame_price=frame_price,
            lens_price=lens_price,
            discount=discount,
            deposit=deposit,
            points_used=points_used,
            frame_brand=frame_brand,
            promotion_id=promotion_id,
        )
        rx_id = prescription.prescription_id
        self._store.set(
            make_key(PRESCRIPTIONS_COLLECTION, rx_id), prescription.to_dict(),
        )
        self._audit.record(
            "CREATE",
            ORDER_MODULE,
            f"Prescription created for customer {customer_id}",
            ref_id=rx_id,
            new_data=prescription,
        )

        posting = self.auto_poster.post(BusinessEvent(
            kind=PostingEvent.PRESCRIPTION_SALE,
            source_id=rx_id,
            date=prescription.date,
            amount=prescription.net,
        ))
        if points_used > 0:
            self.points.adjust(PointAdjustRequest.redeem(
                customer_id, points_used,
                note="Points used as prescription discount",
                related_id=rx_id,
            ))
        earned = self.points.earn_for(
            customer_id, prescription.deposit,
            note="Points earned on deposit",
            related_id=rx_id,
        )

        logger.info(f"Prescription {rx_id} recorded (net {prescription.net})")
        return RecordedSale(rx_id, posting, earned)

    def delete_prescription(self, prescription_id: str) -> Optional[Prescription]:
        key = make_key(PRESCRIPTIONS_COLLECTION, prescription_id)
        record = self._store.get(key)
        prescription = Prescription.from_dict(record) if record else None
        if prescription is not None:
            self.points.refund_redeemed(
                prescription.customer_id, prescription.points_used,
                note="Points refunded for deleted prescription",
                related_id=prescription_id,
            )
            self.points.reverse_earned(
                prescription.customer_id, prescription.deposit,
                note="Points reversed for deleted prescription",
                related_id=prescription_id,
            )
        self._store.delete(key)

        logger.info(f"Prescription {prescription_id} deleted")
        self._audit.record(
            "DELETE",
            ORDER_MODULE,
            f"Prescription deleted: {prescription_id}",
            ref_id=prescription_id,
            old_data=prescription,
        )
        return prescription

    # ══════════════════════════════════════════════════════════
    # PAYMENTS
    # ══════════════════════════════════════════════════════════

    def record_payment(
        self,
        customer_id: str,
        amount: Any,
        method: str,
        *,
        prescription_id: Optional[str] = None,
        date: Optional[str] = None,
        note: str = "",
    ) -> RecordedSale:
        payment = Payment(
            payment_id=self._store.new_id(PAYMENTS_COLLECTION),
            customer_id=customer_id,
            date=date or self._today(),
            amount=amount,
            method=method,
            prescription_id=prescription_id,
            note=note,
        )
        self._store.set(
            make_key(PAYMENTS_COLLECTION, payment.payment_id), payment.to_dict(),
        )
        if prescription_id:
            self._move_deposit(prescription_id, payment.amount)

        posting = self.auto_poster.post(BusinessEvent(
            kind=PostingEvent.PAYMENT_RECEIVED,
            source_id=payment.payment_id,
            date=payment.date,
            amount=payment.amount,
            method=method,
        ))
        earned = self.points.earn_for(
            customer_id, payment.amount,
            note="Points earned on payment",
            related_id=payment.payment_id,
        )

        logger.info(f"Payment {payment.payment_id} recorded ({payment.amount}, {method})")
        self._audit.record(
            "CREATE",
            INVOICE_MODULE,
            f"Payment received: {payment.amount}",
            ref_id=payment.payment_id,
            new_data=payment,
        )
        return RecordedSale(payment.payment_id, posting, earned)

    def delete_payment(self, payment_id: str) -> Optional[Payment]:
        key = make_key(PAYMENTS_COLLECTION, payment_id)
        record = self._store.get(key)
        payment = Payment.from_dict(record) if record else None
        if payment is not None:
            if payment.prescription_id:
                self._move_deposit(payment.prescription_id, -payment.amount)
            self.points.reverse_earned(
                payment.customer_id, payment.amount,
                note="Points reversed for deleted payment",
                related_id=payment_id,
            )
        self._store.delete(key)

        logger.info(f"Payment {payment_id} deleted")
        self._audit.record(
            "DELETE",
            INVOICE_MODULE,
            f"Payment deleted: {payment_id}",
            ref_id=payment_id,
            old_data=payment,
        )
        return payment

    def pay_installment(
        self,
        plan_id: str,
        term: int,
        amount: Any,
        method: str,
        *,
        customer_id: str,
        date: Optional[str] = None,
    ) -> RecordedSale:
        payment = Payment(
            payment_id=self._store.new_id(PAYMENTS_COLLECTION),
            customer_id=customer_id,
            date=date or self._today(),
            amount=amount,
            method=method,
            installment_id=plan_id,
            term=term,
            note=f"Installment term {term}",
        )
        self._store.set(
            make_key(PAYMENTS_COLLECTION, payment.payment_id), payment.to_dict(),
        )

        posting = self.auto_poster.post(BusinessEvent(
            kind=PostingEvent.INSTALLMENT_PAYMENT,
            source_id=plan_id,
            date=payment.date,
            amount=payment.amount,
            method=method,
            term=term,
        ))
        earned = self.points.earn_for(
            customer_id, payment.amount,
            note=f"Points earned on installment term {term}",
            related_id=payment.payment_id,
        )

        logger.info(f"Installment {plan_id} term {term} paid ({payment.amount})")
        self._audit.record(
            "UPDATE",
            INVOICE_MODULE,
            f"Installment payment, term {term}",
            ref_id=plan_id,
            new_data={"term": term, "amount": payment.amount, "method": method},
        )
        return RecordedSale(payment.payment_id, posting, earned)

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _today(self) -> str:
        return self._clock.now().date().isoformat()

    def _move_deposit(self, prescription_id: str, amount: Decimal) -> None:
        """Shift money between a prescription's deposit and remaining."""

        def apply(current: Optional[Record]) -> Optional[Record]:
            if current is None:
                return None
            prescription = Prescription.from_dict(current)
            moved = replace(prescription, deposit=prescription.deposit + amount)
            return {**current, **moved.to_dict()}

        committed = self._store.transact(
            make_key(PRESCRIPTIONS_COLLECTION, prescription_id), apply,
        )
        if committed is None:
            logger.warning(
                f"Prescription {prescription_id} not found; deposit not updated"
            )
