"""
BOL Accounting Engine — Auto-Posting Rules
============================================
Translates business events into journal entries.

One declarative rule per event kind:

    event                debit            credit           VAT
    ───────────────────  ───────────────  ───────────────  ─────────
    inventory receipt    1300 Inventory   2001 A/P         —
    prescription sale    1200 A/R         4002 Service     2002
    POS sale             1001 Cash        4001 Sales       2002
    payment received     1001 / 1002      1200 A/R         —
    installment payment  1001 / 1002      1200 A/R         —

VAT (when enabled): vat = total × rate / (100 + rate), rounded to
0.01; revenue = total − vat. The VAT line is added only if vat > 0.

Payments debit Bank when the method names a transfer or card,
otherwise Cash.

Missing accounts follow LedgerConfig.missing_account_policy:
    SKIP_LINE   — omit the line, log a warning (may unbalance)
    SKIP_ENTRY  — post nothing if the debit or main credit account
                  is missing; a missing VAT account omits only VAT
    FAIL        — raise MissingAccountError
Every outcome is reported in a PostingResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from core.config.rules import LedgerConfig, MissingAccountPolicy
from core.primitives.ledger import CENT, JournalLine, ModuleSource, to_money
from engines.accounting import chart as codes
from engines.accounting.chart import ChartOfAccounts
from engines.accounting.commands import JournalPostRequest
from engines.accounting.errors import MissingAccountError

logger = logging.getLogger("bol.accounting")


# ══════════════════════════════════════════════════════════════
# EVENT KINDS
# ══════════════════════════════════════════════════════════════

class PostingEvent(Enum):
    INVENTORY_RECEIPT = "inventory_receipt"
    PRESCRIPTION_SALE = "prescription_sale"
    POS_SALE = "pos_sale"
    PAYMENT_RECEIVED = "payment_received"
    INSTALLMENT_PAYMENT = "installment_payment"


# ══════════════════════════════════════════════════════════════
# RULE TABLE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PostingRule:
    debit_code: str
    credit_code: str
    module_source: ModuleSource
    reference_prefix: str
    vat_code: Optional[str] = None
    non_cash_debit_code: Optional[str] = None


POSTING_RULES = {
    PostingEvent.INVENTORY_RECEIPT: PostingRule(
        debit_code=codes.INVENTORY,
        credit_code=codes.ACCOUNTS_PAYABLE,
        module_source=ModuleSource.INVENTORY,
        reference_prefix="IN",
    ),
    PostingEvent.PRESCRIPTION_SALE: PostingRule(
        debit_code=codes.ACCOUNTS_RECEIVABLE,
        credit_code=codes.SERVICE_REVENUE,
        module_source=ModuleSource.SALES,
        reference_prefix="RX",
        vat_code=codes.OUTPUT_VAT,
    ),
    PostingEvent.POS_SALE: PostingRule(
        debit_code=codes.CASH,
        credit_code=codes.SALES_REVENUE,
        module_source=ModuleSource.SALES,
        reference_prefix="POS",
        vat_code=codes.OUTPUT_VAT,
    ),
    PostingEvent.PAYMENT_RECEIVED: PostingRule(
        debit_code=codes.CASH,
        credit_code=codes.ACCOUNTS_RECEIVABLE,
        module_source=ModuleSource.SALES,
        reference_prefix="RC",
        non_cash_debit_code=codes.BANK,
    ),
    PostingEvent.INSTALLMENT_PAYMENT: PostingRule(
        debit_code=codes.CASH,
        credit_code=codes.ACCOUNTS_RECEIVABLE,
        module_source=ModuleSource.SALES,
        reference_prefix="INST",
        non_cash_debit_code=codes.BANK,
    ),
}

# Bank transfer / credit card, in Thai and English.
NON_CASH_METHOD_KEYWORDS = ("โอนเงิน", "บัตรเครดิต", "transfer", "card")


def is_non_cash_method(method: Optional[str]) -> bool:
    text = (method or "").strip().lower()
    return any(keyword in text for keyword in NON_CASH_METHOD_KEYWORDS)


def split_vat(total: Any, config: LedgerConfig) -> Tuple[Decimal, Decimal]:
    """(revenue, vat) for a VAT-inclusive total."""
    total = to_money(total)
    if not config.enable_vat or config.vat_rate <= 0:
        return total, Decimal("0.00")
    rate = config.vat_rate
    vat = (total * rate / (Decimal(100) + rate)).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    return total - vat, vat


# ══════════════════════════════════════════════════════════════
# BUSINESS EVENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BusinessEvent:
    """
    One postable business event.

    source_id:  id of the business record; feeds the reference
    amount:     VAT-inclusive total (qty × unit cost for receipts)
    method:     payment method (payments only)
    term:       installment term number (installments only)
    label:      item name (receipts only)
    """
    kind: PostingEvent
    source_id: str
    date: str
    amount: Decimal
    method: str = ""
    term: Optional[int] = None
    label: str = ""

    def __post_init__(self):
        if not isinstance(self.kind, PostingEvent):
            raise ValueError("kind must be a PostingEvent enum.")
        if not self.source_id:
            raise ValueError("source_id must be non-empty.")
        object.__setattr__(self, "amount", to_money(self.amount))
        if self.amount < 0:
            raise ValueError(f"amount must be >= 0, got {self.amount}.")
        if self.kind == PostingEvent.INSTALLMENT_PAYMENT and self.term is None:
            raise ValueError("installment payments require a term.")

    @classmethod
    def inventory_receipt(
        cls, *, source_id: str, date: str, quantity: int, unit_cost: Any,
        label: str = "",
    ) -> BusinessEvent:
        return cls(
            kind=PostingEvent.INVENTORY_RECEIPT,
            source_id=source_id,
            date=date,
            amount=Decimal(quantity) * to_money(unit_cost),
            label=label,
        )

    @property
    def reference(self) -> str:
        prefix = POSTING_RULES[self.kind].reference_prefix
        if self.kind == PostingEvent.INSTALLMENT_PAYMENT:
            return f"{prefix}-{self.source_id[:4]}-{self.term}"
        return f"{prefix}-{self.source_id[:6]}"

    @property
    def description(self) -> str:
        if self.kind == PostingEvent.INVENTORY_RECEIPT:
            return f"Stock received: {self.label or self.source_id}"
        if self.kind == PostingEvent.PRESCRIPTION_SALE:
            return "Prescription revenue (RX)"
        if self.kind == PostingEvent.POS_SALE:
            return "Point-of-sale revenue"
        if self.kind == PostingEvent.PAYMENT_RECEIVED:
            return f"Payment received from customer: {self.method}"
        return f"Installment payment, term {self.term}"


# ══════════════════════════════════════════════════════════════
# POSTING RESULT
# ══════════════════════════════════════════════════════════════

class PostingOutcome(Enum):
    COMPLETE = "COMPLETE"
    PARTIAL = "PARTIAL"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class OmittedLine:
    code: str
    side: str
    amount: Decimal


@dataclass(frozen=True)
class PostingResult:
    """
    What auto-posting did with one event.

    entry is None when outcome is SKIPPED. entry_id is set once the
    entry has been written to the journal.
    """
    event: BusinessEvent
    entry: Optional[JournalPostRequest]
    omitted_lines: Tuple[OmittedLine, ...]
    outcome: PostingOutcome
    entry_id: Optional[str] = None

    @property
    def posted(self) -> bool:
        return self.entry_id is not None


# ══════════════════════════════════════════════════════════════
# RULE EVALUATION (pure)
# ══════════════════════════════════════════════════════════════

def build_posting(
    event: BusinessEvent,
    chart: ChartOfAccounts,
    config: Optional[LedgerConfig] = None,
) -> PostingResult:
    """Apply the event's rule against the chart. Writes nothing."""
    config = config or LedgerConfig()
    rule = POSTING_RULES[event.kind]
    policy = config.missing_account_policy

    debit_code = rule.debit_code
    if rule.non_cash_debit_code and is_non_cash_method(event.method):
        debit_code = rule.non_cash_debit_code

    if rule.vat_code is not None:
        revenue, vat = split_vat(event.amount, config)
    else:
        revenue, vat = event.amount, Decimal("0.00")

    # (code, side, amount, essential)
    planned = [
        (debit_code, "debit", event.amount, True),
        (rule.credit_code, "credit", revenue, True),
    ]
    if rule.vat_code is not None and vat > 0:
        planned.append((rule.vat_code, "credit", vat, False))

    lines: List[JournalLine] = []
    omitted: List[OmittedLine] = []
    for code, side, amount, essential in planned:
        account = chart.by_code(code)
        if account is not None:
            if side == "debit":
                lines.append(JournalLine.debit_to(account, amount))
            else:
                lines.append(JournalLine.credit_to(account, amount))
            continue

        if policy == MissingAccountPolicy.FAIL:
            logger.error(f"{event.kind.value}: account {code} missing")
            raise MissingAccountError(code, event.kind.value)
        omitted.append(OmittedLine(code=code, side=side, amount=amount))
        logger.warning(
            f"{event.kind.value} {event.reference}: account {code} missing, "
            f"{side} line of {amount} omitted"
        )
        if policy == MissingAccountPolicy.SKIP_ENTRY and essential:
            return PostingResult(
                event=event,
                entry=None,
                omitted_lines=tuple(
                    OmittedLine(code=c, side=s, amount=a) for c, s, a, _ in planned
                ),
                outcome=PostingOutcome.SKIPPED,
            )

    if not lines:
        return PostingResult(
            event=event,
            entry=None,
            omitted_lines=tuple(omitted),
            outcome=PostingOutcome.SKIPPED,
        )

    entry = JournalPostRequest(
        date=event.date,
        reference=event.reference,
        description=event.description,
        lines=tuple(lines),
        total_amount=event.amount,
        module_source=rule.module_source,
    )
    return PostingResult(
        event=event,
        entry=entry,
        omitted_lines=tuple(omitted),
        outcome=PostingOutcome.PARTIAL if omitted else PostingOutcome.COMPLETE,
    )


# ══════════════════════════════════════════════════════════════
# AUTO POSTER
# ══════════════════════════════════════════════════════════════

class AutoPoster:
    """Builds postings against the live chart and writes them."""

    def __init__(self, ledger, *, chart_loader, config: Optional[LedgerConfig] = None):
        self._ledger = ledger
        self._chart_loader = chart_loader
        self._config = config or LedgerConfig()

    def post(self, event: BusinessEvent) -> PostingResult:
        result = build_posting(event, self._chart_loader(), self._config)
        if result.entry is None:
            logger.warning(
                f"{event.kind.value} {event.reference}: nothing posted "
                f"({len(result.omitted_lines)} lines unresolved)"
            )
            return result
        entry_id = self._ledger.post(result.entry)
        return replace(result, entry_id=entry_id)
