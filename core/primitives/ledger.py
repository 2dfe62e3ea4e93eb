"""
BOL Ledger Primitive — Double-Entry Records
=============================================
Engine: Core Primitives
Consumed by: Accounting Engine (journal ledger, period locks, auto-posting)

RULES:
- Money is Decimal quantized to 0.01 — NO floats
- A journal line carries debit and credit, both >= 0
- An entry is balanced when |Σdebit − Σcredit| <= 0.01
- Records here do NOT enforce balance; the ledger decides whether to
- Account names are snapshotted onto lines at post time

This file contains NO persistence logic. Records serialize to
JSON-compatible dicts (money as strings) for the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.time.temporal import date_part, period_of


CENT = Decimal("0.01")
BALANCE_TOLERANCE = Decimal("0.01")


# ══════════════════════════════════════════════════════════════
# MONEY
# ══════════════════════════════════════════════════════════════

def to_money(value: Any) -> Decimal:
    """Coerce int / str / Decimal (or float via str) to a 2dp Decimal."""
    if isinstance(value, bool):
        raise TypeError("Money cannot be a bool.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class AccountType(Enum):
    """Standard account classifications."""
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class EntryStatus(Enum):
    """Journal entry status. This core always writes POSTED."""
    DRAFT = "draft"
    POSTED = "posted"
    VOIDED = "voided"


class ModuleSource(Enum):
    """Business process that generated an entry."""
    SALES = "sales"
    INVENTORY = "inventory"
    MANUAL = "manual"


# ══════════════════════════════════════════════════════════════
# ACCOUNT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Account:
    """
    Chart of accounts entry.

    account_id:  Store identifier (e.g. "acc_1001")
    code:        Chart code used for lookups (e.g. "1001")
    name:        Human-readable name, snapshotted onto journal lines
    """
    account_id: str
    code: str
    name: str
    account_type: AccountType
    is_system: bool = False
    description: str = ""

    def __post_init__(self):
        if not self.account_id or not isinstance(self.account_id, str):
            raise ValueError("account_id must be a non-empty string.")
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not isinstance(self.account_type, AccountType):
            raise ValueError("account_type must be an AccountType enum.")

    def to_dict(self) -> dict:
        return {
            "id": self.account_id,
            "code": self.code,
            "name": self.name,
            "type": self.account_type.value,
            "is_system": self.is_system,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Account:
        return cls(
            account_id=data["id"],
            code=str(data["code"]),
            name=data["name"],
            account_type=AccountType(data["type"]),
            is_system=bool(data.get("is_system", False)),
            description=data.get("description", ""),
        )


# ══════════════════════════════════════════════════════════════
# JOURNAL LINE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JournalLine:
    """
    Single journal line.

    Conventionally exactly one of debit/credit is non-zero.
    That is not enforced here.
    """
    account_id: str
    account_name: str
    debit: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")

    def __post_init__(self):
        if not self.account_id or not isinstance(self.account_id, str):
            raise ValueError("account_id must be a non-empty string.")
        object.__setattr__(self, "debit", to_money(self.debit))
        object.__setattr__(self, "credit", to_money(self.credit))
        if self.debit < 0 or self.credit < 0:
            raise ValueError(
                f"Journal line amounts must be >= 0, got debit={self.debit} "
                f"credit={self.credit} on account '{self.account_id}'."
            )

    @classmethod
    def debit_to(cls, account: Account, amount: Any) -> JournalLine:
        return cls(account.account_id, account.name, debit=amount)

    @classmethod
    def credit_to(cls, account: Account, amount: Any) -> JournalLine:
        return cls(account.account_id, account.name, credit=amount)

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "debit": str(self.debit),
            "credit": str(self.credit),
        }

    @classmethod
    def from_dict(cls, data: dict) -> JournalLine:
        return cls(
            account_id=data["account_id"],
            account_name=data.get("account_name", ""),
            debit=data.get("debit", 0),
            credit=data.get("credit", 0),
        )


def sum_debits(lines: Tuple[JournalLine, ...]) -> Decimal:
    return sum((l.debit for l in lines), Decimal("0.00"))


def sum_credits(lines: Tuple[JournalLine, ...]) -> Decimal:
    return sum((l.credit for l in lines), Decimal("0.00"))


def lines_balanced(
    lines: Tuple[JournalLine, ...],
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> bool:
    return abs(sum_debits(lines) - sum_credits(lines)) <= tolerance


# ══════════════════════════════════════════════════════════════
# JOURNAL ENTRY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JournalEntry:
    """
    Stored journal entry.

    Fields:
        entry_id:      Store identifier
        date:          ISO business date; decides the accounting period
        reference:     External reference (e.g. POS-1a2b3c, RC-...)
        lines:         Tuple of JournalLine
        total_amount:  Headline amount of the business event
        status:        Always POSTED when written by this core
        module_source: sales | inventory | manual
        created_by:    Actor display name at post time
        created_at:    ISO timestamp assigned by the ledger
    """
    entry_id: str
    date: str
    reference: str
    description: str
    lines: Tuple[JournalLine, ...]
    total_amount: Decimal
    status: EntryStatus = EntryStatus.POSTED
    module_source: ModuleSource = ModuleSource.MANUAL
    created_by: str = ""
    created_at: str = ""

    def __post_init__(self):
        if not self.entry_id or not isinstance(self.entry_id, str):
            raise ValueError("entry_id must be a non-empty string.")
        date_part(self.date)
        if not isinstance(self.lines, tuple):
            raise TypeError("lines must be a tuple of JournalLine.")
        object.__setattr__(self, "total_amount", to_money(self.total_amount))
        if not isinstance(self.status, EntryStatus):
            raise ValueError("status must be an EntryStatus enum.")
        if not isinstance(self.module_source, ModuleSource):
            raise ValueError("module_source must be a ModuleSource enum.")

    @property
    def period(self) -> Tuple[int, int]:
        return period_of(self.date)

    @property
    def total_debits(self) -> Decimal:
        return sum_debits(self.lines)

    @property
    def total_credits(self) -> Decimal:
        return sum_credits(self.lines)

    @property
    def is_balanced(self) -> bool:
        return lines_balanced(self.lines)

    def patched(self, patch: Dict[str, Any]) -> JournalEntry:
        """Return a copy with patch fields (dict-shaped, as stored) applied."""
        merged = {**self.to_dict(), **patch}
        merged["id"] = self.entry_id
        return JournalEntry.from_dict(merged)

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "date": self.date,
            "reference": self.reference,
            "description": self.description,
            "lines": [l.to_dict() for l in self.lines],
            "total_amount": str(self.total_amount),
            "status": self.status.value,
            "module_source": self.module_source.value,
            "created_by": self.created_by,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> JournalEntry:
        return cls(
            entry_id=data["id"],
            date=data["date"],
            reference=data.get("reference", ""),
            description=data.get("description", ""),
            lines=tuple(JournalLine.from_dict(l) for l in data.get("lines", [])),
            total_amount=data.get("total_amount", 0),
            status=EntryStatus(data.get("status", EntryStatus.POSTED.value)),
            module_source=ModuleSource(
                data.get("module_source", ModuleSource.MANUAL.value)
            ),
            created_by=data.get("created_by", ""),
            created_at=data.get("created_at", ""),
        )


# ══════════════════════════════════════════════════════════════
# ACCOUNTING PERIOD
# ══════════════════════════════════════════════════════════════

def validate_period(year: int, month: int) -> None:
    if not isinstance(year, int) or isinstance(year, bool) or year < 1:
        raise ValueError(f"year must be a positive integer, got {year!r}.")
    if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month!r}.")


@dataclass(frozen=True)
class AccountingPeriod:
    """
    Lock record for one (year, month).

    Existence of a closed record IS the lock. Reopening deletes it.
    """
    period_id: str
    year: int
    month: int
    is_closed: bool = True
    closed_by: Optional[str] = None
    closed_at: Optional[str] = None

    def __post_init__(self):
        validate_period(self.year, self.month)

    def to_dict(self) -> dict:
        return {
            "id": self.period_id,
            "year": self.year,
            "month": self.month,
            "is_closed": self.is_closed,
            "closed_by": self.closed_by,
            "closed_at": self.closed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AccountingPeriod:
        return cls(
            period_id=data["id"],
            year=int(data["year"]),
            month=int(data["month"]),
            is_closed=bool(data.get("is_closed", False)),
            closed_by=data.get("closed_by"),
            closed_at=data.get("closed_at"),
        )
