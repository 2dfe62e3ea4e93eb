"""
BOL Accounting Engine — Request Commands
==========================================
Typed requests accepted by the journal ledger.

A JournalPostRequest is an entry WITHOUT id / created_at /
created_by; the ledger assigns those at post time.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from core.primitives.ledger import (
    EntryStatus,
    JournalEntry,
    JournalLine,
    ModuleSource,
    lines_balanced,
    sum_credits,
    sum_debits,
    to_money,
)
from core.time.temporal import date_part, period_of


# ══════════════════════════════════════════════════════════════
# JOURNAL POST REQUEST
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JournalPostRequest:
    """Request to post a journal entry."""
    date: str
    reference: str
    description: str
    lines: tuple
    total_amount: Optional[Decimal] = None
    module_source: ModuleSource = ModuleSource.MANUAL
    status: EntryStatus = EntryStatus.POSTED

    def __post_init__(self):
        date_part(self.date)
        if not isinstance(self.lines, tuple):
            raise ValueError("lines must be a tuple of JournalLine.")
        for line in self.lines:
            if not isinstance(line, JournalLine):
                raise ValueError(
                    f"lines must contain JournalLine, got {type(line).__name__}."
                )
        if self.total_amount is None:
            object.__setattr__(self, "total_amount", sum_debits(self.lines))
        else:
            object.__setattr__(self, "total_amount", to_money(self.total_amount))
        if not isinstance(self.module_source, ModuleSource):
            object.__setattr__(
                self, "module_source", ModuleSource(self.module_source)
            )
        if not isinstance(self.status, EntryStatus):
            object.__setattr__(self, "status", EntryStatus(self.status))

    @property
    def period(self) -> tuple:
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

    def to_entry(
        self, *, entry_id: str, created_by: str, created_at: str,
    ) -> JournalEntry:
        # Entries written by this core are always posted.
        return JournalEntry(
            entry_id=entry_id,
            date=self.date,
            reference=self.reference,
            description=self.description,
            lines=self.lines,
            total_amount=self.total_amount,
            status=EntryStatus.POSTED,
            module_source=self.module_source,
            created_by=created_by,
            created_at=created_at,
        )

    @classmethod
    def simple(
        cls,
        *,
        date: str,
        reference: str,
        description: str,
        lines: Sequence[dict],
        module_source: ModuleSource = ModuleSource.MANUAL,
    ) -> JournalPostRequest:
        """Build from plain line dicts (account_id, account_name, debit, credit)."""
        return cls(
            date=date,
            reference=reference,
            description=description,
            lines=tuple(JournalLine.from_dict(l) for l in lines),
            module_source=module_source,
        )
