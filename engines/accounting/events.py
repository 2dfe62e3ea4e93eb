"""
BOL Accounting Engine — Audit Events
======================================
Engine: Accounting

Every mutating ledger operation emits one audit record to the
audit collaborator. This module names the module/action pairs
and builds the human-readable descriptions.

    journal post    → CREATE  ACCOUNTING  (before=None, after=entry)
    journal update  → UPDATE  ACCOUNTING  (before=old,  after=patch)
    journal delete  → DELETE  ACCOUNTING  (before=old,  after=None)
    period close    → UPDATE  ACCOUNTING  (after=lock record)
    period reopen   → UPDATE  ACCOUNTING  (before=lock record)
"""

from __future__ import annotations

from core.primitives.ledger import JournalEntry


ACCOUNTING_MODULE = "ACCOUNTING"

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"


# ══════════════════════════════════════════════════════════════
# DESCRIPTION BUILDERS
# ══════════════════════════════════════════════════════════════

def journal_posted_description(entry: JournalEntry) -> str:
    return f"Journal entry posted: {entry.description or entry.reference}"


def journal_updated_description(entry_id: str) -> str:
    return f"Journal entry updated: {entry_id}"


def journal_deleted_description(entry_id: str) -> str:
    return f"Journal entry deleted: {entry_id}"


def period_closed_description(year: int, month: int) -> str:
    return f"Accounting period closed: {month}/{year}"


def period_reopened_description(year: int, month: int) -> str:
    return f"Accounting period reopened: {month}/{year}"
