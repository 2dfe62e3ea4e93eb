"""
BOL Accounting Engine — Chart of Accounts
===========================================
Static lookup of financial accounts by code, id or type.

The chart is consumed, never mutated, by the ledger. It is loaded
from the `accounts` collection once per operation; the shop's
default chart can be seeded into an empty store.

Account codes used by auto-posting:
    1001 Cash               1002 Bank
    1200 A/R                1300 Inventory
    2001 A/P                2002 Output VAT
    4001 Sales revenue      4002 Service revenue
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from core.primitives.ledger import Account, AccountType
from core.store.protocol import KeyValueStore, WriteOp, make_key

logger = logging.getLogger("bol.accounting")

ACCOUNTS_COLLECTION = "accounts"


# ══════════════════════════════════════════════════════════════
# ACCOUNT CODES
# ══════════════════════════════════════════════════════════════

CASH = "1001"
BANK = "1002"
ACCOUNTS_RECEIVABLE = "1200"
INVENTORY = "1300"
ACCOUNTS_PAYABLE = "2001"
OUTPUT_VAT = "2002"
SALES_REVENUE = "4001"
SERVICE_REVENUE = "4002"


def _system(code: str, name: str, account_type: AccountType) -> Account:
    return Account(
        account_id=f"acc_{code}",
        code=code,
        name=name,
        account_type=account_type,
        is_system=True,
    )


DEFAULT_ACCOUNTS: Tuple[Account, ...] = (
    _system(CASH, "Cash", AccountType.ASSET),
    _system(BANK, "Bank", AccountType.ASSET),
    _system(ACCOUNTS_RECEIVABLE, "Accounts Receivable", AccountType.ASSET),
    _system(INVENTORY, "Inventory", AccountType.ASSET),
    _system(ACCOUNTS_PAYABLE, "Accounts Payable", AccountType.LIABILITY),
    _system(OUTPUT_VAT, "Output VAT", AccountType.LIABILITY),
    _system("2003", "Input VAT", AccountType.ASSET),
    _system("2004", "Unearned Revenue", AccountType.LIABILITY),
    _system("3001", "Capital", AccountType.EQUITY),
    _system("3002", "Retained Earnings", AccountType.EQUITY),
    _system(SALES_REVENUE, "Sales Revenue", AccountType.REVENUE),
    _system(SERVICE_REVENUE, "Service Revenue", AccountType.REVENUE),
    _system("4003", "Sales Discount", AccountType.REVENUE),
    _system("5001", "Cost of Goods Sold", AccountType.EXPENSE),
    _system("5002", "Salary Expense", AccountType.EXPENSE),
    _system("5003", "Rent Expense", AccountType.EXPENSE),
    _system("5004", "Utilities", AccountType.EXPENSE),
)


# ══════════════════════════════════════════════════════════════
# CHART
# ══════════════════════════════════════════════════════════════

class ChartOfAccounts:
    """Immutable in-memory view of the chart."""

    def __init__(self, accounts: Iterable[Account] = ()):
        self._accounts: Tuple[Account, ...] = tuple(accounts)
        self._by_code: Dict[str, Account] = {}
        self._by_id: Dict[str, Account] = {}
        for account in self._accounts:
            # First definition of a code wins.
            self._by_code.setdefault(account.code, account)
            self._by_id.setdefault(account.account_id, account)

    def by_code(self, code: str) -> Optional[Account]:
        return self._by_code.get(code)

    def by_id(self, account_id: str) -> Optional[Account]:
        return self._by_id.get(account_id)

    def by_type(self, account_type: AccountType) -> List[Account]:
        return [a for a in self._accounts if a.account_type == account_type]

    def __contains__(self, code: str) -> bool:
        return code in self._by_code

    def __len__(self) -> int:
        return len(self._accounts)

    @property
    def accounts(self) -> Tuple[Account, ...]:
        return self._accounts

    @classmethod
    def default(cls) -> ChartOfAccounts:
        return cls(DEFAULT_ACCOUNTS)


def load_chart(store: KeyValueStore) -> ChartOfAccounts:
    """Read the chart from the `accounts` collection."""
    return ChartOfAccounts(
        Account.from_dict(record) for record in store.list(ACCOUNTS_COLLECTION)
    )


def seed_default_chart(store: KeyValueStore) -> int:
    """
    Write every default account whose code is not yet present.

    Returns the number of accounts written.
    """
    existing = load_chart(store)
    missing = [a for a in DEFAULT_ACCOUNTS if a.code not in existing]
    if missing:
        store.batch_write([
            WriteOp.set(make_key(ACCOUNTS_COLLECTION, a.account_id), a.to_dict())
            for a in missing
        ])
        logger.info(f"Seeded {len(missing)} default accounts")
    return len(missing)
