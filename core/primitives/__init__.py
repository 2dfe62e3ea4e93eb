"""
BOL Core Primitives — Shared Ledger Building Blocks
=====================================================
Primitives are the engine-agnostic records every BOL engine
consumes. They are:

- Pure Python (no Django dependency)
- Immutable (frozen dataclasses)
- Store-serializable (to_dict / from_dict, money as strings)

Primitives:
    ledger   — accounts, journal lines/entries, accounting periods
    loyalty  — point transactions and balance helpers
    sales    — purchases, prescriptions, payments
"""
