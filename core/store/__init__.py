"""
BOL Store — Public API
========================
Key-addressable store contract and the in-memory backend.

The Django backend is imported explicitly from
core.store.django_store, since it requires configured settings.
"""

from core.store.errors import BatchWriteRejected, InvalidKeyError, StoreError
from core.store.memory import InMemoryStore
from core.store.protocol import (
    KeyValueStore,
    WriteKind,
    WriteOp,
    make_key,
    split_key,
)

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "WriteKind",
    "WriteOp",
    "make_key",
    "split_key",
    "StoreError",
    "InvalidKeyError",
    "BatchWriteRejected",
]
