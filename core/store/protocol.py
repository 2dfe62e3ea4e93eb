"""
BOL Store — Repository Contract
=================================
The narrow store interface every engine depends on.

A store is key-addressable. Keys follow `collection/record_id`.
Values are JSON-compatible dicts.

Primitives:
    get          — read one record by key
    list         — read every record in a collection
    set / merge  — single-key write (full replace / shallow field merge)
    delete       — remove one record
    transact     — atomic single-key read-modify-write
    batch_write  — atomic multi-key write (all-or-nothing)
    subscribe    — change notification by key prefix

Engines never touch a concrete backend. Backends:
    core.store.memory.InMemoryStore       (tests, bootstrap)
    core.store.django_store.DjangoStore   (Django ORM)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from core.store.errors import InvalidKeyError


Record = Dict[str, Any]
ChangeHandler = Callable[[str, Optional[Record]], None]
TransactFn = Callable[[Optional[Record]], Optional[Record]]


# ══════════════════════════════════════════════════════════════
# KEY HELPERS
# ══════════════════════════════════════════════════════════════

def make_key(collection: str, record_id: str) -> str:
    if not collection or "/" in collection:
        raise InvalidKeyError(f"{collection}/{record_id}")
    if not record_id or "/" in str(record_id):
        raise InvalidKeyError(f"{collection}/{record_id}")
    return f"{collection}/{record_id}"


def split_key(key: str) -> tuple[str, str]:
    parts = key.split("/") if isinstance(key, str) else []
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidKeyError(str(key))
    return parts[0], parts[1]


# ══════════════════════════════════════════════════════════════
# BATCH WRITE OPERATIONS
# ══════════════════════════════════════════════════════════════

class WriteKind(Enum):
    SET = "SET"
    MERGE = "MERGE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class WriteOp:
    """
    One write inside an atomic batch.

    MERGE requires the record to exist; a MERGE on a missing key
    rejects the whole batch.
    """
    kind: WriteKind
    key: str
    value: Record = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.kind, WriteKind):
            raise ValueError("kind must be WriteKind enum.")
        split_key(self.key)
        if not isinstance(self.value, dict):
            raise TypeError("value must be a dict.")

    @classmethod
    def set(cls, key: str, value: Record) -> WriteOp:
        return cls(kind=WriteKind.SET, key=key, value=dict(value))

    @classmethod
    def merge(cls, key: str, fields: Record) -> WriteOp:
        return cls(kind=WriteKind.MERGE, key=key, value=dict(fields))

    @classmethod
    def delete(cls, key: str) -> WriteOp:
        return cls(kind=WriteKind.DELETE, key=key)


# ══════════════════════════════════════════════════════════════
# STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class KeyValueStore(Protocol):
    """Injectable store used by every engine."""

    def new_id(self, collection: str) -> str:
        ...  # pragma: no cover

    def get(self, key: str) -> Optional[Record]:
        ...  # pragma: no cover

    def list(self, collection: str) -> List[Record]:
        ...  # pragma: no cover

    def set(self, key: str, value: Record) -> None:
        ...  # pragma: no cover

    def merge(self, key: str, fields: Record) -> None:
        ...  # pragma: no cover

    def delete(self, key: str) -> None:
        ...  # pragma: no cover

    def transact(self, key: str, fn: TransactFn) -> Optional[Record]:
        """
        Atomically apply fn(current) and store its result.

        fn receives a private copy of the current record (or None).
        Returning None leaves a missing record absent and deletes
        an existing one. Returns the committed value.
        """
        ...  # pragma: no cover

    def batch_write(self, ops: Sequence[WriteOp]) -> None:
        """Apply every op or none of them."""
        ...  # pragma: no cover

    def subscribe(self, prefix: str, handler: ChangeHandler) -> Callable[[], None]:
        """Register handler for keys starting with prefix. Returns unsubscribe."""
        ...  # pragma: no cover
