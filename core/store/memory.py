"""
BOL Store — In-Memory Backend
===============================
Dict-backed store for tests and bootstrap.

Atomicity:
- transact holds the store lock across read → fn → write
- batch_write validates every op first, then applies under one lock

Records are deep-copied on the way in and out, so callers can
never mutate stored state by reference.
"""

from __future__ import annotations

import copy
import uuid
from threading import RLock
from typing import Callable, Dict, List, Optional, Sequence

from core.store.errors import BatchWriteRejected, StoreError
from core.store.protocol import (
    ChangeHandler,
    Record,
    TransactFn,
    WriteKind,
    WriteOp,
    split_key,
)
from core.store.subscriptions import SubscriptionRegistry


class InMemoryStore:
    """Thread-safe in-memory implementation of KeyValueStore."""

    def __init__(self, initial: Optional[Dict[str, Record]] = None):
        self._data: Dict[str, Record] = {}
        self._lock = RLock()
        self._subscriptions = SubscriptionRegistry()
        for key, value in (initial or {}).items():
            split_key(key)
            self._data[key] = copy.deepcopy(value)

    # ── reads ─────────────────────────────────────────────────

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex

    def get(self, key: str) -> Optional[Record]:
        split_key(key)
        with self._lock:
            value = self._data.get(key)
            return copy.deepcopy(value) if value is not None else None

    def list(self, collection: str) -> List[Record]:
        prefix = f"{collection}/"
        with self._lock:
            return [
                copy.deepcopy(self._data[key])
                for key in sorted(self._data)
                if key.startswith(prefix)
            ]

    # ── single-key writes ─────────────────────────────────────

    def set(self, key: str, value: Record) -> None:
        self.batch_write([WriteOp.set(key, value)])

    def merge(self, key: str, fields: Record) -> None:
        split_key(key)
        with self._lock:
            current = self._data.get(key, {})
            merged = {**current, **copy.deepcopy(fields)}
            self._data[key] = merged
            committed = copy.deepcopy(merged)
        self._subscriptions.notify(key, committed)

    def delete(self, key: str) -> None:
        self.batch_write([WriteOp.delete(key)])

    def transact(self, key: str, fn: TransactFn) -> Optional[Record]:
        split_key(key)
        with self._lock:
            current = self._data.get(key)
            result = fn(copy.deepcopy(current) if current is not None else None)
            if result is None:
                self._data.pop(key, None)
            elif not isinstance(result, dict):
                raise StoreError(
                    f"Transaction function must return dict or None, "
                    f"got {type(result).__name__}."
                )
            else:
                self._data[key] = copy.deepcopy(result)
            committed = copy.deepcopy(result) if result is not None else None
        if result is not None or current is not None:
            self._subscriptions.notify(key, committed)
        return committed

    # ── multi-key writes ──────────────────────────────────────

    def batch_write(self, ops: Sequence[WriteOp]) -> None:
        changed: List[tuple] = []
        with self._lock:
            for op in ops:
                if not isinstance(op, WriteOp):
                    raise BatchWriteRejected(
                        str(getattr(op, "key", op)), "not a WriteOp"
                    )
                if op.kind == WriteKind.MERGE and op.key not in self._data:
                    raise BatchWriteRejected(op.key, "merge target does not exist")

            staged = dict(self._data)
            for op in ops:
                if op.kind == WriteKind.SET:
                    staged[op.key] = copy.deepcopy(op.value)
                elif op.kind == WriteKind.MERGE:
                    staged[op.key] = {**staged[op.key], **copy.deepcopy(op.value)}
                else:
                    staged.pop(op.key, None)
                changed.append(op.key)

            self._data = staged
            notifications = [
                (key, copy.deepcopy(staged.get(key))) for key in changed
            ]

        for key, value in notifications:
            self._subscriptions.notify(key, value)

    # ── subscriptions ─────────────────────────────────────────

    def subscribe(self, prefix: str, handler: ChangeHandler) -> Callable[[], None]:
        return self._subscriptions.subscribe(prefix, handler)

    @property
    def key_count(self) -> int:
        with self._lock:
            return len(self._data)
