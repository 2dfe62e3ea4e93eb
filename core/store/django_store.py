"""
BOL Store — Django ORM Backend
================================
KeyValueStore on top of the StoredRecord model.

Atomicity:
- transact: transaction.atomic() + select_for_update() on the key row
- batch_write: one transaction.atomic() block; any failure rolls
  back every op in the batch

Subscribers are notified AFTER commit only (transaction.on_commit),
so a rolled-back write is never heard.
"""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Callable, List, Optional, Sequence

from django.db import DatabaseError, transaction
from django.db.models import F

from core.store.errors import BatchWriteRejected, StoreError
from core.store.models import StoredRecord
from core.store.protocol import (
    ChangeHandler,
    Record,
    TransactFn,
    WriteKind,
    WriteOp,
    split_key,
)
from core.store.subscriptions import SubscriptionRegistry

logger = logging.getLogger("bol.store")


def _write_row(key: str, data: Record, using: str) -> None:
    collection, _ = split_key(key)
    updated = StoredRecord.objects.using(using).filter(key=key).update(
        data=data, version=F("version") + 1,
    )
    if not updated:
        StoredRecord.objects.using(using).create(key=key, collection=collection, data=data)


class DjangoStore:
    """Django ORM implementation of KeyValueStore."""

    def __init__(self, using: str = "default"):
        self._using = using
        self._subscriptions = SubscriptionRegistry()

    def _notify_on_commit(self, key: str, value: Optional[Record]) -> None:
        transaction.on_commit(
            lambda: self._subscriptions.notify(key, value),
            using=self._using,
        )

    # ── reads ─────────────────────────────────────────────────

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex

    def get(self, key: str) -> Optional[Record]:
        split_key(key)
        row = StoredRecord.objects.using(self._using).filter(key=key).first()
        return copy.deepcopy(row.data) if row is not None else None

    def list(self, collection: str) -> List[Record]:
        rows = (
            StoredRecord.objects.using(self._using)
            .filter(collection=collection)
            .order_by("key")
            .values_list("data", flat=True)
        )
        return [copy.deepcopy(data) for data in rows]

    # ── single-key writes ─────────────────────────────────────

    def set(self, key: str, value: Record) -> None:
        self.batch_write([WriteOp.set(key, value)])

    def merge(self, key: str, fields: Record) -> None:
        def apply(current: Optional[Record]) -> Record:
            return {**(current or {}), **fields}

        self.transact(key, apply)

    def delete(self, key: str) -> None:
        self.batch_write([WriteOp.delete(key)])

    def transact(self, key: str, fn: TransactFn) -> Optional[Record]:
        split_key(key)
        try:
            with transaction.atomic(using=self._using):
                row = (
                    StoredRecord.objects.using(self._using)
                    .select_for_update()
                    .filter(key=key)
                    .first()
                )
                current = copy.deepcopy(row.data) if row is not None else None
                result = fn(current)
                if result is None:
                    if row is not None:
                        row.delete()
                        self._notify_on_commit(key, None)
                    return None
                if not isinstance(result, dict):
                    raise StoreError(
                        f"Transaction function must return dict or None, "
                        f"got {type(result).__name__}."
                    )
                _write_row(key, result, self._using)
                self._notify_on_commit(key, copy.deepcopy(result))
                return copy.deepcopy(result)
        except DatabaseError as exc:
            logger.error(f"Transaction on '{key}' failed: {exc}")
            raise StoreError(f"Transaction on '{key}' failed: {exc}") from exc

    # ── multi-key writes ──────────────────────────────────────

    def batch_write(self, ops: Sequence[WriteOp]) -> None:
        try:
            with transaction.atomic(using=self._using):
                for op in ops:
                    if not isinstance(op, WriteOp):
                        raise BatchWriteRejected(
                            str(getattr(op, "key", op)), "not a WriteOp"
                        )
                    if op.kind == WriteKind.SET:
                        _write_row(op.key, op.value, self._using)
                        self._notify_on_commit(op.key, copy.deepcopy(op.value))
                    elif op.kind == WriteKind.MERGE:
                        row = (
                            StoredRecord.objects.using(self._using)
                            .select_for_update()
                            .filter(key=op.key)
                            .first()
                        )
                        if row is None:
                            raise BatchWriteRejected(
                                op.key, "merge target does not exist"
                            )
                        merged = {**row.data, **op.value}
                        _write_row(op.key, merged, self._using)
                        self._notify_on_commit(op.key, copy.deepcopy(merged))
                    else:
                        StoredRecord.objects.using(self._using).filter(
                            key=op.key
                        ).delete()
                        self._notify_on_commit(op.key, None)
        except DatabaseError as exc:
            logger.error(f"Batch write of {len(ops)} ops failed: {exc}")
            raise BatchWriteRejected("*", str(exc)) from exc

    # ── subscriptions ─────────────────────────────────────────

    def subscribe(self, prefix: str, handler: ChangeHandler) -> Callable[[], None]:
        return self._subscriptions.subscribe(prefix, handler)
