"""
BOL Store — Errors
====================
Error types for the key-addressable store.
Engines see these as generic failures; they never classify them further.
"""


class StoreError(Exception):
    """Base error for store operations."""
    pass


class InvalidKeyError(StoreError):
    """Key does not follow collection/record_id format."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Store key '{key}' does not follow collection/record_id format."
        )


class BatchWriteRejected(StoreError):
    """
    A multi-key batch write was rejected as a whole.

    Nothing in the batch was applied.
    """

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(
            f"Batch write rejected at key '{key}': {reason}. "
            f"No write in the batch was applied."
        )
