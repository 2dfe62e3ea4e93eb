"""
BOL Store — Stored Record Model
=================================
One row per store key. The payload is an opaque JSON document;
the store never interprets it.

RULES:
- key is `collection/record_id` and is the primary key
- collection is denormalized from key for collection scans
- version increments on every write (diagnostics only)
"""

from django.db import models


class StoredRecord(models.Model):
    """Single key-addressable document."""

    key = models.CharField(
        max_length=255,
        primary_key=True,
        help_text="Store key in collection/record_id format.",
    )

    collection = models.CharField(
        max_length=100,
        help_text="First segment of the key.",
    )

    data = models.JSONField(
        default=dict,
        help_text="JSON document stored under this key.",
    )

    version = models.PositiveIntegerField(
        default=1,
        help_text="Write counter for this key.",
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Last time this key was written.",
    )

    class Meta:
        db_table = "bol_store_record"
        ordering = ["key"]
        indexes = [
            models.Index(
                fields=["collection"],
                name="idx_store_collection",
            ),
        ]

    def __str__(self):
        return f"{self.key} (v{self.version})"
