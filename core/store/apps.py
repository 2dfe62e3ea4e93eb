"""
BOL Core — Store App Configuration
====================================
Registers the Django-backed key-addressable store.

This app:
- Persists JSON documents by key
- Provides row-level locking for single-key read-modify-write
- Provides atomic multi-key batch writes

This app does NOT:
- Interpret document contents
- Enforce ledger invariants (engines do that)
"""

from django.apps import AppConfig


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.store"
    label = "bol_store"
    verbose_name = "BOL Key-Addressable Store"
