"""
BOL Promotion Engine — Audit Events
"""

SETTINGS_MODULE = "SETTINGS"

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"


def promotion_saved_description(name: str, created: bool) -> str:
    verb = "created" if created else "updated"
    return f"Promotion {verb}: {name}"


def promotion_deleted_description(promotion_id: str) -> str:
    return f"Promotion deleted: {promotion_id}"
