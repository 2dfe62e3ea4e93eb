"""
BOL – Django Settings (Infrastructure Only)
============================================
Django hosts the ORM-backed store for the ledger.
The engines never import Django; only core.store.django_store does.

LEDGER feeds LedgerConfig.from_django_settings(). Keys follow the
shop settings document (enableVat, vatRate, enablePoints, earnRate,
redeemRate) or their snake_case names.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("BOL_SECRET_KEY", "bol-dev-key-replace-before-deployment")

DEBUG = os.environ.get("BOL_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── BOL Modules ───────────────────────────────────────
    "core.store",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("BOL_DB_NAME", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("BOL_TIME_ZONE", "Asia/Bangkok")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Ledger ────────────────────────────────────────────────────
LEDGER = {
    "enableVat": False,
    "vatRate": 7,
    "enablePoints": True,
    "earnRate": 25,
    "redeemRate": 1,
    "enforce_balance": False,
    "missing_account_policy": "SKIP_LINE",
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "bol": {
            "handlers": ["console"],
            "level": os.environ.get("BOL_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
