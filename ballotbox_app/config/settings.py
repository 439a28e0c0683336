from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


DEBUG = _env_bool("DEBUG", default=False)

# The ledger serves no HTTP traffic; the key only satisfies Django's startup checks.
SECRET_KEY = os.environ.get("SECRET_KEY", "ballotbox-insecure-development-key")

ALLOWED_HOSTS: list[str] = []

INSTALLED_APPS = [
    "ledger",
]

# Records live in CSV snapshots under LEDGER_DATA_DIR, not in a database.
DATABASES: dict[str, dict[str, str]] = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

LEDGER_DATA_DIR = Path(os.environ.get("LEDGER_DATA_DIR", str(BASE_DIR / "data")))

LEDGER_DEFAULT_ADMIN_USERNAME = os.environ.get("LEDGER_DEFAULT_ADMIN_USERNAME", "admin").strip()
# Empty disables default administrator creation in `ledger_bootstrap`.
LEDGER_DEFAULT_ADMIN_PASSWORD = os.environ.get("LEDGER_DEFAULT_ADMIN_PASSWORD", "")

LEDGER_LOG_LEVEL = os.environ.get("LEDGER_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "error": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "error",
        },
    },
    "loggers": {
        "ledger": {
            "handlers": ["stderr"],
            "level": LEDGER_LOG_LEVEL,
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["stderr"],
        "level": "WARNING",
    },
}
