from __future__ import annotations

import os
from pathlib import Path


def _default_data_file() -> str:
    here = Path(__file__).resolve().parent.parent
    return str(here / "storage" / "freshguard_data.json")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


DATA_FILE = os.getenv("FRESHGUARD_DATA_FILE", _default_data_file())
LOG_LEVEL = os.getenv("FRESHGUARD_LOG_LEVEL", "INFO").upper()

# Classifier thresholds, inclusive upper bounds in days.
DUE_TODAY_DAYS = 0
URGENT_MAX_DAYS = _env_int("FRESHGUARD_URGENT_MAX_DAYS", 2)
SOON_MAX_DAYS = _env_int("FRESHGUARD_SOON_MAX_DAYS", 5)

DEFAULT_WINDOW_DAYS_BY_KIND: dict[str, int] = {
    "refrigerated": 7,
    "frozen": 30,
    "pantry": 60,
}

DEFAULT_DIGEST_HOUR = 9
DEFAULT_DIGEST_MINUTE = 0
DIGEST_MAX_ENTRIES = _env_int("FRESHGUARD_DIGEST_MAX_ENTRIES", 10)

MAX_NEAREST_DAYS = 365
MAX_UNITS = 999
DEFAULT_COUNT_LABEL = "1 unit"


def get_cors_allow_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").strip()
    if not raw:
        return ["*"]
    return [entry.strip() for entry in raw.split(",") if entry.strip()]
