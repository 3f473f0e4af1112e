# warehouse_server/app/config.py
import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


APP_PASSWORD = os.getenv("APP_PASSWORD", "admin123")

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'warehouse.db'}")
SQLITE_BUSY_TIMEOUT = _float_env("SQLITE_BUSY_TIMEOUT", 10.0)

# bulk import transaction: wait for a slot, then bounded execution (hundreds of rows)
IMPORT_MAX_WAIT = _float_env("IMPORT_MAX_WAIT", 10.0)
IMPORT_TIMEOUT = _float_env("IMPORT_TIMEOUT", 60.0)

DEFAULT_PAGE_SIZE = _int_env("DEFAULT_PAGE_SIZE", 50)
MAX_PAGE_SIZE = _int_env("MAX_PAGE_SIZE", 500)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _int_env("PORT", 8000)
