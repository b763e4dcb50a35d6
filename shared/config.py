import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _float_env(name: str, default: float) -> float:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return float(raw)
    except Exception:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"true", "1", "yes"}


PANEL_URL = str(os.getenv("FLEET_PANEL_URL", "")).strip().rstrip("/")
PANEL_TOKEN = str(os.getenv("FLEET_PANEL_TOKEN", "")).strip()

SERVERS_FILE = os.getenv("FLEET_SERVERS_FILE")
TOKENS_FILE = os.getenv("FLEET_TOKENS_FILE")

REQUEST_TIMEOUT_SECONDS = _float_env("FLEET_REQUEST_TIMEOUT_SECONDS", 2.0)
CACHE_TTL_SECONDS = _int_env("FLEET_CACHE_TTL_SECONDS", 10)
REFRESH_INTERVAL_SECONDS = _int_env("FLEET_REFRESH_INTERVAL_SECONDS", 10)
REFRESHER_ENABLED = _bool_env("FLEET_REFRESHER_ENABLED", True)

_DEFAULT_DB_PATH = PROJECT_ROOT / "dashboard" / "data" / "fleet.db"
DATABASE_URL = str(os.getenv("FLEET_DB_URL", f"sqlite:///{_DEFAULT_DB_PATH.as_posix()}"))

API_PORT = _int_env("FLEET_API_PORT", 8010)
API_BIND_HOST = str(os.getenv("FLEET_API_BIND_HOST", "0.0.0.0"))

LOG_LEVEL = str(os.getenv("FLEET_LOG_LEVEL", "INFO"))
LOG_FILE = os.getenv("FLEET_LOG_FILE")

AUDIT_WEBHOOK_URL = os.getenv("FLEET_AUDIT_WEBHOOK_URL") or None
