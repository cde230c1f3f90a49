import os
import secrets
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

DB_PATH = os.environ.get("HEALTH_DB_PATH", "health.db")
SECRET_KEY_PATH = Path(".app_secret_key")
SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", str(60 * 60 * 24 * 14)))
SESSION_COOKIE_NAME = "health_session"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

DEFAULT_ADMIN_USERNAME = os.environ.get("DEFAULT_ADMIN_USERNAME", "").strip()
DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "")

SEVERITY_MIN = 1
SEVERITY_MAX = 10
DEFAULT_STATS_DAYS = 30
MAX_STATS_DAYS = 36500  # larger windows are treated as this one
DEFAULT_LOG_LIMIT = 20
MAX_LOG_LIMIT = 100
DEFAULT_MESSAGE_LIMIT = 50
BASELINE_DAYS = 30  # severity window before a treatment starts

STORAGE_FMT = "%Y-%m-%d %H:%M:%S"

PUBLIC_PATHS = {"/", "/login", "/signup", "/logout"}

_current_user_id: ContextVar[Optional[int]] = ContextVar("_current_user_id", default=None)
_current_role:    ContextVar[Optional[str]] = ContextVar("_current_role",    default=None)


def _utcnow() -> datetime:
    """Naive UTC now; every stored timestamp uses this reference."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_utc_storage(dt: datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.strftime(STORAGE_FMT)


def _load_secret_key() -> str:
    env_key = os.environ.get("APP_SECRET_KEY", "").strip()
    if env_key:
        return env_key
    if SECRET_KEY_PATH.exists():
        return SECRET_KEY_PATH.read_text(encoding="utf-8").strip()
    key = secrets.token_hex(32)
    SECRET_KEY_PATH.write_text(key, encoding="utf-8")
    return key


SECRET_KEY = _load_secret_key()
