"""Helpers shared by the access-layer modules: field checks, list columns, timestamps."""
import json
import logging
import sqlite3
from datetime import date, datetime
from functools import wraps
from typing import Optional

from config import _to_utc_storage, _utcnow
from errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Largest value an SQLite INTEGER column can bind.
SQLITE_INT_MAX = 2**63 - 1


def storage_guard(message: str):
    """Turn sqlite3 failures inside the wrapped call into a StorageError carrying `message`."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except sqlite3.Error as e:
                logger.exception("%s", message)
                raise StorageError(message, details=str(e)) from e
        return wrapper
    return decorator


def _missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def require_fields(fields: dict, names, message: str):
    if any(_missing(fields.get(n)) for n in names):
        raise ValidationError(message)


def clean_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_id(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}") from None
    if abs(parsed) > SQLITE_INT_MAX:
        raise ValidationError(f"Invalid {field}")
    return parsed


def parse_bounded_int(value, field: str, lo: Optional[int] = None, hi: Optional[int] = None) -> Optional[int]:
    """Strict integer check; bools, floats and numeric strings are rejected."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if abs(value) > SQLITE_INT_MAX:
        raise ValidationError(f"{field} is out of range")
    if lo is not None and value < lo or hi is not None and value > hi:
        if lo is not None and hi is not None:
            raise ValidationError(f"{field} must be between {lo} and {hi}")
        raise ValidationError(f"{field} must be at least {lo}" if lo is not None else f"{field} must be at most {hi}")
    return value


def parse_bool(value, field: str) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false")
    return value


def encode_list(value, field: str) -> str:
    """Entries are stored exactly as sent; blank entries are rejected."""
    if value is None:
        return "[]"
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{field} must be a list of strings")
    if any(not v.strip() for v in value):
        raise ValidationError(f"{field} must not contain blank entries")
    return json.dumps(value)


def decode_list(raw) -> list:
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except ValueError:
        logger.warning("Discarding malformed list column value %r", raw)
        return []
    return decoded if isinstance(decoded, list) else []


def parse_timestamp(value, field: str) -> str:
    """ISO-8601 string to UTC storage format; missing values stamp the current time."""
    if _missing(value):
        return _to_utc_storage(_utcnow())
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {field} format")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return _to_utc_storage(datetime.fromisoformat(raw))
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid {field} format") from None


def parse_date(value, field: str) -> Optional[str]:
    if _missing(value):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {field} format")
    try:
        return date.fromisoformat(value.strip()[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid {field} format") from None


def now_storage() -> str:
    return _to_utc_storage(_utcnow())
