import logging
import sqlite3

from config import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME
from db import get_db
from errors import NotFoundError, ValidationError
from security import Role, _hash_password, _verify_password
from services.common import clean_text, now_storage, storage_guard

logger = logging.getLogger(__name__)

MIN_PASSWORD_LEN = 8


def public_user(row) -> dict:
    return {
        "id": row["id"],
        "username": row["username"],
        "email": row["email"],
        "full_name": row["full_name"],
        "role": row["role"],
    }


@storage_guard("Failed to create account")
def create_user(username: str, password: str, email: str = "", full_name: str = "",
                role: Role = Role.PATIENT) -> dict:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    if len(password or "") < MIN_PASSWORD_LEN:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LEN} characters")
    pw_hash = _hash_password(password)
    with get_db() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO users (username, email, full_name, password_hash, role, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (
                    username,
                    (email or "").strip().lower(),
                    clean_text(full_name) or "",
                    pw_hash,
                    Role(role).value,
                    now_storage(),
                ),
            )
        except sqlite3.IntegrityError:
            raise ValidationError("Username already taken") from None
        conn.commit()
        row = conn.execute("SELECT * FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
    return dict(row)


@storage_guard("Failed to log in")
def authenticate(username: str, password: str):
    """Return the full users row when the credentials match, else None."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE username = ?", ((username or "").strip(),)
        ).fetchone()
    if not row or not _verify_password(password or "", row["password_hash"]):
        return None
    return dict(row)


@storage_guard("Failed to fetch user")
def get_user(user_id: int) -> dict:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if row is None:
        raise NotFoundError("User not found")
    return public_user(row)


def ensure_default_admin():
    """Create the configured admin account on first start; no-op when unset or already present."""
    if not DEFAULT_ADMIN_USERNAME or not DEFAULT_ADMIN_PASSWORD:
        return
    with get_db() as conn:
        exists = conn.execute(
            "SELECT 1 FROM users WHERE username = ?", (DEFAULT_ADMIN_USERNAME,)
        ).fetchone()
    if exists:
        return
    create_user(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD, full_name="Administrator", role=Role.ADMIN)
    logger.info("Created default admin account %s", DEFAULT_ADMIN_USERNAME)
