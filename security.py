import hashlib
import hmac
import logging
import secrets
import threading
from collections import deque
from enum import Enum
from time import time
from typing import Optional

from fastapi import Request

from config import (
    SESSION_COOKIE_NAME,
    SESSION_TTL_SECONDS,
    SECRET_KEY,
    _current_role,
    _current_user_id,
)
from db import get_db
from errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"
    USER = "USER"


class Operation(str, Enum):
    CREATE_CONDITION = "create_condition"
    CREATE_SYMPTOM = "create_symptom"
    CREATE_TREATMENT = "create_treatment"
    CREATE_FORUM = "create_forum"


# Operations missing from this table are open to any authenticated role.
_ROLE_GATES: dict[Operation, frozenset] = {
    Operation.CREATE_CONDITION: frozenset({Role.ADMIN}),
    Operation.CREATE_SYMPTOM:   frozenset({Role.ADMIN}),
    Operation.CREATE_TREATMENT: frozenset({Role.ADMIN}),
    Operation.CREATE_FORUM:     frozenset({Role.ADMIN, Role.DOCTOR}),
}

_FORBIDDEN_MESSAGES = {
    frozenset({Role.ADMIN}): "Forbidden - Admin only",
    frozenset({Role.ADMIN, Role.DOCTOR}): "Forbidden - Admin or Doctor only",
}


def _parse_role(role) -> Optional[Role]:
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role or "").upper())
    except ValueError:
        return None


def can_perform(role, operation: Operation) -> bool:
    parsed = _parse_role(role)
    if parsed is None:
        return False
    allowed = _ROLE_GATES.get(operation)
    return allowed is None or parsed in allowed


def require_user() -> int:
    """Return the caller's user id, or raise UnauthorizedError when there is no session."""
    uid = _current_user_id.get()
    if uid is None:
        raise UnauthorizedError()
    return uid


def require_role(operation: Operation) -> int:
    uid = require_user()
    role = _current_role.get()
    if not can_perform(role, operation):
        allowed = _ROLE_GATES.get(operation, frozenset())
        logger.warning("User %s with role %s denied %s", uid, role, operation.value)
        raise ForbiddenError(_FORBIDDEN_MESSAGES.get(allowed, "Forbidden"))
    return uid


# ---------------------------------------------------------------------------
# Per-IP attempt throttling for the session endpoints (process-local)
# ---------------------------------------------------------------------------
_throttle_lock = threading.Lock()
_attempts: dict[str, dict[str, deque]] = {"login": {}, "signup": {}}

# (window seconds, attempts allowed per window)
_THROTTLE_LIMITS = {
    "login": (300, 10),
    "signup": (3600, 5),
}


def _allow_attempt(action: str, ip: str) -> bool:
    window, limit = _THROTTLE_LIMITS[action]
    cutoff = time() - window
    with _throttle_lock:
        buckets = _attempts[action]
        # an IP whose newest attempt is outside the window has nothing left to count
        for stale in [key for key, seen in buckets.items() if seen[-1] <= cutoff]:
            del buckets[stale]
        recent = buckets.setdefault(ip, deque())
        while recent and recent[0] <= cutoff:
            recent.popleft()
        if len(recent) >= limit:
            return False
        recent.append(time())
    return True


def _is_login_allowed(ip: str) -> bool:
    return _allow_attempt("login", ip)


def _is_signup_allowed(ip: str) -> bool:
    return _allow_attempt("signup", ip)


# ---------------------------------------------------------------------------
# Passwords and signed session cookies
# ---------------------------------------------------------------------------
_PBKDF2_ROUNDS = 480_000
_SALT_BYTES = 32


def _derive(plaintext: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", plaintext.encode(), salt, _PBKDF2_ROUNDS)


def _hash_password(plaintext: str) -> str:
    salt = secrets.token_bytes(_SALT_BYTES)
    return f"{salt.hex()}:{_derive(plaintext, salt).hex()}"


def _verify_password(plaintext: str, stored: str) -> bool:
    salt_hex, _, digest_hex = (stored or "").partition(":")
    try:
        salt, digest = bytes.fromhex(salt_hex), bytes.fromhex(digest_hex)
    except ValueError:
        return False
    if not salt or not digest:
        return False
    return hmac.compare_digest(_derive(plaintext, salt), digest)


def _sign(body: str, password_hash: str) -> str:
    # Bound to the stored hash, so a password change voids every outstanding cookie.
    return hmac.new(SECRET_KEY.encode(), f"{body}|{password_hash}".encode(), hashlib.sha256).hexdigest()


def _make_session_token(user_id: int, password_hash: str) -> str:
    """Cookie value ``<user_id>.<expiry>.<nonce>.<signature>``."""
    body = f"{user_id}.{int(time()) + SESSION_TTL_SECONDS}.{secrets.token_urlsafe(12)}"
    return f"{body}.{_sign(body, password_hash)}"


def _parse_session_token(token: str):
    """Return ``(user_id, expiry, body, signature)`` or None when the shape is wrong."""
    parts = (token or "").split(".")
    if len(parts) != 4 or not parts[0].isdigit() or not parts[1].isdigit():
        return None
    return int(parts[0]), int(parts[1]), ".".join(parts[:3]), parts[3]


def _verify_session_token(token: str, password_hash: str) -> bool:
    parsed = _parse_session_token(token)
    if parsed is None:
        return False
    _, expiry, body, sig = parsed
    if expiry < int(time()):
        return False
    return hmac.compare_digest(sig, _sign(body, password_hash))


def _set_session_cookie(response, request: Request, user_id: int, password_hash: str):
    response.set_cookie(
        SESSION_COOKIE_NAME,
        _make_session_token(user_id, password_hash),
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
        max_age=SESSION_TTL_SECONDS,
    )
    return response


def _get_authenticated_user(request: Request):
    """Resolve the session cookie to ``(id, username, role)``, or None."""
    token = request.cookies.get(SESSION_COOKIE_NAME, "")
    parsed = _parse_session_token(token)
    if parsed is None:
        return None
    with get_db() as conn:
        row = conn.execute(
            "SELECT id, username, role, password_hash FROM users WHERE id = ?", (parsed[0],)
        ).fetchone()
    if row is None or not _verify_session_token(token, row["password_hash"]):
        return None
    return {"id": row["id"], "username": row["username"], "role": row["role"]}
