from typing import Optional

from db import get_db
from errors import NotFoundError, ValidationError
from services.common import clean_text, now_storage, parse_id, require_fields, storage_guard

NOTIFICATION_TYPES = {"message", "appointment", "reminder", "forum", "system"}


def _notification_item(row) -> dict:
    item = dict(row)
    item["is_read"] = bool(item["is_read"])
    return item


def insert_notification(conn, user_id: int, title: str, content: str, type: str, reference_id=None) -> int:
    """Insert without committing, so callers can bundle it with their own write."""
    cur = conn.execute(
        "INSERT INTO notifications (user_id, title, content, type, reference_id, is_read, created_at)"
        " VALUES (?, ?, ?, ?, ?, 0, ?)",
        (user_id, title, content, type, None if reference_id is None else str(reference_id), now_storage()),
    )
    return cur.lastrowid


@storage_guard("Failed to create notification")
def create_notification(fields: dict) -> dict:
    require_fields(fields, ("user_id", "title"), "Notification user and title are required")
    user_id = parse_id(fields["user_id"], "user_id")
    ntype = clean_text(fields.get("type")) or "system"
    if ntype not in NOTIFICATION_TYPES:
        raise ValidationError("Unknown notification type")
    with get_db() as conn:
        if not conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone():
            raise NotFoundError("User not found")
        new_id = insert_notification(
            conn,
            user_id,
            str(fields["title"]).strip(),
            clean_text(fields.get("content")) or "",
            ntype,
            fields.get("reference_id"),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM notifications WHERE id = ?", (new_id,)).fetchone()
    return _notification_item(row)


@storage_guard("Failed to fetch notifications")
def get_user_notifications(user_id: int, is_read: Optional[bool] = None, type: Optional[str] = None) -> list:
    clauses = ["user_id = ?"]
    params: list = [user_id]
    if is_read is not None:
        clauses.append("is_read = ?")
        params.append(int(is_read))
    if type:
        clauses.append("type = ?")
        params.append(type)
    where = "WHERE " + " AND ".join(clauses)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM notifications {where} ORDER BY created_at DESC, id DESC", params
        ).fetchall()
    return [_notification_item(r) for r in rows]


@storage_guard("Failed to mark notification as read")
def mark_notification_as_read(notification_id: int, user_id: int) -> dict:
    notification_id = parse_id(notification_id, "notification_id")
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM notifications WHERE id = ? AND user_id = ?", (notification_id, user_id)
        ).fetchone()
        if row is None:
            raise NotFoundError("Notification not found")
        if not row["is_read"]:
            conn.execute(
                "UPDATE notifications SET is_read = 1, read_at = ? WHERE id = ? AND user_id = ?",
                (now_storage(), notification_id, user_id),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM notifications WHERE id = ?", (notification_id,)).fetchone()
    return _notification_item(row)


@storage_guard("Failed to mark all notifications as read")
def mark_all_notifications_as_read(user_id: int) -> int:
    with get_db() as conn:
        cur = conn.execute(
            "UPDATE notifications SET is_read = 1, read_at = ? WHERE user_id = ? AND is_read = 0",
            (now_storage(), user_id),
        )
        conn.commit()
    return cur.rowcount


@storage_guard("Failed to delete notification")
def delete_notification(notification_id: int, user_id: int) -> None:
    notification_id = parse_id(notification_id, "notification_id")
    with get_db() as conn:
        cur = conn.execute(
            "DELETE FROM notifications WHERE id = ? AND user_id = ?", (notification_id, user_id)
        )
        if cur.rowcount == 0:
            raise NotFoundError("Notification not found")
        conn.commit()
