from typing import Optional

from config import DEFAULT_MESSAGE_LIMIT, MAX_LOG_LIMIT
from db import get_db
from errors import NotFoundError
from services.common import (
    SQLITE_INT_MAX,
    clean_text,
    now_storage,
    parse_id,
    require_fields,
    storage_guard,
)
from services.notifications import insert_notification

_MESSAGE_SELECT = (
    "SELECT m.id, m.sender_id, m.recipient_id, m.subject, m.content, m.is_read, m.read_at,"
    " m.created_at,"
    " s.username AS sender_username, s.full_name AS sender_full_name, s.role AS sender_role,"
    " r.username AS recipient_username, r.full_name AS recipient_full_name, r.role AS recipient_role"
    " FROM messages m"
    " JOIN users s ON s.id = m.sender_id"
    " JOIN users r ON r.id = m.recipient_id"
)


def _message_item(row) -> dict:
    item = dict(row)
    item["is_read"] = bool(item["is_read"])
    for side in ("sender", "recipient"):
        item[side] = {
            "id": item[f"{side}_id"],
            "username": item.pop(f"{side}_username"),
            "full_name": item.pop(f"{side}_full_name"),
            "role": item.pop(f"{side}_role"),
        }
    return item


@storage_guard("Failed to send message")
def send_message(sender_id: int, fields: dict) -> dict:
    require_fields(fields, ("recipient_id", "content"), "Recipient and content are required")
    recipient_id = parse_id(fields["recipient_id"], "recipient_id")
    subject = clean_text(fields.get("subject"))
    content = str(fields["content"]).strip()
    with get_db() as conn:
        if not conn.execute("SELECT 1 FROM users WHERE id = ?", (recipient_id,)).fetchone():
            raise NotFoundError("Recipient not found")
        cur = conn.execute(
            "INSERT INTO messages (sender_id, recipient_id, subject, content, is_read, created_at)"
            " VALUES (?, ?, ?, ?, 0, ?)",
            (sender_id, recipient_id, subject, content, now_storage()),
        )
        row = conn.execute(_MESSAGE_SELECT + " WHERE m.id = ?", (cur.lastrowid,)).fetchone()
        sender_name = row["sender_full_name"] or row["sender_username"]
        insert_notification(
            conn,
            recipient_id,
            "New Message",
            f"New message from {sender_name}: {subject or content[:50]}",
            "message",
            cur.lastrowid,
        )
        conn.commit()
    return _message_item(row)


@storage_guard("Failed to fetch messages")
def get_messages(
    user_id: int,
    conversation_with: Optional[int] = None,
    limit: int = DEFAULT_MESSAGE_LIMIT,
    offset: int = 0,
) -> list:
    limit = min(limit, MAX_LOG_LIMIT)
    if limit <= 0:
        return []
    offset = min(max(offset, 0), SQLITE_INT_MAX)
    if conversation_with is None:
        where = "WHERE (m.sender_id = ? OR m.recipient_id = ?)"
        params: list = [user_id, user_id]
    else:
        where = (
            "WHERE ((m.sender_id = ? AND m.recipient_id = ?)"
            " OR (m.sender_id = ? AND m.recipient_id = ?))"
        )
        conversation_with = parse_id(conversation_with, "conversation_with")
        params = [user_id, conversation_with, conversation_with, user_id]
    with get_db() as conn:
        rows = conn.execute(
            f"{_MESSAGE_SELECT} {where} ORDER BY m.created_at DESC, m.id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        ).fetchall()
    return [_message_item(r) for r in rows]


@storage_guard("Failed to fetch conversations")
def get_conversations(user_id: int) -> list:
    with get_db() as conn:
        rows = conn.execute(
            _MESSAGE_SELECT
            + " WHERE m.sender_id = ? OR m.recipient_id = ?"
            " ORDER BY m.created_at DESC, m.id DESC",
            (user_id, user_id),
        ).fetchall()
    conversations: dict[int, dict] = {}
    for row in rows:
        message = _message_item(row)
        outgoing = message["sender_id"] == user_id
        partner = message["recipient"] if outgoing else message["sender"]
        conv = conversations.get(partner["id"])
        if conv is None:
            # rows are newest first, so the first hit is the last message
            conv = conversations[partner["id"]] = {
                "partner_id": partner["id"],
                "partner": partner,
                "last_message": message,
                "unread_count": 0,
                "total_messages": 0,
            }
        conv["total_messages"] += 1
        if not outgoing and not message["is_read"]:
            conv["unread_count"] += 1
    return list(conversations.values())


@storage_guard("Failed to mark message as read")
def mark_message_as_read(message_id: int, user_id: int) -> dict:
    message_id = parse_id(message_id, "message_id")
    with get_db() as conn:
        # Unknown ids and messages addressed to someone else look identical to the caller.
        row = conn.execute(
            "SELECT id, is_read FROM messages WHERE id = ? AND recipient_id = ?",
            (message_id, user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("Message not found or access denied")
        if not row["is_read"]:
            conn.execute(
                "UPDATE messages SET is_read = 1, read_at = ? WHERE id = ? AND recipient_id = ?",
                (now_storage(), message_id, user_id),
            )
            conn.commit()
        updated = conn.execute(_MESSAGE_SELECT + " WHERE m.id = ?", (message_id,)).fetchone()
    return _message_item(updated)


@storage_guard("Failed to mark conversation as read")
def mark_conversation_as_read(user_id: int, partner_id) -> int:
    partner_id = parse_id(partner_id, "partner_id")
    with get_db() as conn:
        cur = conn.execute(
            "UPDATE messages SET is_read = 1, read_at = ?"
            " WHERE sender_id = ? AND recipient_id = ? AND is_read = 0",
            (now_storage(), partner_id, user_id),
        )
        conn.commit()
    return cur.rowcount
