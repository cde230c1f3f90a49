"""Medication reminders. Ownership always goes through the linked user treatment."""
import re

from db import get_db
from errors import NotFoundError, ValidationError
from services.common import (
    decode_list,
    encode_list,
    now_storage,
    parse_bool,
    parse_id,
    require_fields,
    storage_guard,
)

DAYS_OF_WEEK = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")

_REMINDER_SELECT = (
    "SELECT r.id, r.user_treatment_id, r.reminder_time, r.days_of_week, r.is_active, r.created_at,"
    " t.name AS treatment_name"
    " FROM medication_reminders r"
    " JOIN user_treatments ut ON ut.id = r.user_treatment_id"
    " JOIN treatments t ON t.id = ut.treatment_id"
)


def _reminder_item(row) -> dict:
    item = dict(row)
    item["days_of_week"] = decode_list(item["days_of_week"])
    item["is_active"] = bool(item["is_active"])
    item["user_treatment"] = {
        "id": item["user_treatment_id"],
        "treatment": {"name": item.pop("treatment_name")},
    }
    return item


def _parse_time(value) -> str:
    match = _TIME_RE.match(value) if isinstance(value, str) else None
    if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        raise ValidationError("Invalid reminder_time format. Use HH:MM")
    return value


def _parse_days(value) -> str:
    """Stored in week order without duplicates."""
    if not isinstance(value, list) or not value:
        raise ValidationError("days_of_week must be a non-empty list")
    if not all(isinstance(d, str) and d.upper() in DAYS_OF_WEEK for d in value):
        raise ValidationError("Invalid values in days_of_week")
    days = {d.upper() for d in value}
    return encode_list([d for d in DAYS_OF_WEEK if d in days], "days_of_week")


def _owned_user_treatment(conn, user_treatment_id: int, user_id: int) -> None:
    row = conn.execute(
        "SELECT 1 FROM user_treatments WHERE id = ? AND user_id = ?", (user_treatment_id, user_id)
    ).fetchone()
    if row is None:
        raise NotFoundError("User treatment not found")


def _fetch_reminder(conn, reminder_id: int, user_id: int):
    return conn.execute(
        _REMINDER_SELECT + " WHERE r.id = ? AND ut.user_id = ?", (reminder_id, user_id)
    ).fetchone()


@storage_guard("Failed to fetch medication reminders")
def get_user_reminders(user_id: int) -> list:
    with get_db() as conn:
        rows = conn.execute(
            _REMINDER_SELECT + " WHERE ut.user_id = ? ORDER BY r.reminder_time ASC, r.id ASC",
            (user_id,),
        ).fetchall()
    return [_reminder_item(r) for r in rows]


@storage_guard("Failed to create medication reminder")
def create_reminder(user_id: int, fields: dict) -> dict:
    require_fields(
        fields,
        ("user_treatment_id", "reminder_time", "days_of_week"),
        "User treatment, reminder time and days of week are required",
    )
    user_treatment_id = parse_id(fields["user_treatment_id"], "user_treatment_id")
    reminder_time = _parse_time(fields["reminder_time"])
    days = _parse_days(fields["days_of_week"])
    is_active = parse_bool(fields.get("is_active"), "is_active")
    with get_db() as conn:
        _owned_user_treatment(conn, user_treatment_id, user_id)
        cur = conn.execute(
            "INSERT INTO medication_reminders"
            " (user_treatment_id, reminder_time, days_of_week, is_active, created_at)"
            " VALUES (?, ?, ?, ?, ?)",
            (user_treatment_id, reminder_time, days, int(is_active is not False), now_storage()),
        )
        conn.commit()
        row = _fetch_reminder(conn, cur.lastrowid, user_id)
    return _reminder_item(row)


@storage_guard("Failed to update medication reminder")
def update_reminder(reminder_id: int, user_id: int, fields: dict) -> dict:
    reminder_id = parse_id(reminder_id, "reminder_id")
    updates = {}
    if "user_treatment_id" in fields:
        updates["user_treatment_id"] = parse_id(fields["user_treatment_id"], "user_treatment_id")
    if "reminder_time" in fields:
        updates["reminder_time"] = _parse_time(fields["reminder_time"])
    if "days_of_week" in fields:
        updates["days_of_week"] = _parse_days(fields["days_of_week"])
    if "is_active" in fields:
        if fields["is_active"] is None:
            raise ValidationError("is_active must be true or false")
        updates["is_active"] = int(parse_bool(fields["is_active"], "is_active"))
    if not updates:
        raise ValidationError("No update data provided")
    assignments = ", ".join(f"{col} = ?" for col in updates)
    with get_db() as conn:
        if _fetch_reminder(conn, reminder_id, user_id) is None:
            raise NotFoundError("Medication reminder not found")
        if "user_treatment_id" in updates:
            _owned_user_treatment(conn, updates["user_treatment_id"], user_id)
        conn.execute(
            f"UPDATE medication_reminders SET {assignments} WHERE id = ?",
            (*updates.values(), reminder_id),
        )
        conn.commit()
        row = _fetch_reminder(conn, reminder_id, user_id)
    return _reminder_item(row)


@storage_guard("Failed to delete medication reminder")
def delete_reminder(reminder_id: int, user_id: int) -> None:
    reminder_id = parse_id(reminder_id, "reminder_id")
    with get_db() as conn:
        if _fetch_reminder(conn, reminder_id, user_id) is None:
            raise NotFoundError("Medication reminder not found")
        conn.execute("DELETE FROM medication_reminders WHERE id = ?", (reminder_id,))
        conn.commit()
