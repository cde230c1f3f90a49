import sqlite3

from analysis import summarize_user_conditions
from db import get_db
from errors import NotFoundError, ValidationError
from services.common import (
    clean_text,
    decode_list,
    encode_list,
    now_storage,
    parse_bool,
    parse_date,
    parse_id,
    require_fields,
    storage_guard,
)

_USER_CONDITION_SELECT = (
    "SELECT uc.id, uc.user_id, uc.condition_id, uc.diagnosed_date, uc.severity, uc.notes,"
    " uc.is_active, uc.created_at,"
    " c.name AS condition_name, c.description AS condition_description,"
    " c.category AS condition_category, c.symptoms AS condition_symptoms"
    " FROM user_conditions uc JOIN conditions c ON c.id = uc.condition_id"
)


def _condition_item(row) -> dict:
    item = dict(row)
    item["symptoms"] = decode_list(item.get("symptoms"))
    return item


def _user_condition_item(row) -> dict:
    item = dict(row)
    item["is_active"] = bool(item["is_active"])
    item["condition"] = {
        "id": item["condition_id"],
        "name": item.pop("condition_name"),
        "description": item.pop("condition_description"),
        "category": item.pop("condition_category"),
        "symptoms": decode_list(item.pop("condition_symptoms")),
    }
    return item


def _fetch_user_condition(conn, user_condition_id: int, user_id: int):
    return conn.execute(
        _USER_CONDITION_SELECT + " WHERE uc.id = ? AND uc.user_id = ?",
        (user_condition_id, user_id),
    ).fetchone()


@storage_guard("Failed to fetch conditions")
def get_conditions() -> list:
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM conditions ORDER BY name ASC, id ASC").fetchall()
    return [_condition_item(r) for r in rows]


@storage_guard("Failed to fetch conditions by category")
def get_conditions_by_category(category: str) -> list:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM conditions WHERE category = ? ORDER BY name ASC, id ASC",
            (category,),
        ).fetchall()
    return [_condition_item(r) for r in rows]


@storage_guard("Failed to fetch condition categories")
def get_condition_categories() -> list:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT DISTINCT category FROM conditions ORDER BY category ASC"
        ).fetchall()
    return [r["category"] for r in rows]


@storage_guard("Failed to create condition")
def create_condition(fields: dict) -> dict:
    require_fields(fields, ("name", "category"), "Condition name and category are required")
    name = str(fields["name"]).strip()
    category = str(fields["category"]).strip()
    symptoms = encode_list(fields.get("symptoms"), "symptoms")
    with get_db() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO conditions (name, description, category, symptoms, created_at)"
                " VALUES (?, ?, ?, ?, ?)",
                (name, clean_text(fields.get("description")), category, symptoms, now_storage()),
            )
        except sqlite3.IntegrityError:
            raise ValidationError("A condition with this name already exists") from None
        conn.commit()
        row = conn.execute("SELECT * FROM conditions WHERE id = ?", (cur.lastrowid,)).fetchone()
    return _condition_item(row)


@storage_guard("Failed to fetch user conditions")
def get_user_conditions(user_id: int) -> list:
    with get_db() as conn:
        rows = conn.execute(
            _USER_CONDITION_SELECT + " WHERE uc.user_id = ? ORDER BY uc.created_at DESC, uc.id DESC",
            (user_id,),
        ).fetchall()
    return [_user_condition_item(r) for r in rows]


@storage_guard("Failed to fetch user condition")
def get_user_condition(user_condition_id: int, user_id: int) -> dict:
    user_condition_id = parse_id(user_condition_id, "user_condition_id")
    with get_db() as conn:
        row = _fetch_user_condition(conn, user_condition_id, user_id)
    if row is None:
        raise NotFoundError("User condition not found")
    return _user_condition_item(row)


@storage_guard("Failed to add user condition")
def add_user_condition(user_id: int, fields: dict) -> dict:
    require_fields(fields, ("condition_id",), "Condition ID is required")
    condition_id = parse_id(fields["condition_id"], "condition_id")
    diagnosed_date = parse_date(fields.get("diagnosed_date"), "diagnosed_date")
    is_active = parse_bool(fields.get("is_active"), "is_active")
    if is_active is None:
        is_active = True
    with get_db() as conn:
        if not conn.execute("SELECT 1 FROM conditions WHERE id = ?", (condition_id,)).fetchone():
            raise ValidationError("Unknown condition")
        cur = conn.execute(
            "INSERT INTO user_conditions"
            " (user_id, condition_id, diagnosed_date, severity, notes, is_active, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                user_id,
                condition_id,
                diagnosed_date,
                clean_text(fields.get("severity")),
                clean_text(fields.get("notes")),
                int(is_active),
                now_storage(),
            ),
        )
        conn.commit()
        row = _fetch_user_condition(conn, cur.lastrowid, user_id)
    return _user_condition_item(row)


@storage_guard("Failed to update user condition")
def update_user_condition(user_condition_id: int, user_id: int, fields: dict) -> dict:
    user_condition_id = parse_id(user_condition_id, "user_condition_id")
    updates = {}
    if "diagnosed_date" in fields:
        updates["diagnosed_date"] = parse_date(fields["diagnosed_date"], "diagnosed_date")
    if "severity" in fields:
        updates["severity"] = clean_text(fields["severity"])
    if "notes" in fields:
        updates["notes"] = clean_text(fields["notes"])
    if "is_active" in fields:
        if fields["is_active"] is None:
            raise ValidationError("is_active must be true or false")
        updates["is_active"] = int(parse_bool(fields["is_active"], "is_active"))
    if not updates:
        raise ValidationError("No update data provided")
    assignments = ", ".join(f"{col} = ?" for col in updates)
    with get_db() as conn:
        cur = conn.execute(
            f"UPDATE user_conditions SET {assignments} WHERE id = ? AND user_id = ?",
            (*updates.values(), user_condition_id, user_id),
        )
        if cur.rowcount == 0:
            raise NotFoundError("User condition not found")
        conn.commit()
        row = _fetch_user_condition(conn, user_condition_id, user_id)
    return _user_condition_item(row)


@storage_guard("Failed to delete user condition")
def delete_user_condition(user_condition_id: int, user_id: int) -> None:
    user_condition_id = parse_id(user_condition_id, "user_condition_id")
    with get_db() as conn:
        cur = conn.execute(
            "DELETE FROM user_conditions WHERE id = ? AND user_id = ?",
            (user_condition_id, user_id),
        )
        if cur.rowcount == 0:
            raise NotFoundError("User condition not found")
        conn.commit()


@storage_guard("Failed to fetch condition statistics")
def get_condition_stats(user_id: int) -> dict:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT uc.is_active, uc.diagnosed_date, c.category"
            " FROM user_conditions uc JOIN conditions c ON c.id = uc.condition_id"
            " WHERE uc.user_id = ?",
            (user_id,),
        ).fetchall()
    return summarize_user_conditions([dict(r) for r in rows])
