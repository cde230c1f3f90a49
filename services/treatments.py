import sqlite3

from analysis import summarize_treatments
from config import SEVERITY_MAX, SEVERITY_MIN, _utcnow
from db import get_db
from errors import NotFoundError, ValidationError
from services.common import (
    clean_text,
    decode_list,
    encode_list,
    now_storage,
    parse_bounded_int,
    parse_date,
    parse_id,
    require_fields,
    storage_guard,
)

_USER_TREATMENT_SELECT = (
    "SELECT ut.id, ut.user_id, ut.treatment_id, ut.condition_id, ut.start_date, ut.end_date,"
    " ut.dosage, ut.frequency, ut.effectiveness_rating, ut.side_effects_experienced,"
    " ut.notes, ut.created_at,"
    " t.name AS treatment_name, t.type AS treatment_type, t.description AS treatment_description,"
    " c.name AS condition_name, c.category AS condition_category"
    " FROM user_treatments ut"
    " JOIN treatments t ON t.id = ut.treatment_id"
    " JOIN conditions c ON c.id = ut.condition_id"
)


def _treatment_item(row) -> dict:
    item = dict(row)
    item["side_effects"] = decode_list(item["side_effects"])
    item["contraindications"] = decode_list(item["contraindications"])
    return item


def _user_treatment_item(row) -> dict:
    item = dict(row)
    item["side_effects_experienced"] = decode_list(item["side_effects_experienced"])
    item["treatment"] = {
        "id": item["treatment_id"],
        "name": item.pop("treatment_name"),
        "type": item.pop("treatment_type"),
        "description": item.pop("treatment_description"),
    }
    item["condition"] = {
        "id": item["condition_id"],
        "name": item.pop("condition_name"),
        "category": item.pop("condition_category"),
    }
    return item


def _rating(value):
    return parse_bounded_int(value, "effectiveness_rating", SEVERITY_MIN, SEVERITY_MAX)


@storage_guard("Failed to fetch treatments")
def get_treatments() -> list:
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM treatments ORDER BY name ASC, id ASC").fetchall()
    return [_treatment_item(r) for r in rows]


@storage_guard("Failed to create treatment")
def create_treatment(fields: dict) -> dict:
    require_fields(fields, ("name", "type"), "Treatment name and type are required")
    side_effects = encode_list(fields.get("side_effects"), "side_effects")
    contraindications = encode_list(fields.get("contraindications"), "contraindications")
    with get_db() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO treatments"
                " (name, type, description, side_effects, contraindications, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (
                    str(fields["name"]).strip(),
                    str(fields["type"]).strip(),
                    clean_text(fields.get("description")),
                    side_effects,
                    contraindications,
                    now_storage(),
                ),
            )
        except sqlite3.IntegrityError:
            raise ValidationError("A treatment with this name already exists") from None
        conn.commit()
        row = conn.execute("SELECT * FROM treatments WHERE id = ?", (cur.lastrowid,)).fetchone()
    return _treatment_item(row)


@storage_guard("Failed to fetch user treatments")
def get_user_treatments(user_id: int) -> list:
    with get_db() as conn:
        rows = conn.execute(
            _USER_TREATMENT_SELECT + " WHERE ut.user_id = ? ORDER BY ut.start_date DESC, ut.id DESC",
            (user_id,),
        ).fetchall()
    return [_user_treatment_item(r) for r in rows]


@storage_guard("Failed to add user treatment")
def add_user_treatment(user_id: int, fields: dict) -> dict:
    require_fields(
        fields,
        ("treatment_id", "condition_id", "start_date"),
        "Treatment ID, condition ID, and start date are required",
    )
    treatment_id = parse_id(fields["treatment_id"], "treatment_id")
    condition_id = parse_id(fields["condition_id"], "condition_id")
    start_date = parse_date(fields["start_date"], "start_date")
    end_date = parse_date(fields.get("end_date"), "end_date")
    if end_date and end_date < start_date:
        raise ValidationError("End date must not be before start date")
    rating = _rating(fields.get("effectiveness_rating"))
    side_effects = encode_list(fields.get("side_effects_experienced"), "side_effects_experienced")
    with get_db() as conn:
        if not conn.execute("SELECT 1 FROM treatments WHERE id = ?", (treatment_id,)).fetchone():
            raise ValidationError("Unknown treatment")
        if not conn.execute("SELECT 1 FROM conditions WHERE id = ?", (condition_id,)).fetchone():
            raise ValidationError("Unknown condition")
        cur = conn.execute(
            "INSERT INTO user_treatments"
            " (user_id, treatment_id, condition_id, start_date, end_date, dosage, frequency,"
            "  effectiveness_rating, side_effects_experienced, notes, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                user_id,
                treatment_id,
                condition_id,
                start_date,
                end_date,
                clean_text(fields.get("dosage")),
                clean_text(fields.get("frequency")),
                rating,
                side_effects,
                clean_text(fields.get("notes")),
                now_storage(),
            ),
        )
        conn.commit()
        row = conn.execute(
            _USER_TREATMENT_SELECT + " WHERE ut.id = ? AND ut.user_id = ?", (cur.lastrowid, user_id)
        ).fetchone()
    return _user_treatment_item(row)


@storage_guard("Failed to update user treatment")
def update_user_treatment(user_treatment_id: int, user_id: int, fields: dict) -> dict:
    user_treatment_id = parse_id(user_treatment_id, "user_treatment_id")
    updates = {}
    if "start_date" in fields:
        if fields["start_date"] in (None, ""):
            raise ValidationError("Start date cannot be cleared")
        updates["start_date"] = parse_date(fields["start_date"], "start_date")
    if "end_date" in fields:
        updates["end_date"] = parse_date(fields["end_date"], "end_date")
    for col in ("dosage", "frequency", "notes"):
        if col in fields:
            updates[col] = clean_text(fields[col])
    if "effectiveness_rating" in fields:
        updates["effectiveness_rating"] = _rating(fields["effectiveness_rating"])
    if "side_effects_experienced" in fields:
        updates["side_effects_experienced"] = encode_list(
            fields["side_effects_experienced"], "side_effects_experienced"
        )
    if not updates:
        raise ValidationError("No update data provided")
    assignments = ", ".join(f"{col} = ?" for col in updates)
    with get_db() as conn:
        cur = conn.execute(
            f"UPDATE user_treatments SET {assignments} WHERE id = ? AND user_id = ?",
            (*updates.values(), user_treatment_id, user_id),
        )
        if cur.rowcount == 0:
            raise NotFoundError("User treatment not found")
        row = conn.execute(
            _USER_TREATMENT_SELECT + " WHERE ut.id = ? AND ut.user_id = ?",
            (user_treatment_id, user_id),
        ).fetchone()
        if row["end_date"] and row["end_date"] < row["start_date"]:
            raise ValidationError("End date must not be before start date")
        conn.commit()
    return _user_treatment_item(row)


@storage_guard("Failed to delete user treatment")
def delete_user_treatment(user_treatment_id: int, user_id: int) -> None:
    user_treatment_id = parse_id(user_treatment_id, "user_treatment_id")
    with get_db() as conn:
        cur = conn.execute(
            "DELETE FROM user_treatments WHERE id = ? AND user_id = ?",
            (user_treatment_id, user_id),
        )
        if cur.rowcount == 0:
            raise NotFoundError("User treatment not found")
        conn.execute(
            "DELETE FROM medication_reminders WHERE user_treatment_id = ?", (user_treatment_id,)
        )
        conn.commit()


@storage_guard("Failed to fetch treatment statistics")
def get_treatment_stats(user_id: int) -> dict:
    with get_db() as conn:
        treatments = conn.execute(
            "SELECT ut.treatment_id, ut.start_date, ut.end_date, ut.effectiveness_rating,"
            " t.name, t.type"
            " FROM user_treatments ut JOIN treatments t ON t.id = ut.treatment_id"
            " WHERE ut.user_id = ?",
            (user_id,),
        ).fetchall()
        logs = conn.execute(
            "SELECT severity, logged_at FROM symptom_logs WHERE user_id = ?",
            (user_id,),
        ).fetchall()
    today = _utcnow().date()
    return summarize_treatments([dict(r) for r in treatments], [dict(r) for r in logs], today)
