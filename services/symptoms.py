import sqlite3
from datetime import timedelta

from analysis import _compute_correlations, empty_symptom_stats, summarize_symptom_logs
from config import (
    MAX_LOG_LIMIT,
    MAX_STATS_DAYS,
    SEVERITY_MAX,
    SEVERITY_MIN,
    _to_utc_storage,
    _utcnow,
)
from db import get_db
from errors import NotFoundError, ValidationError
from services.common import (
    clean_text,
    decode_list,
    encode_list,
    now_storage,
    parse_bounded_int,
    parse_id,
    parse_timestamp,
    require_fields,
    storage_guard,
)

_LOG_SELECT = (
    "SELECT l.id, l.user_id, l.symptom_id, l.severity, l.notes, l.triggers,"
    " l.duration_minutes, l.logged_at, l.created_at,"
    " s.name AS symptom_name, s.description AS symptom_description"
    " FROM symptom_logs l JOIN symptoms s ON s.id = l.symptom_id"
)


def _log_item(row) -> dict:
    item = dict(row)
    item["triggers"] = decode_list(item["triggers"])
    item["symptom"] = {
        "id": item["symptom_id"],
        "name": item.pop("symptom_name"),
        "description": item.pop("symptom_description"),
    }
    return item


def _validate_severity(value) -> int:
    return parse_bounded_int(value, "Severity", SEVERITY_MIN, SEVERITY_MAX)


def _window_start(window_days: int) -> str:
    return _to_utc_storage(_utcnow() - timedelta(days=min(window_days, MAX_STATS_DAYS)))


@storage_guard("Failed to fetch symptoms")
def get_symptoms() -> list:
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM symptoms ORDER BY name ASC, id ASC").fetchall()
    return [dict(r) for r in rows]


@storage_guard("Failed to create symptom")
def create_symptom(fields: dict) -> dict:
    require_fields(fields, ("name",), "Symptom name is required")
    with get_db() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO symptoms (name, description, severity_scale, measurement_unit, created_at)"
                " VALUES (?, ?, ?, ?, ?)",
                (
                    str(fields["name"]).strip(),
                    clean_text(fields.get("description")),
                    clean_text(fields.get("severity_scale")) or f"{SEVERITY_MIN}-{SEVERITY_MAX}",
                    clean_text(fields.get("measurement_unit")),
                    now_storage(),
                ),
            )
        except sqlite3.IntegrityError:
            raise ValidationError("A symptom with this name already exists") from None
        conn.commit()
        row = conn.execute("SELECT * FROM symptoms WHERE id = ?", (cur.lastrowid,)).fetchone()
    return dict(row)


@storage_guard("Failed to log symptom")
def log_symptom(user_id: int, fields: dict) -> dict:
    if fields.get("symptom_id") in (None, "") or fields.get("severity") is None:
        raise ValidationError("Symptom ID and severity are required")
    symptom_id = parse_id(fields["symptom_id"], "symptom_id")
    severity = _validate_severity(fields["severity"])
    triggers = encode_list(fields.get("triggers"), "triggers")
    duration = parse_bounded_int(fields.get("duration_minutes"), "duration_minutes", lo=0)
    logged_at = parse_timestamp(fields.get("logged_at"), "logged_at")
    with get_db() as conn:
        if not conn.execute("SELECT 1 FROM symptoms WHERE id = ?", (symptom_id,)).fetchone():
            raise ValidationError("Unknown symptom")
        cur = conn.execute(
            "INSERT INTO symptom_logs"
            " (user_id, symptom_id, severity, notes, triggers, duration_minutes, logged_at, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                user_id,
                symptom_id,
                severity,
                clean_text(fields.get("notes")),
                triggers,
                duration,
                logged_at,
                now_storage(),
            ),
        )
        conn.commit()
        row = conn.execute(
            _LOG_SELECT + " WHERE l.id = ? AND l.user_id = ?", (cur.lastrowid, user_id)
        ).fetchone()
    return _log_item(row)


@storage_guard("Failed to fetch symptom logs")
def get_user_symptom_logs(user_id: int, limit: int = 20) -> list:
    limit = min(limit, MAX_LOG_LIMIT)
    if limit <= 0:
        return []
    with get_db() as conn:
        rows = conn.execute(
            _LOG_SELECT + " WHERE l.user_id = ? ORDER BY l.logged_at DESC, l.id DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
    return [_log_item(r) for r in rows]


@storage_guard("Failed to update symptom log")
def update_symptom_log(log_id: int, user_id: int, fields: dict) -> dict:
    log_id = parse_id(log_id, "log_id")
    updates = {}
    if "severity" in fields:
        if fields["severity"] is None:
            raise ValidationError("Severity is required")
        updates["severity"] = _validate_severity(fields["severity"])
    if "notes" in fields:
        updates["notes"] = clean_text(fields["notes"])
    if "triggers" in fields:
        updates["triggers"] = encode_list(fields["triggers"], "triggers")
    if "duration_minutes" in fields:
        updates["duration_minutes"] = parse_bounded_int(fields["duration_minutes"], "duration_minutes", lo=0)
    if "logged_at" in fields:
        updates["logged_at"] = parse_timestamp(fields["logged_at"], "logged_at")
    if not updates:
        raise ValidationError("No update data provided")
    assignments = ", ".join(f"{col} = ?" for col in updates)
    with get_db() as conn:
        cur = conn.execute(
            f"UPDATE symptom_logs SET {assignments} WHERE id = ? AND user_id = ?",
            (*updates.values(), log_id, user_id),
        )
        if cur.rowcount == 0:
            raise NotFoundError("Symptom log not found")
        conn.commit()
        row = conn.execute(
            _LOG_SELECT + " WHERE l.id = ? AND l.user_id = ?", (log_id, user_id)
        ).fetchone()
    return _log_item(row)


@storage_guard("Failed to delete symptom log")
def delete_symptom_log(log_id: int, user_id: int) -> None:
    log_id = parse_id(log_id, "log_id")
    with get_db() as conn:
        cur = conn.execute(
            "DELETE FROM symptom_logs WHERE id = ? AND user_id = ?", (log_id, user_id)
        )
        if cur.rowcount == 0:
            raise NotFoundError("Symptom log not found")
        conn.commit()


@storage_guard("Failed to fetch symptom statistics")
def get_symptom_stats(user_id: int, window_days: int) -> dict:
    if window_days <= 0:
        return empty_symptom_stats(window_days)
    with get_db() as conn:
        rows = conn.execute(
            _LOG_SELECT + " WHERE l.user_id = ? AND l.logged_at >= ?",
            (user_id, _window_start(window_days)),
        ).fetchall()
    logs = [_log_item(r) for r in rows]
    today = _utcnow().date().isoformat()
    return summarize_symptom_logs(logs, window_days, today)


@storage_guard("Failed to fetch symptom correlations")
def get_symptom_correlations(user_id: int, window_days: int) -> dict:
    if window_days <= 0:
        return {"names": [], "matrix": []}
    with get_db() as conn:
        rows = conn.execute("""
            SELECT s.name AS name, substr(l.logged_at, 1, 10) AS date, AVG(l.severity) AS avg_severity
            FROM symptom_logs l JOIN symptoms s ON s.id = l.symptom_id
            WHERE l.user_id = ? AND l.logged_at >= ?
            GROUP BY s.name, date
        """, (user_id, _window_start(window_days))).fetchall()
    names, matrix = _compute_correlations(rows)
    return {"names": names, "matrix": matrix}
