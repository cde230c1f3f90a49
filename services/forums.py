from db import get_db
from errors import NotFoundError, ValidationError
from services.common import clean_text, now_storage, parse_bool, parse_id, require_fields, storage_guard

_FORUM_SELECT = (
    "SELECT f.id, f.name, f.description, f.condition_id, f.rules, f.is_private, f.created_at,"
    " c.name AS condition_name, c.category AS condition_category"
    " FROM forums f LEFT JOIN conditions c ON c.id = f.condition_id"
)


def _forum_item(row) -> dict:
    item = dict(row)
    item["is_private"] = bool(item["is_private"])
    name = item.pop("condition_name")
    category = item.pop("condition_category")
    item["condition"] = {"name": name, "category": category} if item["condition_id"] else None
    return item


@storage_guard("Failed to fetch forums")
def get_forums() -> list:
    with get_db() as conn:
        rows = conn.execute(_FORUM_SELECT + " ORDER BY f.name ASC, f.id ASC").fetchall()
    return [_forum_item(r) for r in rows]


@storage_guard("Failed to fetch forum")
def get_forum_by_id(forum_id: int) -> dict:
    forum_id = parse_id(forum_id, "forum_id")
    with get_db() as conn:
        row = conn.execute(_FORUM_SELECT + " WHERE f.id = ?", (forum_id,)).fetchone()
    if row is None:
        raise NotFoundError("Forum not found")
    return _forum_item(row)


@storage_guard("Failed to create forum")
def create_forum(fields: dict) -> dict:
    require_fields(fields, ("name",), "Forum name is required")
    condition_id = fields.get("condition_id")
    if condition_id in ("", None):
        condition_id = None
    else:
        condition_id = parse_id(condition_id, "condition_id")
    with get_db() as conn:
        if condition_id is not None and not conn.execute(
            "SELECT 1 FROM conditions WHERE id = ?", (condition_id,)
        ).fetchone():
            raise ValidationError("Unknown condition")
        cur = conn.execute(
            "INSERT INTO forums (name, description, condition_id, rules, is_private, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (
                str(fields["name"]).strip(),
                clean_text(fields.get("description")),
                condition_id,
                clean_text(fields.get("rules")),
                int(parse_bool(fields.get("is_private"), "is_private") or False),
                now_storage(),
            ),
        )
        conn.commit()
        row = conn.execute(_FORUM_SELECT + " WHERE f.id = ?", (cur.lastrowid,)).fetchone()
    return _forum_item(row)
