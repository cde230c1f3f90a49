import sqlite3
from contextlib import contextmanager

from config import DB_PATH


def init_db():
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                username      TEXT    NOT NULL UNIQUE,
                email         TEXT    NOT NULL DEFAULT '',
                full_name     TEXT    NOT NULL DEFAULT '',
                password_hash TEXT    NOT NULL,
                role          TEXT    NOT NULL DEFAULT 'PATIENT',
                created_at    TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS conditions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT    NOT NULL UNIQUE,
                description TEXT,
                category    TEXT    NOT NULL,
                symptoms    TEXT    NOT NULL DEFAULT '[]',
                created_at  TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS symptoms (
                id               INTEGER PRIMARY KEY AUTOINCREMENT,
                name             TEXT    NOT NULL UNIQUE,
                description      TEXT,
                severity_scale   TEXT    NOT NULL DEFAULT '1-10',
                measurement_unit TEXT,
                created_at       TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS user_conditions (
                id             INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id        INTEGER NOT NULL REFERENCES users(id),
                condition_id   INTEGER NOT NULL REFERENCES conditions(id),
                diagnosed_date TEXT,
                severity       TEXT,
                notes          TEXT,
                is_active      INTEGER NOT NULL DEFAULT 1,
                created_at     TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS symptom_logs (
                id               INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id          INTEGER NOT NULL REFERENCES users(id),
                symptom_id       INTEGER NOT NULL REFERENCES symptoms(id),
                severity         INTEGER NOT NULL CHECK (severity BETWEEN 1 AND 10),
                notes            TEXT,
                triggers         TEXT    NOT NULL DEFAULT '[]',
                duration_minutes INTEGER,
                logged_at        TEXT    NOT NULL,
                created_at       TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS treatments (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                name              TEXT    NOT NULL UNIQUE,
                type              TEXT    NOT NULL,
                description       TEXT,
                side_effects      TEXT    NOT NULL DEFAULT '[]',
                contraindications TEXT    NOT NULL DEFAULT '[]',
                created_at        TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS user_treatments (
                id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id              INTEGER NOT NULL REFERENCES users(id),
                treatment_id         INTEGER NOT NULL REFERENCES treatments(id),
                condition_id         INTEGER NOT NULL REFERENCES conditions(id),
                start_date           TEXT    NOT NULL,
                end_date             TEXT,
                dosage               TEXT,
                frequency            TEXT,
                effectiveness_rating INTEGER CHECK (effectiveness_rating BETWEEN 1 AND 10),
                side_effects_experienced TEXT NOT NULL DEFAULT '[]',
                notes                TEXT,
                created_at           TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS medication_reminders (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                user_treatment_id INTEGER NOT NULL REFERENCES user_treatments(id),
                reminder_time     TEXT    NOT NULL,
                days_of_week      TEXT    NOT NULL DEFAULT '[]',
                is_active         INTEGER NOT NULL DEFAULT 1,
                created_at        TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS forums (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                name         TEXT    NOT NULL,
                description  TEXT,
                condition_id INTEGER REFERENCES conditions(id),
                rules        TEXT,
                is_private   INTEGER NOT NULL DEFAULT 0,
                created_at   TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                sender_id    INTEGER NOT NULL REFERENCES users(id),
                recipient_id INTEGER NOT NULL REFERENCES users(id),
                subject      TEXT,
                content      TEXT    NOT NULL,
                is_read      INTEGER NOT NULL DEFAULT 0,
                read_at      TEXT,
                created_at   TEXT    NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS notifications (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id      INTEGER NOT NULL REFERENCES users(id),
                title        TEXT    NOT NULL,
                content      TEXT    NOT NULL DEFAULT '',
                type         TEXT    NOT NULL DEFAULT 'system',
                reference_id TEXT,
                is_read      INTEGER NOT NULL DEFAULT 0,
                read_at      TEXT,
                created_at   TEXT    NOT NULL
            )
        """)
        # Indexes for common query patterns (all filtered by owner)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_user_conditions_user_id ON user_conditions(user_id)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_symptom_logs_user_logged"
            " ON symptom_logs(user_id, logged_at)"
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_user_treatments_user_id ON user_treatments(user_id)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_medication_reminders_user_treatment_id"
            " ON medication_reminders(user_treatment_id)"
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_messages_recipient_id ON messages(recipient_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_messages_sender_id ON messages(sender_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id)")
        conn.commit()


@contextmanager
def get_db():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
