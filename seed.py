"""
Seed script: loads the shared catalogue and three demo accounts.

- Conditions, symptoms and treatments are inserted with INSERT OR IGNORE,
  so re-running never duplicates catalogue rows.
- Demo accounts: admin / doctor / jamie (password demo1234).
- Clears and regenerates 60 days of symptom logs and one treatment for jamie.
- Does NOT touch other user accounts.

Usage:
    python3 seed.py
"""

import json
import random
import sqlite3
from datetime import date, timedelta

from config import DB_PATH, STORAGE_FMT, _utcnow
from db import init_db
from security import Role, _hash_password

PASSWORD = "demo1234"
TODAY = date.today()

CONDITIONS = [
    ("Migraine", "A type of headache characterized by severe pain", "Neurological",
     ["Headache", "Nausea", "Dizziness"]),
    ("Chronic Fatigue Syndrome", "A complex disorder characterized by extreme fatigue", "Immunological",
     ["Fatigue", "Sleep Issues", "Brain Fog"]),
    ("Fibromyalgia", "A disorder characterized by widespread musculoskeletal pain", "Rheumatological",
     ["Joint Pain", "Muscle Tension", "Fatigue"]),
    ("Anxiety Disorder", "A mental health disorder characterized by excessive worry", "Mental Health",
     ["Anxiety", "Sleep Issues", "Mood Changes"]),
    ("Irritable Bowel Syndrome", "A common disorder affecting the large intestine", "Gastrointestinal",
     ["Stomach Pain", "Nausea"]),
]

SYMPTOMS = [
    "Headache", "Nausea", "Dizziness", "Fatigue", "Sleep Issues", "Brain Fog",
    "Joint Pain", "Muscle Tension", "Anxiety", "Mood Changes", "Stomach Pain",
]

TREATMENTS = [
    ("Sumatriptan", "MEDICATION", "Medication for migraine treatment",
     ["Drowsiness", "Nausea"], ["Heart disease", "Pregnancy"]),
    ("Cognitive Behavioral Therapy", "THERAPY", "Psychological treatment for anxiety and depression", [], []),
    ("Regular Exercise", "LIFESTYLE", "Physical activity for overall health", [], ["Severe heart conditions"]),
    ("Meditation", "ALTERNATIVE", "Mindfulness practice for stress reduction", [], []),
    ("Ibuprofen", "MEDICATION", "Anti-inflammatory pain reliever",
     ["Stomach upset", "Drowsiness"], ["Kidney disease", "Blood thinners"]),
]

ACCOUNTS = [
    ("admin", "Site Administrator", Role.ADMIN),
    ("doctor", "Dr. Morgan Lee", Role.DOCTOR),
    ("jamie", "Jamie Rivera", Role.PATIENT),
]


def day(offset: int) -> date:
    return TODAY - timedelta(days=offset)


def clamp(v: float) -> int:
    return max(1, min(10, round(v)))


init_db()
now = _utcnow().strftime(STORAGE_FMT)
conn = sqlite3.connect(DB_PATH)
conn.row_factory = sqlite3.Row

# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

for name, desc, category, symptoms in CONDITIONS:
    conn.execute(
        "INSERT OR IGNORE INTO conditions (name, description, category, symptoms, created_at)"
        " VALUES (?,?,?,?,?)",
        (name, desc, category, json.dumps(symptoms), now),
    )
for name in SYMPTOMS:
    conn.execute(
        "INSERT OR IGNORE INTO symptoms (name, severity_scale, created_at) VALUES (?, '1-10', ?)",
        (name, now),
    )
for name, ttype, desc, side_effects, contraindications in TREATMENTS:
    conn.execute(
        "INSERT OR IGNORE INTO treatments"
        " (name, type, description, side_effects, contraindications, created_at)"
        " VALUES (?,?,?,?,?,?)",
        (name, ttype, desc, json.dumps(side_effects), json.dumps(contraindications), now),
    )
conn.execute(
    "INSERT INTO forums (name, description, condition_id, rules, is_private, created_at)"
    " SELECT 'Migraine Support', 'Share what helps on bad days', id, 'Be kind.', 0, ?"
    " FROM conditions WHERE name = 'Migraine'"
    " AND NOT EXISTS (SELECT 1 FROM forums WHERE name = 'Migraine Support')",
    (now,),
)
conn.commit()
print("Catalogue loaded.")

# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

ids = {}
for username, full_name, role in ACCOUNTS:
    row = conn.execute("SELECT id FROM users WHERE username=?", (username,)).fetchone()
    if row:
        ids[username] = row["id"]
        print(f"Found existing account: {username} (id={row['id']})")
        continue
    cur = conn.execute(
        "INSERT INTO users (username, full_name, password_hash, role, created_at) VALUES (?,?,?,?,?)",
        (username, full_name, _hash_password(PASSWORD), role.value, now),
    )
    ids[username] = cur.lastrowid
    print(f"Created account: {username} (id={cur.lastrowid}, role={role.value})")
conn.commit()

uid = ids["jamie"]
for tbl in ["symptom_logs", "user_treatments", "user_conditions"]:
    conn.execute(f"DELETE FROM {tbl} WHERE user_id=?", (uid,))
conn.commit()
print("Cleared existing tracking data for jamie.")

# ---------------------------------------------------------------------------
# Tracking history: migraine, with Sumatriptan started 30 days ago
# ---------------------------------------------------------------------------

migraine = conn.execute("SELECT id FROM conditions WHERE name='Migraine'").fetchone()["id"]
sumatriptan = conn.execute("SELECT id FROM treatments WHERE name='Sumatriptan'").fetchone()["id"]
symptom_ids = {
    r["name"]: r["id"] for r in conn.execute("SELECT id, name FROM symptoms").fetchall()
}

conn.execute(
    "INSERT INTO user_conditions (user_id, condition_id, diagnosed_date, severity, notes, is_active, created_at)"
    " VALUES (?,?,?,?,?,1,?)",
    (uid, migraine, day(400).isoformat(), "moderate", "Diagnosed after ER visit", now),
)
conn.execute(
    "INSERT INTO user_treatments"
    " (user_id, treatment_id, condition_id, start_date, dosage, frequency,"
    "  effectiveness_rating, side_effects_experienced, created_at)"
    " VALUES (?,?,?,?,?,?,?,?,?)",
    (uid, sumatriptan, migraine, day(30).isoformat(), "50mg", "as needed", 7,
     json.dumps(["Drowsiness"]), now),
)

rng = random.Random(42)  # fixed seed for reproducibility
TRIGGERS = ["stress", "heat", "poor sleep", "screen time", "caffeine"]
logs_inserted = 0
for offset in range(59, -1, -1):
    d = day(offset)
    # severity drops once treatment starts
    base = 6.5 if offset > 30 else 4.0
    if rng.random() < 0.6:
        triggers = rng.sample(TRIGGERS, rng.randint(0, 2))
        conn.execute(
            "INSERT INTO symptom_logs"
            " (user_id, symptom_id, severity, triggers, duration_minutes, logged_at, created_at)"
            " VALUES (?,?,?,?,?,?,?)",
            (uid, symptom_ids["Headache"], clamp(base + rng.gauss(0, 1.2)), json.dumps(triggers),
             rng.randint(30, 240), f"{d.isoformat()} {rng.randint(8, 20):02d}:{rng.randint(0, 59):02d}:00", now),
        )
        logs_inserted += 1
    if rng.random() < 0.35:
        conn.execute(
            "INSERT INTO symptom_logs (user_id, symptom_id, severity, triggers, logged_at, created_at)"
            " VALUES (?,?,?,?,?,?)",
            (uid, symptom_ids["Nausea"], clamp(base * 0.8 + rng.gauss(0, 1.5)), "[]",
             f"{d.isoformat()} {rng.randint(8, 20):02d}:{rng.randint(0, 59):02d}:00", now),
        )
        logs_inserted += 1

conn.commit()
print(f"Inserted {logs_inserted} symptom logs.")

conn.close()
print(f"\nDone. Log in with username=jamie password={PASSWORD}")
