"""Pure aggregation over rows fetched by the services layer. Nothing here touches storage."""
from collections import Counter, defaultdict
from datetime import date, timedelta
from math import sqrt
from typing import Optional

from config import BASELINE_DAYS


def _avg(values) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def _top_key(counts: Counter) -> Optional[str]:
    """Highest count wins; ties go to the alphabetically first key."""
    if not counts:
        return None
    return min(counts, key=lambda k: (-counts[k], k))


def _pearson(xs, ys):
    n = len(xs)
    if n < 3:
        return None
    mx, my = sum(xs) / n, sum(ys) / n
    cov = sx = sy = 0.0
    for x, y in zip(xs, ys):
        dx, dy = x - mx, y - my
        cov += dx * dy
        sx += dx * dx
        sy += dy * dy
    den = sqrt(sx * sy)
    return round(cov / den, 2) if den != 0 else None


def _compute_correlations(rows):
    # rows are already daily averages: (name, date, avg_severity)
    avg = {}
    dates_by_name = defaultdict(set)
    names_set = set()
    for row in rows:
        name, day, sev = row["name"], row["date"], row["avg_severity"]
        avg[(name, day)] = sev
        dates_by_name[name].add(day)
        names_set.add(name)
    names = sorted(names_set)
    n = len(names)
    matrix: list[list] = [[None] * n for _ in range(n)]
    for k in range(n):
        matrix[k][k] = 1.0
    for i in range(n):
        for j in range(i + 1, n):          # upper triangle only
            a, b = names[i], names[j]
            common = sorted(dates_by_name[a] & dates_by_name[b])
            r = _pearson([avg[(a, d)] for d in common], [avg[(b, d)] for d in common])
            matrix[i][j] = matrix[j][i] = r
    return names, matrix


def empty_symptom_stats(days: int) -> dict:
    return {
        "days": days,
        "total_logs": 0,
        "average_severity": None,
        "most_common_symptom": None,
        "top_trigger": None,
        "today_count": 0,
        "symptoms": [],
        "daily": [],
    }


def summarize_symptom_logs(logs, days: int, today: str) -> dict:
    """Aggregate symptom logs already restricted to the window.

    Each log is a dict with ``symptom_id``, ``symptom`` (``{"name": ...}``),
    ``severity``, ``triggers`` (decoded list) and ``logged_at`` in storage format.
    ``today`` is an ISO date used for ``today_count``.

    Per-symptom entries are ordered by count descending, then name, then id, so
    the first entry is also ``most_common_symptom``. ``daily`` is ordered by date.
    """
    stats = empty_symptom_stats(days)
    if not logs:
        return stats

    by_symptom: dict[int, dict] = {}
    by_day = defaultdict(list)
    triggers = Counter()
    for log in logs:
        entry = by_symptom.setdefault(log["symptom_id"], {
            "symptom_id": log["symptom_id"],
            "name": log["symptom"]["name"],
            "severities": [],
            "last_logged_at": log["logged_at"],
        })
        entry["severities"].append(log["severity"])
        entry["last_logged_at"] = max(entry["last_logged_at"], log["logged_at"])
        by_day[log["logged_at"][:10]].append(log["severity"])
        triggers.update(log["triggers"])

    symptoms = []
    for entry in by_symptom.values():
        sevs = entry.pop("severities")
        entry.update(count=len(sevs), average_severity=_avg(sevs), max_severity=max(sevs))
        symptoms.append(entry)
    symptoms.sort(key=lambda e: (-e["count"], e["name"], e["symptom_id"]))

    stats.update(
        total_logs=len(logs),
        average_severity=_avg(log["severity"] for log in logs),
        most_common_symptom=symptoms[0]["name"],
        top_trigger=_top_key(triggers),
        today_count=len(by_day.get(today, [])),
        symptoms=[
            {k: e[k] for k in ("symptom_id", "name", "count", "average_severity",
                               "max_severity", "last_logged_at")}
            for e in symptoms
        ],
        daily=[
            {"date": d, "count": len(sevs), "average_severity": _avg(sevs)}
            for d, sevs in sorted(by_day.items())
        ],
    )
    return stats


def _severities_between(logs, start: str, end: str) -> list:
    # ISO date prefixes of logged_at compare correctly as strings
    return [log["severity"] for log in logs if start <= log["logged_at"][:10] <= end]


def summarize_treatments(user_treatments, logs, today: date) -> dict:
    """Effectiveness summary for one user's treatment history.

    ``sample_size`` counts rated rows and ``average_effect`` is their mean
    rating (``None`` when nothing is rated). ``severity_before`` averages the
    user's symptom logs in the ``BASELINE_DAYS`` before each start date and
    ``severity_during`` the logs between start and end (or today).
    """
    stats = {
        "total_treatments": len(user_treatments),
        "active_treatments": sum(1 for ut in user_treatments if not ut["end_date"]),
        "completed_treatments": sum(1 for ut in user_treatments if ut["end_date"]),
        "average_effectiveness": _avg(
            ut["effectiveness_rating"] for ut in user_treatments
            if ut["effectiveness_rating"] is not None
        ),
        "most_effective_treatment": None,
        "treatment_types": dict(sorted(Counter(ut["type"] for ut in user_treatments).items())),
        "treatments": [],
    }

    grouped: dict[int, dict] = {}
    for ut in user_treatments:
        g = grouped.setdefault(ut["treatment_id"], {
            "treatment_id": ut["treatment_id"],
            "name": ut["name"],
            "type": ut["type"],
            "ratings": [],
            "before": [],
            "during": [],
        })
        if ut["effectiveness_rating"] is not None:
            g["ratings"].append(ut["effectiveness_rating"])
        start = date.fromisoformat(ut["start_date"])
        baseline_start = (start - timedelta(days=BASELINE_DAYS)).isoformat()
        day_before = (start - timedelta(days=1)).isoformat()
        g["before"].extend(_severities_between(logs, baseline_start, day_before))
        g["during"].extend(_severities_between(logs, ut["start_date"], ut["end_date"] or today.isoformat()))

    for g in sorted(grouped.values(), key=lambda g: (g["name"], g["treatment_id"])):
        stats["treatments"].append({
            "treatment_id": g["treatment_id"],
            "name": g["name"],
            "type": g["type"],
            "sample_size": len(g["ratings"]),
            "average_effect": _avg(g["ratings"]),
            "severity_before": _avg(g["before"]),
            "severity_during": _avg(g["during"]),
        })

    rated = [t for t in stats["treatments"] if t["average_effect"] is not None]
    if rated:
        best = min(rated, key=lambda t: (-t["average_effect"], t["name"]))
        stats["most_effective_treatment"] = best["name"]
    return stats


def summarize_user_conditions(user_conditions) -> dict:
    dates = sorted(uc["diagnosed_date"] for uc in user_conditions if uc["diagnosed_date"])
    return {
        "total_conditions": len(user_conditions),
        "active_conditions": sum(1 for uc in user_conditions if uc["is_active"]),
        "inactive_conditions": sum(1 for uc in user_conditions if not uc["is_active"]),
        "categories": dict(sorted(Counter(uc["category"] for uc in user_conditions).items())),
        "most_recent_diagnosis": dates[-1] if dates else None,
        "oldest_diagnosis": dates[0] if dates else None,
    }
