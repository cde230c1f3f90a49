import unittest
from datetime import date

from analysis import (
    _compute_correlations,
    empty_symptom_stats,
    summarize_symptom_logs,
    summarize_treatments,
    summarize_user_conditions,
)
from security import Operation, Role, can_perform


def _log(symptom_id, name, severity, logged_at, triggers=()):
    return {
        "symptom_id": symptom_id,
        "symptom": {"name": name},
        "severity": severity,
        "triggers": list(triggers),
        "logged_at": logged_at,
    }


class SymptomSummaryTests(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(summarize_symptom_logs([], 30, "2026-03-10"), empty_symptom_stats(30))

    def test_tied_counts_order_by_name(self):
        logs = [
            _log(2, "Nausea", 4, "2026-03-09 10:00:00"),
            _log(1, "Headache", 8, "2026-03-10 09:00:00", ["stress"]),
        ]
        stats = summarize_symptom_logs(logs, 30, "2026-03-10")
        self.assertEqual([s["name"] for s in stats["symptoms"]], ["Headache", "Nausea"])
        self.assertEqual(stats["most_common_symptom"], "Headache")
        self.assertEqual(stats["average_severity"], 6.0)
        self.assertEqual(stats["today_count"], 1)
        self.assertEqual(
            stats["daily"],
            [
                {"date": "2026-03-09", "count": 1, "average_severity": 4.0},
                {"date": "2026-03-10", "count": 1, "average_severity": 8.0},
            ],
        )

    def test_last_logged_at_is_latest(self):
        logs = [
            _log(1, "Headache", 5, "2026-03-10 09:00:00"),
            _log(1, "Headache", 6, "2026-03-08 09:00:00"),
        ]
        entry = summarize_symptom_logs(logs, 7, "2026-03-10")["symptoms"][0]
        self.assertEqual(entry["last_logged_at"], "2026-03-10 09:00:00")
        self.assertEqual(entry["max_severity"], 6)


class TreatmentSummaryTests(unittest.TestCase):
    def test_before_and_during(self):
        treatments = [{
            "treatment_id": 1, "name": "Sumatriptan", "type": "MEDICATION",
            "start_date": "2026-03-01", "end_date": None, "effectiveness_rating": 7,
        }]
        logs = [
            {"severity": 8, "logged_at": "2026-02-20 10:00:00"},
            {"severity": 6, "logged_at": "2026-02-28 10:00:00"},
            {"severity": 3, "logged_at": "2026-03-05 10:00:00"},
            {"severity": 9, "logged_at": "2025-12-01 10:00:00"},
        ]
        stats = summarize_treatments(treatments, logs, date(2026, 3, 10))
        self.assertEqual(stats["active_treatments"], 1)
        entry = stats["treatments"][0]
        self.assertEqual(entry["sample_size"], 1)
        self.assertEqual(entry["average_effect"], 7.0)
        self.assertEqual(entry["severity_before"], 7.0)
        self.assertEqual(entry["severity_during"], 3.0)

    def test_unrated_history(self):
        treatments = [{
            "treatment_id": 2, "name": "Meditation", "type": "ALTERNATIVE",
            "start_date": "2026-01-01", "end_date": "2026-02-01", "effectiveness_rating": None,
        }]
        stats = summarize_treatments(treatments, [], date(2026, 3, 10))
        self.assertIsNone(stats["average_effectiveness"])
        self.assertIsNone(stats["most_effective_treatment"])
        self.assertEqual(stats["completed_treatments"], 1)
        self.assertIsNone(stats["treatments"][0]["severity_before"])


class ConditionSummaryTests(unittest.TestCase):
    def test_counts_and_dates(self):
        rows = [
            {"is_active": 1, "diagnosed_date": "2024-05-01", "category": "Neurological"},
            {"is_active": 0, "diagnosed_date": None, "category": "Mental Health"},
            {"is_active": 1, "diagnosed_date": "2020-01-15", "category": "Neurological"},
        ]
        stats = summarize_user_conditions(rows)
        self.assertEqual(stats["active_conditions"], 2)
        self.assertEqual(stats["categories"], {"Mental Health": 1, "Neurological": 2})
        self.assertEqual(stats["most_recent_diagnosis"], "2024-05-01")
        self.assertEqual(stats["oldest_diagnosis"], "2020-01-15")


class CorrelationTests(unittest.TestCase):
    def test_needs_three_shared_days(self):
        rows = [
            {"name": "Headache", "date": f"2026-03-0{d}", "avg_severity": d} for d in range(1, 5)
        ] + [
            {"name": "Nausea", "date": f"2026-03-0{d}", "avg_severity": 2 * d} for d in range(1, 5)
        ] + [
            {"name": "Fatigue", "date": "2026-03-01", "avg_severity": 5},
        ]
        names, matrix = _compute_correlations(rows)
        self.assertEqual(names, ["Fatigue", "Headache", "Nausea"])
        self.assertEqual(matrix[1][2], 1.0)
        self.assertIsNone(matrix[0][1])
        self.assertEqual(matrix[0][0], 1.0)


class RoleGateTests(unittest.TestCase):
    def test_catalogue_writes(self):
        for op in (Operation.CREATE_CONDITION, Operation.CREATE_SYMPTOM, Operation.CREATE_TREATMENT):
            self.assertTrue(can_perform(Role.ADMIN, op))
            self.assertFalse(can_perform(Role.DOCTOR, op))
            self.assertFalse(can_perform("PATIENT", op))

    def test_forum_create(self):
        self.assertTrue(can_perform("doctor", Operation.CREATE_FORUM))
        self.assertTrue(can_perform(Role.ADMIN, Operation.CREATE_FORUM))
        self.assertFalse(can_perform(Role.USER, Operation.CREATE_FORUM))

    def test_unknown_role_is_denied(self):
        self.assertFalse(can_perform("SUPERUSER", Operation.CREATE_FORUM))
        self.assertFalse(can_perform(None, Operation.CREATE_SYMPTOM))


if __name__ == "__main__":
    unittest.main()
