import unittest

from app_case import AppTestCase


class SymptomLogApiTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.uid = self._create_user("alice")
        self.headache = self._add_symptom("Headache")
        self.nausea = self._add_symptom("Nausea")
        self._login_as("alice")

    def test_endpoints_require_session(self):
        self.client.cookies.clear()
        for path in ("/api/symptoms/logs", "/api/symptoms/stats", "/api/me"):
            resp = self.client.get(path)
            self.assertEqual(resp.status_code, 401, path)
            self.assertEqual(resp.json(), {"error": "Unauthorized"})

    def test_catalogue_is_public(self):
        self.client.cookies.clear()
        resp = self.client.get("/api/symptoms")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s["name"] for s in resp.json()], ["Headache", "Nausea"])

    def test_log_round_trips_triggers(self):
        created = self.client.post(
            "/api/symptoms/log",
            json={
                "symptom_id": self.headache,
                "severity": 7,
                "triggers": ["stress", "poor sleep"],
                "logged_at": "2026-03-01T08:30:00Z",
                "user_id": 999,
            },
        )
        self.assertEqual(created.status_code, 201)
        body = created.json()
        self.assertEqual(body["user_id"], self.uid)
        self.assertEqual(body["triggers"], ["stress", "poor sleep"])
        self.assertEqual(body["logged_at"], "2026-03-01 08:30:00")
        self.assertEqual(body["symptom"]["name"], "Headache")

        listed = self.client.get("/api/symptoms/logs")
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(listed.json()[0]["triggers"], ["stress", "poor sleep"])

    def test_severity_bounds(self):
        for severity in (1, 10):
            resp = self.client.post(
                "/api/symptoms/log", json={"symptom_id": self.headache, "severity": severity}
            )
            self.assertEqual(resp.status_code, 201)
        for severity in (0, 11, 5.5, "7"):
            resp = self.client.post(
                "/api/symptoms/log", json={"symptom_id": self.headache, "severity": severity}
            )
            self.assertEqual(resp.status_code, 400, severity)
        self.assertEqual(len(self.client.get("/api/symptoms/logs").json()), 2)

    def test_triggers_are_stored_exactly(self):
        resp = self.client.post(
            "/api/symptoms/log",
            json={"symptom_id": self.headache, "severity": 3, "triggers": [" heat ", "Stress"]},
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["triggers"], [" heat ", "Stress"])

        resp = self.client.post(
            "/api/symptoms/log",
            json={"symptom_id": self.headache, "severity": 3, "triggers": ["heat", "  "]},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(len(self.client.get("/api/symptoms/logs").json()), 1)

    def test_out_of_range_integers_are_rejected(self):
        resp = self.client.post(
            "/api/symptoms/log",
            json={"symptom_id": self.headache, "severity": 4, "duration_minutes": 2**70},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "duration_minutes is out of range")

        resp = self.client.post("/api/symptoms/log", json={"symptom_id": 2**70, "severity": 4})
        self.assertEqual(resp.status_code, 400)

        resp = self.client.put("/api/symptoms/logs/99999999999999999999", json={"severity": 2})
        self.assertEqual(resp.status_code, 400)

    def test_missing_fields_and_unknown_symptom(self):
        resp = self.client.post("/api/symptoms/log", json={"severity": 4})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Symptom ID and severity are required")

        resp = self.client.post("/api/symptoms/log", json={"symptom_id": 12345, "severity": 4})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Unknown symptom")

    def test_logs_limit_and_order(self):
        for day, severity in (("2026-03-01", 3), ("2026-03-03", 5), ("2026-03-02", 4)):
            self.client.post(
                "/api/symptoms/log",
                json={"symptom_id": self.headache, "severity": severity, "logged_at": f"{day}T10:00:00"},
            )
        logs = self.client.get("/api/symptoms/logs", params={"limit": 2}).json()
        self.assertEqual([l["severity"] for l in logs], [5, 4])
        self.assertEqual(self.client.get("/api/symptoms/logs", params={"limit": 0}).json(), [])

    def test_update_and_delete_are_owner_scoped(self):
        log_id = self.client.post(
            "/api/symptoms/log", json={"symptom_id": self.headache, "severity": 5}
        ).json()["id"]

        self._create_user("bob")
        self._login_as("bob")
        self.assertEqual(
            self.client.put(f"/api/symptoms/logs/{log_id}", json={"severity": 2}).status_code, 404
        )
        self.assertEqual(self.client.delete(f"/api/symptoms/logs/{log_id}").status_code, 404)

        self._login_as("alice")
        updated = self.client.put(
            f"/api/symptoms/logs/{log_id}", json={"severity": 2, "triggers": ["heat"]}
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["severity"], 2)
        self.assertEqual(updated.json()["triggers"], ["heat"])

        self.assertEqual(self.client.delete(f"/api/symptoms/logs/{log_id}").status_code, 204)
        self.assertEqual(self.client.get("/api/symptoms/logs").json(), [])


class SymptomStatsApiTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self._create_user("alice")
        self.headache = self._add_symptom("Headache")
        self.nausea = self._add_symptom("Nausea")
        self._login_as("alice")

    def test_empty_window(self):
        resp = self.client.get("/api/symptoms/stats", params={"days": 7})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["total_logs"], 0)
        self.assertIsNone(body["average_severity"])
        self.assertIsNone(body["most_common_symptom"])
        self.assertEqual(body["symptoms"], [])

    def test_non_positive_window_is_empty(self):
        self.client.post("/api/symptoms/log", json={"symptom_id": self.headache, "severity": 5})
        for days in (0, -3):
            body = self.client.get("/api/symptoms/stats", params={"days": days}).json()
            self.assertEqual(body["days"], days)
            self.assertEqual(body["total_logs"], 0)

    def test_very_large_window(self):
        self.client.post(
            "/api/symptoms/log",
            json={"symptom_id": self.nausea, "severity": 9, "logged_at": "2000-01-01T00:00:00"},
        )
        resp = self.client.get("/api/symptoms/stats", params={"days": 1000000})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["days"], 1000000)
        self.assertEqual(resp.json()["total_logs"], 1)

        resp = self.client.get("/api/symptoms/correlations", params={"days": 10**12})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["names"], ["Nausea"])

    def test_aggregates_recent_logs(self):
        for symptom, severity, triggers in (
            (self.headache, 6, ["stress"]),
            (self.headache, 7, ["stress", "heat"]),
            (self.nausea, 3, ["heat"]),
        ):
            self.client.post(
                "/api/symptoms/log",
                json={"symptom_id": symptom, "severity": severity, "triggers": triggers},
            )
        # outside a 7 day window
        self.client.post(
            "/api/symptoms/log",
            json={"symptom_id": self.nausea, "severity": 9, "logged_at": "2000-01-01T00:00:00"},
        )

        body = self.client.get("/api/symptoms/stats", params={"days": 7}).json()
        self.assertEqual(body["total_logs"], 3)
        self.assertEqual(body["average_severity"], 5.3)
        self.assertEqual(body["most_common_symptom"], "Headache")
        self.assertEqual(body["top_trigger"], "heat")
        self.assertEqual(body["today_count"], 3)
        self.assertEqual(
            [(s["name"], s["count"], s["average_severity"], s["max_severity"]) for s in body["symptoms"]],
            [("Headache", 2, 6.5, 7), ("Nausea", 1, 3.0, 3)],
        )


if __name__ == "__main__":
    unittest.main()
