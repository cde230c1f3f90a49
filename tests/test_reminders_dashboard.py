import unittest

from app_case import AppTestCase


class ReminderTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self._create_user("pat")
        self._create_user("other")
        self.migraine = self._add_condition("Migraine", "Neurological")
        self.sumatriptan = self._add_treatment("Sumatriptan", "MEDICATION")
        self._login_as("pat")
        self.user_treatment = self._add_user_treatment()

    def _add_user_treatment(self):
        resp = self.client.post(
            "/api/treatments/user",
            json={"treatment_id": self.sumatriptan, "condition_id": self.migraine, "start_date": "2026-02-01"},
        )
        self.assertEqual(resp.status_code, 201)
        return resp.json()["id"]

    def _create(self, **fields):
        body = {"user_treatment_id": self.user_treatment, "reminder_time": "08:00", "days_of_week": ["MONDAY"]}
        body.update(fields)
        return self.client.post("/api/reminders", json=body)

    def test_reminder_lifecycle(self):
        resp = self._create(reminder_time="21:30", days_of_week=["friday", "MONDAY", "Friday"])
        self.assertEqual(resp.status_code, 201)
        reminder = resp.json()
        self.assertEqual(reminder["days_of_week"], ["MONDAY", "FRIDAY"])
        self.assertTrue(reminder["is_active"])
        self.assertEqual(reminder["user_treatment"]["treatment"]["name"], "Sumatriptan")

        self.assertEqual(self._create(reminder_time="07:15").status_code, 201)
        listed = self.client.get("/api/reminders").json()
        self.assertEqual([r["reminder_time"] for r in listed], ["07:15", "21:30"])

        resp = self.client.put(
            f"/api/reminders/{reminder['id']}", json={"is_active": False, "days_of_week": ["SUNDAY"]}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["is_active"])
        self.assertEqual(resp.json()["days_of_week"], ["SUNDAY"])
        self.assertEqual(resp.json()["reminder_time"], "21:30")

        resp = self.client.put(f"/api/reminders/{reminder['id']}", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "No update data provided")

        self.assertEqual(self.client.delete(f"/api/reminders/{reminder['id']}").status_code, 204)
        self.assertEqual(len(self.client.get("/api/reminders").json()), 1)

    def test_validation(self):
        resp = self.client.post("/api/reminders", json={"reminder_time": "08:00"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "User treatment, reminder time and days of week are required")

        for time in ("25:00", "9:00", "08:60", 800):
            resp = self._create(reminder_time=time)
            self.assertEqual(resp.status_code, 400, time)
            self.assertEqual(resp.json()["error"], "Invalid reminder_time format. Use HH:MM")

        resp = self._create(days_of_week=[])
        self.assertEqual(resp.json()["error"], "days_of_week must be a non-empty list")
        resp = self._create(days_of_week=["MONDAY", "FUNDAY"])
        self.assertEqual(resp.json()["error"], "Invalid values in days_of_week")
        resp = self._create(is_active="yes")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "is_active must be true or false")

        self.assertEqual(self.client.get("/api/reminders").json(), [])

    def test_reminders_are_owner_scoped(self):
        reminder = self._create().json()

        self._login_as("other")
        resp = self._create()
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "User treatment not found"})
        self.assertEqual(self.client.get("/api/reminders").json(), [])

        resp = self.client.put(f"/api/reminders/{reminder['id']}", json={"reminder_time": "10:00"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "Medication reminder not found"})
        self.assertEqual(self.client.delete(f"/api/reminders/{reminder['id']}").status_code, 404)

        self._login_as("pat")
        self.assertEqual(self.client.get("/api/reminders").json()[0]["reminder_time"], "08:00")

    def test_moving_to_foreign_user_treatment_is_404(self):
        reminder = self._create().json()
        self._login_as("other")
        foreign = self._add_user_treatment()

        self._login_as("pat")
        resp = self.client.put(f"/api/reminders/{reminder['id']}", json={"user_treatment_id": foreign})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "User treatment not found"})

    def test_deleting_user_treatment_drops_its_reminders(self):
        self._create()
        self._create(reminder_time="20:00")
        resp = self.client.delete(f"/api/treatments/user/{self.user_treatment}")
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(self.client.get("/api/reminders").json(), [])

    def test_requires_session(self):
        self.client.cookies.clear()
        self.assertEqual(self.client.get("/api/reminders").status_code, 401)
        self.assertEqual(self._create().status_code, 401)


class DashboardTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self._create_user("pat")
        self.headache = self._add_symptom("Headache")
        self.migraine = self._add_condition("Migraine", "Neurological")
        self.sumatriptan = self._add_treatment("Sumatriptan", "MEDICATION")
        self._login_as("pat")

    def test_empty_user(self):
        resp = self.client.get("/api/dashboard/stats")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(
            body["health_metrics"],
            {"symptoms_today": 0, "active_treatments": 0, "treatment_effectiveness": None},
        )
        self.assertEqual(body["recent_symptoms"], [])
        self.assertEqual(body["current_treatments"], [])
        self.assertEqual(body["stats"]["symptom_stats"]["total_logs"], 0)
        self.assertEqual(body["stats"]["condition_stats"]["total_conditions"], 0)

    def test_summary_with_data(self):
        for severity in range(1, 8):
            self.client.post("/api/symptoms/log", json={"symptom_id": self.headache, "severity": severity})
        self.client.post(
            "/api/treatments/user",
            json={
                "treatment_id": self.sumatriptan,
                "condition_id": self.migraine,
                "start_date": "2026-02-01",
                "dosage": "50mg",
                "effectiveness_rating": 8,
            },
        )
        self.client.post(
            "/api/treatments/user",
            json={
                "treatment_id": self.sumatriptan,
                "condition_id": self.migraine,
                "start_date": "2025-01-01",
                "end_date": "2025-02-01",
                "effectiveness_rating": 4,
            },
        )

        body = self.client.get("/api/dashboard/stats").json()
        self.assertEqual(body["health_metrics"]["symptoms_today"], 7)
        self.assertEqual(body["health_metrics"]["active_treatments"], 1)
        self.assertEqual(body["health_metrics"]["treatment_effectiveness"], 6.0)
        self.assertEqual(len(body["recent_symptoms"]), 5)
        self.assertEqual(body["recent_symptoms"][0]["name"], "Headache")
        self.assertEqual(len(body["current_treatments"]), 1)
        self.assertEqual(body["current_treatments"][0]["dosage"], "50mg")
        self.assertEqual(body["current_treatments"][0]["type"], "MEDICATION")
        self.assertEqual(body["stats"]["treatment_stats"]["total_treatments"], 2)

    def test_requires_session(self):
        self.client.cookies.clear()
        resp = self.client.get("/api/dashboard/stats")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Unauthorized"})


if __name__ == "__main__":
    unittest.main()
