from __future__ import annotations

from datetime import datetime, timezone
import unittest

from pomolog.clock import FakeClock, FakeTicker
from pomolog.storage import MemoryStorage
from pomolog.tests.test_helpers import local_tmp_dir


class TestAPI(unittest.TestCase):
    def setUp(self) -> None:
        try:
            from fastapi.testclient import TestClient  # noqa: F401
            from pomolog.api.app import create_app  # noqa: F401
        except Exception as exc:  # pragma: no cover
            self.skipTest(f"fastapi test client unavailable: {exc}")

    def make_client(self):
        from fastapi.testclient import TestClient

        from pomolog.api.app import create_app

        self.clock = FakeClock(start=datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc))
        self.storage = MemoryStorage()
        self.app = create_app(storage=self.storage, clock=self.clock, ticker_factory=FakeTicker)
        return TestClient(self.app)

    def test_health_meta_and_openapi(self) -> None:
        client = self.make_client()

        health = client.get("/api/v1/health")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.json().get("status"), "ok")

        meta = client.get("/api/v1/meta")
        self.assertEqual(meta.status_code, 200)
        self.assertEqual(meta.json().get("app"), "Pomolog")

        paths = client.get("/openapi.json").json().get("paths", {})
        self.assertIn("/api/v1/timer/stream", paths)
        self.assertIn("/api/v1/stats/history", paths)

    def test_tasks_crud(self) -> None:
        client = self.make_client()

        created = client.post("/api/v1/tasks", json={"user_id": 1, "title": "Plan sprint"})
        self.assertEqual(created.status_code, 201)
        task_id = created.json()["id"]

        self.assertEqual(client.post("/api/v1/tasks", json={"title": "  "}).status_code, 400)
        self.assertEqual(client.post("/api/v1/tasks", json={}).status_code, 422)

        done = client.put(f"/api/v1/tasks/{task_id}", json={"completed": True})
        self.assertEqual(done.status_code, 200)
        self.assertTrue(done.json()["completed"])
        self.assertEqual(done.json()["title"], "Plan sprint")

        stats = client.get("/api/v1/stats/daily", params={"user_id": 1})
        self.assertEqual(stats.json()["tasks_completed"], 1)

        listed = client.get("/api/v1/tasks", params={"user_id": 1}).json()
        self.assertEqual([item["id"] for item in listed], [task_id])

        self.assertEqual(client.put("/api/v1/tasks/999", json={"completed": True}).status_code, 404)
        self.assertEqual(client.delete(f"/api/v1/tasks/{task_id}").status_code, 204)
        self.assertEqual(client.delete(f"/api/v1/tasks/{task_id}").status_code, 404)

    def test_settings_update_retimes_idle_timer(self) -> None:
        client = self.make_client()

        current = client.get("/api/v1/settings").json()
        self.assertEqual(current["work_duration"], 1500)
        self.assertTrue(current["auto_start_breaks"])

        bad = client.put("/api/v1/settings", json={"work_duration": 0})
        self.assertEqual(bad.status_code, 400)
        self.assertTrue(bad.json()["problems"])

        updated = client.put("/api/v1/settings", json={"work_duration": 600})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["work_duration"], 600)
        self.assertEqual(self.storage.get_settings(1).work_duration, 600)

        state = client.get("/api/v1/timer/state").json()
        self.assertEqual(state["remaining_seconds"], 600)

    def test_timer_and_sessions(self) -> None:
        client = self.make_client()

        started = client.post("/api/v1/timer/start", json={"user_id": 1})
        self.assertEqual(started.status_code, 200)
        body = started.json()
        self.assertTrue(body["is_running"])
        self.assertEqual(body["status_message"], "Focusing...")
        session_id = body["current_session_id"]
        self.assertIsNotNone(session_id)

        paused = client.post("/api/v1/timer/pause", json={"user_id": 1}).json()
        self.assertEqual(paused["status_label"], "Paused")

        sessions = client.get("/api/v1/sessions", params={"user_id": 1, "date": "2026-06-01"}).json()
        self.assertEqual(len(sessions), 1)
        self.assertIsNone(sessions[0]["end_time"])
        self.assertEqual(client.get("/api/v1/sessions", params={"date": "2026-06-02"}).json(), [])

        completed = client.put(f"/api/v1/sessions/{session_id}/complete")
        self.assertEqual(completed.status_code, 200)
        self.assertTrue(completed.json()["completed"])
        self.assertEqual(client.put("/api/v1/sessions/999/complete").status_code, 404)
        self.assertEqual(client.get("/api/v1/sessions/999").status_code, 404)

        daily = client.get("/api/v1/stats/daily").json()
        self.assertEqual(daily["completed_pomodoros"], 1)
        self.assertEqual(daily["total_focus_time"], 1500)

        reset = client.post("/api/v1/timer/reset", json={"user_id": 1}).json()
        self.assertEqual(reset["phase"], "idle")
        self.assertIsNone(reset["current_session_id"])
        self.assertEqual(client.get("/api/v1/stats/daily").json()["completed_pomodoros"], 1)

    def test_stats_defaults(self) -> None:
        client = self.make_client()

        future = client.get("/api/v1/stats/daily", params={"date": "2030-01-01"}).json()
        self.assertEqual(
            (future["completed_pomodoros"], future["total_focus_time"], future["tasks_completed"]),
            (0, 0, 0),
        )

        history = client.get("/api/v1/stats/history", params={"days": 3}).json()
        self.assertEqual([item["day"] for item in history], ["2026-05-30", "2026-05-31", "2026-06-01"])
        self.assertEqual(client.get("/api/v1/stats/history", params={"days": 0}).status_code, 422)

    def test_app_shutdown_pauses_running_timers(self) -> None:
        with self.make_client() as client:
            started = client.post("/api/v1/timer/start", json={"user_id": 1})
            self.assertTrue(started.json()["is_running"])

        service = self.app.state.timer_service
        self.assertEqual(service.state(1).phase, "paused")

    def test_sqlite_backed_app(self) -> None:
        from fastapi.testclient import TestClient

        from pomolog.api.app import create_app

        with local_tmp_dir() as tmp:
            db_path = tmp / "data" / "pomolog.sqlite"
            client = TestClient(create_app(db_path=db_path, ticker_factory=FakeTicker))

            meta = client.get("/api/v1/meta")
            self.assertEqual(meta.json().get("db_path"), str(db_path))

            created = client.post("/api/v1/tasks", json={"title": "Persisted"})
            self.assertEqual(created.status_code, 201)
            self.assertEqual(len(client.get("/api/v1/tasks").json()), 1)

            exported = client.post("/api/v1/export/csv", json={"out_dir": str(tmp / "out")})
            self.assertEqual(exported.status_code, 200)
            self.assertTrue(exported.json()["path"].endswith("pomolog-sessions.csv"))


if __name__ == "__main__":
    unittest.main()
