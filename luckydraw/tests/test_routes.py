import io
import json
import time
import unittest
from unittest import mock

from luckydraw.app import create_app
from luckydraw.config import AppSettings, DrawSettings, FlaskSettings

PEOPLE = b"number,name\n1,Alice\n2,Bob\n3,Carol\n"


class LuckyDrawRoutesTests(unittest.TestCase):
    def setUp(self) -> None:
        settings = AppSettings(
            flask=FlaskSettings(secret_key="test-secret"),
            draw=DrawSettings(delay_seconds=0.05, default_winners=2, max_winners=100),
            max_upload_bytes=4096,
        )
        self.app = create_app(settings)
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        self.app.extensions["luckydraw"].stop()

    def _upload(self, body: bytes, filename: str = "people.csv"):
        return self.client.post(
            "/participants",
            data={"file": (io.BytesIO(body), filename)},
            content_type="multipart/form-data",
        )

    def _draw(self, payload):
        return self.client.post(
            "/draws",
            data=json.dumps(payload),
            content_type="application/json",
        )

    def _wait_until_settled(self, timeout: float = 2.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            state = self.client.get("/session").get_json()
            if state["state"] != "drawing":
                return state
            time.sleep(0.02)
        self.fail("draw did not settle in time")

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "ok")

    def test_upload_file(self) -> None:
        response = self._upload(b"number,name\n1,Alice\nx,Bad\n2,Bob\n")

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["count"], 2)
        self.assertEqual(payload["participants"][0], {"number": 1, "name": "Alice"})
        self.assertEqual(payload["rejected"][0]["reason"], "invalid_number")
        self.assertEqual(payload["notification"]["level"], "success")

        state = self.client.get("/session").get_json()
        self.assertEqual(len(state["participants"]), 2)
        self.assertEqual(state["state"], "idle")
        self.assertEqual(state["default_winners"], 2)

    def test_upload_raw_body(self) -> None:
        response = self.client.post("/participants", data=PEOPLE, content_type="text/csv")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["count"], 3)

    def test_upload_without_content(self) -> None:
        response = self.client.post("/participants")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "invalid_request")

    def test_duplicate_upload_clears_participants(self) -> None:
        self._upload(PEOPLE)

        response = self._upload(b"number,name\n1,Alice\n2,Bob\n2,Carol\n4,Dave")

        self.assertEqual(response.status_code, 422)
        payload = response.get_json()
        self.assertEqual(payload["error"], "duplicate_number")
        self.assertEqual(payload["duplicates"], [2])

        state = self.client.get("/session").get_json()
        self.assertEqual(state["participants"], [])
        self.assertEqual(state["notification"]["level"], "error")

    def test_missing_columns(self) -> None:
        response = self._upload(b"id,full_name\n1,Alice\n")

        self.assertEqual(response.status_code, 422)
        payload = response.get_json()
        self.assertEqual(payload["error"], "missing_columns")
        self.assertEqual(payload["missing"], ["number", "name"])

    def test_malformed_upload(self) -> None:
        response = self._upload(b"number,name\n1,Alice,extra\n")

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.get_json()["error"], "malformed_input")

    def test_upload_too_large(self) -> None:
        response = self._upload(b"number,name\n" + b"1,Alice\n" * 1000)

        self.assertEqual(response.status_code, 413)

    def test_draw_flow(self) -> None:
        self._upload(PEOPLE)

        response = self._draw({"count": 2})
        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.get_json()["state"], "drawing")
        self.assertEqual(response.get_json()["delay_seconds"], 0.05)

        busy = self._draw({"count": 2})
        self.assertEqual(busy.status_code, 409)
        self.assertEqual(busy.get_json()["error"], "draw_in_progress")

        state = self._wait_until_settled()
        self.assertEqual(state["state"], "succeeded")
        numbers = [w["number"] for w in state["winners"]]
        self.assertEqual(len(set(numbers)), 2)
        self.assertTrue(set(numbers) <= {1, 2, 3})
        self.assertEqual(state["notification"]["message"], "Lucky draw completed successfully!")

        dismissed = self.client.delete("/session/notification").get_json()
        self.assertEqual(dismissed["state"], "idle")
        self.assertIsNone(dismissed["notification"])

    def test_draw_without_participants(self) -> None:
        response = self._draw({"count": 1})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.get_json()["error"], "empty_pool")

    def test_draw_rejects_bad_counts(self) -> None:
        self._upload(PEOPLE)

        zero = self._draw({"count": 0})
        self.assertEqual(zero.status_code, 422)
        self.assertEqual(zero.get_json()["error"], "invalid_count")
        self.assertEqual(self.client.get("/session").get_json()["state"], "failed")

        too_many = self._draw({"count": 4})
        self.assertEqual(too_many.status_code, 422)
        self.assertEqual(too_many.get_json()["error"], "insufficient_pool")

    def test_draw_rejects_invalid_payload(self) -> None:
        for payload in ({}, {"count": "many"}, {"count": True}, {"count": 2.0}, [1, 2]):
            with self.subTest(payload=payload):
                response = self._draw(payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error"], "invalid_request")

    def test_closing_session_cancels_draw(self) -> None:
        self._upload(PEOPLE)
        self._draw({"count": 2})

        response = self.client.delete("/session")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["closed"])

        time.sleep(0.15)
        state = self.client.get("/session").get_json()
        self.assertEqual(state["state"], "idle")
        self.assertEqual(state["participants"], [])
        self.assertEqual(state["winners"], [])

    def test_sessions_are_isolated(self) -> None:
        self._upload(PEOPLE)
        other = self.app.test_client()

        state = other.get("/session").get_json()

        self.assertEqual(state["participants"], [])
        self.assertEqual(self.client.get("/health").get_json()["sessions"], 2)


class AppTeardownTests(unittest.TestCase):
    def test_runtime_stops_at_interpreter_exit(self) -> None:
        with mock.patch("luckydraw.app.atexit.register") as register:
            app = create_app(AppSettings(flask=FlaskSettings(secret_key="test-secret")))
        runtime = app.extensions["luckydraw"]
        self.addCleanup(runtime.stop)

        register.assert_called_once_with(runtime.stop)
        self.assertTrue(runtime.loop.running)

        registered = register.call_args[0][0]
        registered()
        registered()
        self.assertFalse(runtime.loop.running)


if __name__ == "__main__":
    unittest.main()
