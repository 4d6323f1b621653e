import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from tickerpulse.core.pulse import PulseConfig, PulseController
from tickerpulse.dashboard.app import create_app
from tickerpulse.data.ticker_client import TickerResponse
from tickerpulse.infra.storage import DailyLineWriter
from tickerpulse.service import PulseService


async def idle_transport() -> TickerResponse:  # pragma: no cover - never polled
    return TickerResponse(200, "{}")


async def no_archive(day_key: str) -> None:  # pragma: no cover - never polled
    return None


class DashboardTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.service = PulseService(
            coin="btc_krw",
            transport=idle_transport,
            pulse=PulseController(PulseConfig(requests_per_minute=60, channel_count=4)),
            writer=DailyLineWriter(Path(self._tmp.name)),
            archive=no_archive,
        )
        self.client = TestClient(create_app(self.service))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_health_and_pulse_state(self) -> None:
        health = self.client.get("/health").json()
        pulse = self.client.get("/pulse").json()

        self.assertEqual({"status": "ok", "coin": "btc_krw", "loop_state": "idle"}, health)
        self.assertEqual(4.0, pulse["interval"])
        self.assertEqual(4.0, pulse["baseline"])
        self.assertIsNone(pulse["last_status"])

    def test_metrics_render_as_text(self) -> None:
        self.service.metrics.record_response(200, 4.0, 3.0)

        response = self.client.get("/metrics")

        self.assertEqual(200, response.status_code)
        self.assertIn("tickerpulse_requests_total 1", response.text)


if __name__ == "__main__":
    unittest.main()
