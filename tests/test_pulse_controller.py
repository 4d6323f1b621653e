import itertools
import random
import unittest

from tickerpulse.core.pulse import PulseConfig, PulseController


def make_controller(**overrides) -> PulseController:
    settings = {
        "requests_per_minute": 60.0,
        "channel_count": 4,
        "min_interval": 1.0,
        "max_interval": 60.0,
        "backoff_factor": 2.0,
    }
    settings.update(overrides)
    return PulseController(PulseConfig(**settings))


class PulseControllerTest(unittest.TestCase):
    def test_baseline_spreads_quota_across_channels(self) -> None:
        controller = make_controller()
        self.assertAlmostEqual(4.0, controller.baseline)
        self.assertAlmostEqual(4.0, controller.get_interval())

    def test_repeated_throttle_adjusts_once(self) -> None:
        controller = make_controller()

        self.assertTrue(controller.update(429))
        self.assertAlmostEqual(8.0, controller.get_interval())
        self.assertFalse(controller.update(429))
        self.assertAlmostEqual(8.0, controller.get_interval())
        self.assertEqual(2, controller.state.consecutive_throttles)

    def test_success_between_throttles_resets_suppression(self) -> None:
        controller = make_controller()

        controller.update(429)
        controller.update(200)
        self.assertEqual(0, controller.state.consecutive_throttles)
        self.assertTrue(controller.update(429))
        self.assertAlmostEqual(16.0, controller.get_interval())

    def test_status_trace_rests_after_success(self) -> None:
        controller = make_controller()
        b, f = controller.baseline, 2.0

        trace = []
        for status in [200, 200, 429, 429, 200]:
            controller.update(status)
            trace.append(controller.get_interval())

        self.assertEqual([b, b, b * f, b * f, b * f], trace)

    def test_recovery_factor_steps_back_toward_baseline(self) -> None:
        controller = make_controller(recovery_factor=2.0)

        controller.update(429)
        controller.update(200)
        self.assertAlmostEqual(4.0, controller.get_interval())
        self.assertFalse(controller.update(200))
        self.assertAlmostEqual(4.0, controller.get_interval())

    def test_untracked_codes_only_update_last_status(self) -> None:
        controller = make_controller()
        controller.update(429)

        for status in (None, 403, 500, 502, 404):
            self.assertFalse(controller.update(status))
            self.assertEqual(status, controller.state.last_status)

        self.assertAlmostEqual(8.0, controller.get_interval())
        self.assertEqual(1, controller.state.consecutive_throttles)

    def test_any_differing_status_resets_suppression(self) -> None:
        for between in (500, None, 403):
            controller = make_controller()
            b, f = controller.baseline, 2.0

            trace = []
            for status in (429, between, 429):
                controller.update(status)
                trace.append(controller.get_interval())

            self.assertEqual([b * f, b * f, b * f * f], trace)

    def test_interval_stays_within_bounds(self) -> None:
        controller = make_controller(max_interval=30.0)
        rng = random.Random(7)
        codes = [200, 429, 403, 500, None]

        for status in (rng.choice(codes) for _ in range(2000)):
            controller.update(status)
            self.assertGreaterEqual(controller.get_interval(), 1.0)
            self.assertLessEqual(controller.get_interval(), 30.0)

        for status in itertools.islice(itertools.cycle([429, 200]), 50):
            controller.update(status)
        self.assertAlmostEqual(30.0, controller.get_interval())

    def test_invalid_budget_degrades_to_minimum(self) -> None:
        for overrides in ({"channel_count": 0}, {"requests_per_minute": -5}, {"requests_per_minute": float("nan")}):
            controller = make_controller(min_interval=2.5, **overrides)
            self.assertAlmostEqual(2.5, controller.get_interval())

    def test_non_finite_ceiling_keeps_backoff_working(self) -> None:
        controller = make_controller(max_interval=float("inf"))

        self.assertTrue(controller.update(429))
        self.assertAlmostEqual(8.0, controller.get_interval())
        for status in [200, 429] * 10:
            controller.update(status)
        self.assertAlmostEqual(PulseConfig.max_interval, controller.get_interval())

    def test_baseline_is_clamped_into_bounds(self) -> None:
        fast = make_controller(requests_per_minute=6000, channel_count=1)
        slow = make_controller(requests_per_minute=1, channel_count=10, max_interval=60.0)

        self.assertAlmostEqual(1.0, fast.get_interval())
        self.assertAlmostEqual(60.0, slow.get_interval())

    def test_reset_returns_to_baseline(self) -> None:
        controller = make_controller()
        controller.update(429)
        controller.reset()

        self.assertAlmostEqual(controller.baseline, controller.get_interval())
        self.assertIsNone(controller.state.last_status)


if __name__ == "__main__":
    unittest.main()
