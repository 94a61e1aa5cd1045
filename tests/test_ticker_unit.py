# User value: This test makes sure live timers keep ticking through errors and stop cleanly.
import asyncio
import unittest

from utils.ticker import Ticker


class TickerUnitTests(unittest.TestCase):
    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            Ticker(0, lambda: None)

    def test_fires_immediately_then_repeats(self):
        calls = []

        async def run_case():
            ticker = Ticker(0.01, lambda: calls.append(1), name="t", fire_immediately=True)
            ticker.start()
            self.assertTrue(ticker.running)
            await asyncio.sleep(0.055)
            await ticker.stop()
            self.assertFalse(ticker.running)

        asyncio.run(run_case())
        self.assertGreaterEqual(len(calls), 3)

    # User value: one failed refresh never freezes the timer.
    def test_callback_errors_are_logged_and_ticking_continues(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        async def run_case():
            with self.assertLogs("portal.ticker", level="WARNING") as logs:
                async with Ticker(0.01, flaky, name="flaky", fire_immediately=True) as ticker:
                    await asyncio.sleep(0.04)
                self.assertFalse(ticker.running)
            self.assertTrue(any("ticker_callback_failed" in line for line in logs.output))

        asyncio.run(run_case())
        self.assertGreaterEqual(len(calls), 2)

    def test_stop_without_start_is_noop(self):
        async def run_case():
            ticker = Ticker(1, lambda: None)
            await ticker.stop()
            self.assertEqual(ticker.ticks, 0)

        asyncio.run(run_case())


if __name__ == "__main__":
    unittest.main()
