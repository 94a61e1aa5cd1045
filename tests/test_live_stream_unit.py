# User value: This test makes sure live screens stop ticking when closed and sign out on an expired session.
import asyncio
import unittest
from unittest.mock import patch

from services.live_stream import sse_event, tick_stream
from services.portal_api import SessionExpiredError


class FakeRequest:
    def __init__(self, disconnect_after: int = 1000):
        self.checks = 0
        self.disconnect_after = disconnect_after

    async def is_disconnected(self) -> bool:
        self.checks += 1
        return self.checks > self.disconnect_after


class LiveStreamUnitTests(unittest.TestCase):
    def test_sse_event_format(self):
        self.assertEqual(sse_event("counts", {"a": 1}), 'event: counts\ndata: {"a": 1}\n\n')

    def test_stream_emits_ticks(self):
        ticks = []

        async def produce():
            ticks.append(1)
            return {"n": len(ticks)}

        async def run_case():
            stream = tick_stream(FakeRequest(), 0.01, produce, event="counts", name="test")
            events = [await stream.__anext__(), await stream.__anext__()]
            await stream.aclose()
            return events

        events = asyncio.run(run_case())
        self.assertTrue(events[0].startswith("event: counts\n"))
        self.assertIn('"n": 1', events[0])

    def test_stream_stops_on_disconnect(self):
        async def produce():
            return {}

        async def run_case():
            return [e async for e in tick_stream(FakeRequest(disconnect_after=0), 0.01, produce, event="x", name="t")]

        self.assertEqual(asyncio.run(run_case()), [])

    # User value: an expired session on a live screen sends the interpreter to login once.
    def test_session_expiry_ends_stream(self):
        async def produce():
            raise SessionExpiredError("tok")

        async def run_case():
            return [e async for e in tick_stream(FakeRequest(), 1.0, produce, event="counts", name="t")]

        with patch("services.live_stream.clear_session") as mock_clear:
            events = asyncio.run(run_case())
        self.assertEqual(len(events), 1)
        self.assertTrue(events[0].startswith("event: session_expired\n"))
        self.assertIn('"redirect": "/login"', events[0])
        mock_clear.assert_called_once_with("tok")


if __name__ == "__main__":
    unittest.main()
