# User value: This file keeps live timers and badge counts refreshing without leaking background work.
import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger("portal.ticker")

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class Ticker:
    """Repeating asyncio timer scoped to one consumer.

    ``start()`` schedules the loop on the running event loop, ``await stop()``
    cancels it and waits for the task to finish. A callback that raises is
    logged and the next tick still fires.
    """

    def __init__(self, interval_sec: float, callback: TickCallback, *, name: str = "ticker", fire_immediately: bool = False):
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.interval_sec = float(interval_sec)
        self.callback = callback
        self.name = name
        self.fire_immediately = fire_immediately
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _fire(self) -> None:
        self.ticks += 1
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(
                "ticker_callback_failed name=%s tick=%s error=%s: %s",
                self.name,
                self.ticks,
                exc.__class__.__name__,
                exc,
            )

    async def _run(self) -> None:
        if self.fire_immediately:
            await self._fire()
        while True:
            await asyncio.sleep(self.interval_sec)
            await self._fire()

    async def __aenter__(self) -> "Ticker":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
