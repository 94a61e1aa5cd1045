# User value: This file pushes fresh badge counts and timers to open screens and stops when the screen closes.
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from starlette.concurrency import run_in_threadpool

from services.auth import clear_session
from services.portal_api import SessionExpiredError
from services.token_expiration import expiration_handler
from utils.ticker import Ticker

logger = logging.getLogger("portal.live_stream")

EVENT_SESSION_EXPIRED = "session_expired"


def sse_event(event: str, payload: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, default=str)}\n\n"


async def tick_stream(
    request,
    interval_sec: float,
    produce: Callable[[], Awaitable[Any]],
    *,
    event: str,
    name: str,
) -> AsyncIterator[str]:
    """Yield one SSE event per tick until the client goes away.

    The ticker is stopped in ``finally`` so a disconnect or a closed
    generator never leaves a timer running.
    """
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def offer(item) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(item)

    async def on_tick() -> None:
        try:
            offer((event, await produce()))
        except SessionExpiredError as exc:
            outcome = await run_in_threadpool(expiration_handler.handle, exc.token, clear_session)
            offer((EVENT_SESSION_EXPIRED, {"message": outcome["message"], "redirect": outcome["redirect"]}))

    ticker = Ticker(interval_sec, on_tick, name=name, fire_immediately=True)
    ticker.start()
    logger.info("live_stream_opened name=%s interval_sec=%s", name, interval_sec)
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                kind, payload = await asyncio.wait_for(queue.get(), timeout=min(1.0, interval_sec))
            except asyncio.TimeoutError:
                continue
            yield sse_event(kind, payload)
            if kind == EVENT_SESSION_EXPIRED:
                break
    finally:
        await ticker.stop()
        logger.info("live_stream_closed name=%s ticks=%s", name, ticker.ticks)
