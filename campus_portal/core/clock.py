import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Protocol

from campus_portal.core.config import COUNTDOWN_TICK_SECONDS

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, start: datetime):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self._now = value

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


TickCallback = Callable[[datetime], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


class Ticker:
    """
    Cooperative periodic tick source.

    Calls `callback(clock.now())` immediately and then every `interval`
    seconds until stopped. There is no in-flight work to drain on stop:
    the loop task is cancelled and awaited.

    A failing callback ends the loop. With `on_error` the failure is handed
    over right away so the owner can shut down its consumer; without it
    the error is logged when `stop` awaits the task.
    """

    def __init__(self, clock: Clock, interval: float = COUNTDOWN_TICK_SECONDS):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.clock = clock
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: TickCallback, on_error: Optional[ErrorCallback] = None) -> None:
        if self.running:
            raise RuntimeError("ticker already started")
        self._task = asyncio.create_task(self._run(callback, on_error))

    async def _run(self, callback: TickCallback, on_error: Optional[ErrorCallback]) -> None:
        try:
            while True:
                await callback(self.clock.now())
                await asyncio.sleep(self.interval)
        except Exception as exc:
            if on_error is None:
                raise
            logger.warning("tick callback failed; ticker stopped", exc_info=True)
            await on_error(exc)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return

        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            # the consumer went away mid-tick (e.g. closed socket)
            logger.warning("tick callback failed; ticker stopped", exc_info=True)

    async def __aenter__(self) -> "Ticker":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
