"""
Countdown timer that forces submission when a test's time runs out.

The timer owns one asyncio task. Each tick interval it decrements the
remaining seconds; when the count reaches zero it stops and awaits the
``on_expire`` callback exactly once. Navigation and answer capture never
pause it; only ``cancel()`` (manual submission) stops it early.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

ExpiryCallback = Callable[[], Awaitable[None]]


def _running_task() -> Optional["asyncio.Task"]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        # No running event loop
        return None


class CountdownTimer:
    """
    Cancellable countdown scheduler owned by a test session.

    Args:
        duration_seconds: Initial countdown value
        on_expire: Coroutine function awaited once when the count hits zero
        interval: Seconds per tick; defaults to TIMER_TICK_INTERVAL_SECONDS
        name: Label used in log messages
    """

    def __init__(
        self,
        duration_seconds: int,
        on_expire: ExpiryCallback,
        interval: Optional[float] = None,
        name: str = "countdown",
    ):
        if duration_seconds < 0:
            raise ValueError("duration_seconds must be >= 0")
        self.remaining_seconds = int(duration_seconds)
        self.interval = (
            interval if interval is not None else settings.TIMER_TICK_INTERVAL_SECONDS
        )
        self.name = name
        self._on_expire = on_expire
        self._task: Optional[asyncio.Task] = None
        self._expired = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self) -> None:
        """Begin ticking on the running event loop. No-op if already running."""
        if self.is_running or self._expired:
            return
        self._task = asyncio.create_task(self._run(), name=f"timer:{self.name}")

    def cancel(self) -> None:
        """
        Stop ticking.

        Safe to call from inside the expiry callback: the timer task never
        cancels itself, it simply finishes after the callback returns.
        """
        task = self._task
        if task is None or task.done():
            return
        if task is _running_task():
            return
        task.cancel()
        logger.debug(f"Timer {self.name} cancelled with {self.remaining_seconds}s left")

    def rearm(self, remaining_seconds: int) -> None:
        """Restart the countdown from ``remaining_seconds`` after a failed submit."""
        self.cancel()
        self.remaining_seconds = max(0, int(remaining_seconds))
        self._expired = False
        self._task = None
        if self.remaining_seconds > 0:
            self.start()

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True when this tick brought the count to zero
        """
        if self.remaining_seconds <= 0:
            return False
        self.remaining_seconds -= 1
        return self.remaining_seconds == 0

    async def _run(self) -> None:
        while self.remaining_seconds > 0:
            await asyncio.sleep(self.interval)
            if self.tick():
                break
        self._expired = True
        await self._fire()

    async def _fire(self) -> None:
        logger.info(f"Timer {self.name} expired")
        try:
            await self._on_expire()
        except Exception:
            # The ticking task has no caller to propagate to
            logger.exception(f"Expiry callback for timer {self.name} failed")
