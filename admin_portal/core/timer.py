import asyncio
from typing import Awaitable, Callable, Optional

from admin_portal.core.logger import get_logger

logger = get_logger(__name__)


class RefreshTimer:
    """
    Cancellable one-shot-then-periodic timer on the running event loop.

    Sleeps `first_delay` seconds, awaits `callback`, then asks `next_delay()`
    for the following interval and repeats until cancelled. The callback is
    shielded: cancelling the timer stops future firings but lets a callback
    that is already running finish.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        first_delay: float,
        next_delay: Callable[[], float],
        name: str = "refresh-timer",
    ):
        self._callback = callback
        self._first_delay = max(0.0, first_delay)
        self._next_delay = next_delay
        self._name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        delay = self._first_delay
        while True:
            logger.debug(f"{self._name}: next firing in {delay:.1f}s")
            await asyncio.sleep(delay)
            try:
                await asyncio.shield(self._callback())
            except Exception:
                logger.exception(f"{self._name}: callback failed")
            delay = max(0.0, self._next_delay())
