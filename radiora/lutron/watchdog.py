import asyncio
import logging
import time
from typing import Any, Callable, Optional


class WatchdogContext:
    """
    Tracks how many watchdogs are outstanding. One context is shared by
    the components that want to report that depth, typically one per
    session.
    """
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.outstanding = 0
        self.logger = logger or logging.getLogger("Watchdog")


class Watchdog:
    """
    Guarantees that ``fn`` is called exactly once, either by invoking the
    watchdog with the real result or, after ``max_time`` seconds, with no
    arguments. Whichever path loses is logged and ignored.
    """

    def __init__(
        self,
        name: str,
        max_time: float,
        context: WatchdogContext,
        fn: Callable[..., Any],
        on_timeout: Optional[Callable[[], Any]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.name = name
        self.max_time = max_time
        self.context = context
        self.fn = fn
        self.on_timeout = on_timeout
        self.done = False
        self.timed_out = False

        self._start = time.monotonic()
        self.context.outstanding += 1
        loop = loop or asyncio.get_running_loop()
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(max_time, self._kick)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)

    def _finish(self) -> None:
        self.done = True
        self.context.outstanding -= 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _kick(self) -> None:
        self._handle = None
        if self.done:
            return
        self.timed_out = True
        self._finish()
        self.context.logger.warning(
            f"{self.name} watch dog kicked after {int(self.max_time * 1000)}ms ({self.context.outstanding})"
        )
        if self.on_timeout is not None:
            try:
                self.on_timeout()
            except Exception as e:
                self.context.logger.error(f"{self.name} timeout hook failed: {e}")
        self.fn()

    def __call__(self, *args: Any) -> None:
        if self.done:
            self.context.logger.info(
                f"{self.name} callback took too long {self.elapsed_ms}ms ({self.context.outstanding})"
            )
            return
        self._finish()
        self.context.logger.debug(f"{self.name} completed in {self.elapsed_ms}ms ({self.context.outstanding})")
        self.fn(*args)

    def cancel(self) -> None:
        """Disarm without calling anything."""
        if not self.done:
            self._finish()


def watchdog(
    name: str,
    max_time: float,
    context: WatchdogContext,
    fn: Callable[..., Any],
    on_timeout: Optional[Callable[[], Any]] = None,
) -> Watchdog:
    """Make sure ``fn`` gets called exactly once after no more than ``max_time`` seconds."""
    return Watchdog(name, max_time, context, fn, on_timeout=on_timeout)
