from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from .errors import SessionStoreConfigError

if TYPE_CHECKING:
    from .store import MongoSessionStore

log = logging.getLogger("session_store.reaper")

DEFAULT_REAP_INTERVAL_MS = 21_600_000  # 6 hours

# callback(error, removed): error is None on success. May be sync or async.
ReapCallback = Callable[[Optional[BaseException], int], Any]


def noop_reap_callback(error: Optional[BaseException], removed: int) -> None:
    return None


async def invoke_callback(callback: ReapCallback, error: Optional[BaseException], removed: int) -> None:
    res = callback(error, removed)
    if inspect.isawaitable(res):
        await res


class Reaper:
    """
    Background task that periodically removes expired sessions.

    The handle is owned by whoever starts it: ``start()`` schedules the loop
    on the running event loop, ``stop()`` ends it after the pass in flight.
    The first pass runs one full interval after ``start()``.
    """

    def __init__(
        self,
        store: "MongoSessionStore",
        *,
        interval_ms: float = DEFAULT_REAP_INTERVAL_MS,
        callback: Optional[ReapCallback] = None,
    ):
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, (int, float)) or interval_ms <= 0:
            raise SessionStoreConfigError(f"Invalid reap interval: {interval_ms!r}")
        self.store = store
        self.interval_ms = interval_ms
        self.callback: ReapCallback = callback or noop_reap_callback
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "Reaper":
        if self.running:
            return self
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="session-reaper")
        log.info("reaper started interval_ms=%s", self.interval_ms)
        return self

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        await task
        log.info("reaper stopped")

    async def run_once(self) -> int:
        """Run a single reap pass; the outcome goes to the callback."""
        return await self.store.reap(callback=self._report)

    async def _report(self, error: Optional[BaseException], removed: int) -> None:
        if error is not None:
            log.error("reap failed err=%s", error, exc_info=error)
        elif removed:
            log.info("reap complete removed=%d", removed)
        else:
            log.debug("reap complete removed=0")
        await invoke_callback(self.callback, error, removed)

    async def _run(self) -> None:
        assert self._stop_event is not None
        stop = self._stop_event
        interval = self.interval_ms / 1000
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass
            try:
                await self.run_once()
            except Exception:
                # A raising callback must not end the schedule.
                log.exception("reap callback failed")
