"""
Debounced autosave with status tracking

Coalesces bursts of edits into one write after a quiet period and exposes a
save status for the UI:

    idle -> saving -> saved -> idle
                   -> error -> idle

Timers are asyncio tasks owned by the controller; scheduling again replaces
(cancels) the pending one. Must be used from within a running event loop.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

from app.core.config import ERROR_DISPLAY_SECONDS, SAVE_QUIET_PERIOD_SECONDS, SAVED_DISPLAY_SECONDS
from app.models.schemas import SaveStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

StatusListener = Callable[[SaveStatus, Optional[str]], None]


class DebouncedSaveController(Generic[T]):
    """
    Debounced save for one checklist editing session

    Args:
        persist: Async function writing a payload; raising means the save failed
        quiet_period: Seconds without new edits before the write happens
        saved_display: Seconds the 'saved' status stays visible
        error_display: Seconds the 'error' status and message stay visible
        on_status_change: Called with (status, error) on every status change
    """
    def __init__(
        self,
        persist: Callable[[T], Awaitable[None]],
        quiet_period: float = SAVE_QUIET_PERIOD_SECONDS,
        saved_display: float = SAVED_DISPLAY_SECONDS,
        error_display: float = ERROR_DISPLAY_SECONDS,
        on_status_change: Optional[StatusListener] = None,
    ):
        self._persist = persist
        self.quiet_period = quiet_period
        self.saved_display = saved_display
        self.error_display = error_display
        self._on_status_change = on_status_change

        self.status = SaveStatus.IDLE
        self.error: Optional[str] = None
        self._pending: Optional[asyncio.Task] = None
        self._reset: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _set_status(self, status: SaveStatus, error: Optional[str] = None):
        if self._closed:
            return
        if status == self.status and error == self.error:
            return
        self.status = status
        self.error = error
        if self._on_status_change is not None:
            self._on_status_change(status, error)

    def _cancel_timers(self):
        for task in (self._pending, self._reset):
            if task is not None and not task.done():
                task.cancel()
        self._pending = None
        self._reset = None

    def schedule(self, payload: T):
        """
        Schedule a write of payload after the quiet period

        Supersedes any write that has not started yet.
        """
        if self._closed:
            raise RuntimeError("DebouncedSaveController is closed")
        self._cancel_timers()
        self._set_status(SaveStatus.SAVING)
        self._pending = asyncio.get_running_loop().create_task(self._run(payload))

    async def _run(self, payload: T):
        await asyncio.sleep(self.quiet_period)

        # From here on the write is no longer cancellable by schedule()
        task = asyncio.current_task()
        if self._pending is task:
            self._pending = None
        self._in_flight.add(task)
        try:
            await self._persist(payload)
        except Exception as e:
            message = str(e) or "Save failed"
            logger.error(f"[Autosave] Save failed: {message}")
            self._finish(SaveStatus.ERROR, message, self.error_display)
        else:
            self._finish(SaveStatus.SAVED, None, self.saved_display)
        finally:
            self._in_flight.discard(task)

    def _finish(self, status: SaveStatus, error: Optional[str], display: float):
        # A newer burst is already pending; its 'saving' status stays visible.
        if self._closed or self._pending is not None:
            return
        if self._reset is not None and not self._reset.done():
            self._reset.cancel()
        self._set_status(status, error)
        self._reset = asyncio.get_running_loop().create_task(self._return_to_idle(display))

    async def _return_to_idle(self, delay: float):
        await asyncio.sleep(delay)
        self._reset = None
        self._set_status(SaveStatus.IDLE)

    async def drain(self):
        """
        Wait until no write is pending or in flight (status timers excluded)
        """
        while True:
            tasks = [t for t in (self._pending, *self._in_flight) if t is not None]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def close(self):
        """
        Tear down at session end: drop pending writes and status timers

        Writes already in flight finish but no longer update the status.
        """
        self._cancel_timers()
        self._closed = True
