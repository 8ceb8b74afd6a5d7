import heapq
import itertools
import logging
from typing import Callable, List, Tuple


class TimerHandle:
    """Cancellation token for one scheduled callback."""

    def __init__(self, delay: float, label: str = ''):
        self.delay = delay
        self.label = label
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class SocketIOScheduler:
    """Runs each timer as a Socket.IO background task.

    The worker sleeps for the delay (optionally in heartbeat-sized steps
    that get logged), then fires the callback unless the handle was
    cancelled in the meantime.
    """

    def __init__(self, socketio, logger=None, heartbeat_sec: int = 0):
        self._socketio = socketio
        self._logger = logger or logging.getLogger(__name__)
        self._heartbeat_sec = heartbeat_sec

    def call_later(self, delay: float, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(delay, label)
        self._socketio.start_background_task(self._worker, handle, callback)
        return handle

    def _worker(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        hb = self._heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < handle.delay and not handle.cancelled:
                step = min(hb, handle.delay - slept)
                self._socketio.sleep(step)
                slept += step
                self._logger.info(f"[timer-heartbeat] {handle.label} remaining={max(0.0, handle.delay - slept):.1f}s")
        else:
            self._socketio.sleep(handle.delay)

        if handle.cancelled:
            self._logger.debug(f"[timer-abort] {handle.label} cancelled")
            return
        handle.fired = True
        try:
            callback()
        except Exception:
            self._logger.exception(f"[timer-error] {handle.label} callback raised")


class ManualScheduler:
    """Deterministic virtual clock.

    Nothing fires until advance() moves time forward; due callbacks then
    run in (due time, arming order). Callbacks armed while advancing are
    honoured within the same advance() if they fall inside the window.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, TimerHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(delay, label)
        heapq.heappush(self._queue, (self.now + max(0.0, delay), next(self._seq), handle, callback))
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing everything that comes due. Returns the fire count."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.fired = True
            fired += 1
            callback()
        self.now = target
        return fired

    def run_until_idle(self, limit: float = 86400.0) -> int:
        """Fire callbacks until nothing is pending or `limit` virtual seconds pass."""
        fired = 0
        deadline = self.now + limit
        while self.pending and self.now < deadline:
            next_due = min(due for due, _, handle, _ in self._queue if handle.pending)
            fired += self.advance(max(0.0, next_due - self.now))
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if handle.pending)
