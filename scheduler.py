from __future__ import annotations

import heapq
import itertools
from typing import Callable, Dict, List, Tuple


class TickScheduler:
    """Cooperative one-shot timers driven by an external clock.

    Nothing runs on its own: the host calls ``advance(dt_ms)`` (usually once
    per frame) and every callback that became due runs synchronously, in due
    order, before ``advance`` returns.
    """

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._queue: List[Tuple[float, int]] = []
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._ids = itertools.count(1)

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> int:
        """Run callback once, delay_ms from now. Returns a handle for cancel()."""
        handle = next(self._ids)
        self._callbacks[handle] = callback
        heapq.heappush(self._queue, (self.now_ms + max(0.0, delay_ms), handle))
        return handle

    def cancel(self, handle: int) -> bool:
        """Drop a pending callback; returns False if it already ran or was cancelled."""
        return self._callbacks.pop(handle, None) is not None

    def cancel_all(self) -> None:
        self._callbacks.clear()
        self._queue.clear()

    def pending(self) -> int:
        return len(self._callbacks)

    def advance(self, dt_ms: float) -> int:
        """Move the clock forward and run everything that is due.

        Callbacks scheduled while advancing run in the same call if they fall
        inside the window. Returns the number of callbacks run.
        """
        target = self.now_ms + max(0.0, dt_ms)
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle = heapq.heappop(self._queue)
            callback = self._callbacks.pop(handle, None)
            if callback is None:
                continue
            self.now_ms = due
            callback()
            ran += 1
        self.now_ms = target
        return ran
