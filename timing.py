# =========  timing.py  =========
"""
Deadline timers for the single-threaded main loop.

Nothing here spawns threads.  Each Timer is one owned, replaceable
deferred call; `start()` on a pending timer simply moves its deadline
(restart-on-activity), `cancel()` drops it.  The main loop calls
`Scheduler.fire_due()` once per frame.

The clock is injectable so tests can step time by hand.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

log = logging.getLogger(__name__)


class Timer:
    def __init__(self, scheduler: "Scheduler", callback: Callable[[], None], name: str = ""):
        self._scheduler = scheduler
        self._callback = callback
        self.name = name
        self.deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self.deadline is not None

    def start(self, delay: float) -> None:
        """Arm (or re-arm) the timer *delay* seconds from now."""
        if self._scheduler.closed:
            log.debug(f"timer {self.name!r} armed after teardown – ignored")
            return
        self.deadline = self._scheduler.now() + max(0.0, delay)

    def cancel(self) -> None:
        self.deadline = None

    def fire(self) -> None:
        self.deadline = None
        if self._scheduler.closed:
            log.debug(f"timer {self.name!r} fired after teardown – ignored")
            return
        self._callback()


class Scheduler:
    """Owns every Timer of one view; `close()` cancels them all."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.closed = False
        self._timers: List[Timer] = []

    def now(self) -> float:
        return self.clock()

    def timer(self, callback: Callable[[], None], name: str = "") -> Timer:
        t = Timer(self, callback, name)
        self._timers.append(t)
        return t

    def fire_due(self) -> int:
        """Run every timer whose deadline has passed, earliest first."""
        if self.closed:
            return 0
        now = self.now()
        due = sorted(
            (t for t in self._timers if t.deadline is not None and t.deadline <= now),
            key=lambda t: t.deadline,
        )
        fired = 0
        for t in due:
            # an earlier callback may have cancelled or re-armed this one
            if t.deadline is None or t.deadline > now or self.closed:
                continue
            t.fire()
            fired += 1
        return fired

    def close(self) -> None:
        self.closed = True
        for t in self._timers:
            t.cancel()
