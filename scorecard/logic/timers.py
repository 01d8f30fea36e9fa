"""Cancellable timers keyed by generation tokens.

Each scheduled callback gets a fresh integer token. Cancelling a token drops
the callback; owners also compare the token they hold against the one a
callback was armed with, so a callback whose context went stale is discarded
explicitly instead of acting on a newer state.

The scheduler is cooperative and single-threaded: nothing fires on its own.
Due timers run when the owner calls ``run_due()`` (for example on every
request touching a session) or, with a ``ManualClock``, when the clock is
advanced through ``advance()``.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ManualClock:
    """Millisecond clock that only moves when told to (tests, replays)."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def __call__(self) -> float:
        return self._now

    def set(self, now_ms: float) -> None:
        if now_ms < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = float(now_ms)


@dataclass(order=True)
class _Entry:
    due_ms: float
    token: int
    callback: Callable[[int], None] = field(compare=False)
    label: str = field(default="", compare=False)


class TimerScheduler:
    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or monotonic_ms
        self._heap: List[_Entry] = []
        self._live: Dict[int, _Entry] = {}
        self._tokens = itertools.count(1)

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay_ms: float, callback: Callable[[int], None], *, label: str = "") -> int:
        """Arm ``callback(token)`` to run ``delay_ms`` from now; return its token."""
        token = next(self._tokens)
        entry = _Entry(due_ms=self.now() + max(float(delay_ms), 0.0), token=token, callback=callback, label=label)
        heapq.heappush(self._heap, entry)
        self._live[token] = entry
        logger.debug("timer_armed token=%s label=%s due_ms=%s", token, label, entry.due_ms)
        return token

    def cancel(self, token: Optional[int]) -> bool:
        """Cancel a pending timer; returns False when it already ran or was cancelled."""
        if token is None:
            return False
        entry = self._live.pop(token, None)
        if entry is None:
            return False
        logger.debug("timer_cancelled token=%s label=%s", token, entry.label)
        return True

    def is_pending(self, token: Optional[int]) -> bool:
        return token is not None and token in self._live

    def pending_count(self) -> int:
        return len(self._live)

    def cancel_all(self) -> int:
        count = len(self._live)
        self._live.clear()
        self._heap.clear()
        return count

    def next_due(self) -> Optional[float]:
        self._drop_cancelled_head()
        return self._heap[0].due_ms if self._heap else None

    def _drop_cancelled_head(self) -> None:
        while self._heap and self._heap[0].token not in self._live:
            heapq.heappop(self._heap)

    def _fire_one(self) -> None:
        entry = heapq.heappop(self._heap)
        self._live.pop(entry.token, None)
        logger.debug("timer_fired token=%s label=%s", entry.token, entry.label)
        entry.callback(entry.token)

    def run_due(self) -> int:
        """Run every timer due at the current clock, earliest first.

        Timers armed by a callback run in the same pass when already due.
        Returns the number of callbacks run.
        """
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > self.now():
                return fired
            self._fire_one()
            fired += 1

    def advance(self, delta_ms: float) -> int:
        """Move a ManualClock forward, running timers at their own due times."""
        if not isinstance(self._clock, ManualClock):
            raise TypeError("advance() requires a ManualClock")
        target = self.now() + float(delta_ms)
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self._clock.set(max(due, self.now()))
            self._fire_one()
            fired += 1
        self._clock.set(target)
        return fired


__all__ = ["ManualClock", "TimerScheduler", "monotonic_ms"]
