# pacefetch/fetch/throttle.py
from __future__ import annotations

import time

# --------------------------------------------------------------------------------------
# Clock hooks (tests monkeypatch time.monotonic / time.sleep)
# --------------------------------------------------------------------------------------


def now() -> float:
    return time.monotonic()


def sleep(dt: float) -> None:
    if dt > 0:
        time.sleep(dt)


# --------------------------------------------------------------------------------------
# Pacing clock
# --------------------------------------------------------------------------------------


class PacingClock:
    """
    Timestamp of the last dispatched request, measured on the monotonic clock.

    The gap is counted from dispatch to dispatch, not from completion. The clock
    holds no lock of its own: the owner calls remaining() and mark_dispatch()
    inside the same critical section as its dequeue.
    """

    def __init__(self, delay_s: float):
        self.delay_s = max(0.0, float(delay_s))
        self.last_dispatch_at: float | None = None

    def remaining(self) -> float:
        """Seconds until the next dispatch is allowed (0 if allowed now)."""
        if self.last_dispatch_at is None:
            return 0.0
        wait = self.last_dispatch_at + self.delay_s - now()
        return wait if wait > 0 else 0.0

    def mark_dispatch(self) -> float:
        self.last_dispatch_at = now()
        return self.last_dispatch_at


__all__ = ["PacingClock", "now", "sleep"]
