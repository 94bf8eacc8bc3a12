"""
=============================================================================
REQUEST STATISTICS
=============================================================================

Four counters and a start time, shared by every connection thread.

=============================================================================
COUNTER LIFECYCLE
=============================================================================

    connection thread                        Stats
    ─────────────────                        ─────
    record_request_start()   ──────────►     total += 1, active += 1
          │
          ▼
    parse / dispatch / serialize
          │
          ▼
    record_request_end(ok)   ──────────►     active -= 1
                                             success += 1   (ok)
                                             error   += 1   (not ok)

    At any quiet moment:  total == success + error + active

=============================================================================
WHY A LOCK AND NOT JUST "+= 1"?
=============================================================================

``self.total += 1`` is a read, an add and a write. Two threads can both
read 41 and both write 42, losing a request. CPython's GIL makes this
rare but does not rule it out, so every mutation happens under one
threading.Lock.

snapshot() takes the same lock, so each individual snapshot is
internally consistent. It is still only a point-in-time view: by the
time the caller reads it, other threads may have moved on.

=============================================================================
INTERVIEW QUESTIONS ABOUT SHARED COUNTERS
=============================================================================

Q: "Why not a global?"
A: "Globals make tests order-dependent. Each server builds its own
   Stats and passes it to handlers through ServerContext, so two
   servers in one process (or two tests) never share counters."

Q: "Would one lock per counter be faster?"
A: "Marginally, but then a snapshot could see total updated and active
   not yet. One lock keeps the invariant above true inside a snapshot."

=============================================================================
"""

from dataclasses import dataclass
import threading
import time


@dataclass(frozen=True)
class StatsSnapshot:
    """A point-in-time copy of the counters."""

    total: int
    active: int
    success: int
    error: int
    uptime_seconds: float

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "active": self.active,
            "success": self.success,
            "error": self.error,
            "uptime_seconds": round(self.uptime_seconds, 3),
        }


class Stats:
    """
    Thread-safe request counters.

    Example:
        stats = Stats()
        stats.record_request_start()
        ...
        stats.record_request_end(success=response.is_success)
        stats.snapshot().total  # 1
    """

    def __init__(self, clock=time.monotonic):
        """
        Args:
            clock: Monotonic time source; injectable so tests can control
                   uptime.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._started_at = clock()

        self._total = 0
        self._active = 0
        self._success = 0
        self._error = 0

    def record_request_start(self) -> None:
        """A request has arrived and is now in flight."""
        with self._lock:
            self._total += 1
            self._active += 1

    def record_request_end(self, success: bool) -> None:
        """A request finished; ``success`` means its status was below 400."""
        with self._lock:
            self._active -= 1
            if success:
                self._success += 1
            else:
                self._error += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                total=self._total,
                active=self._active,
                success=self._success,
                error=self._error,
                uptime_seconds=self._clock() - self._started_at,
            )
