"""
Unit tests for request statistics.
"""

import threading

import pytest

from tinyhttpd.stats import Stats, StatsSnapshot


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestStats:
    """Tests for the Stats counters."""

    def test_starts_at_zero(self):
        snapshot = Stats().snapshot()

        assert (snapshot.total, snapshot.active, snapshot.success, snapshot.error) == (0, 0, 0, 0)

    def test_request_lifecycle(self):
        stats = Stats()

        stats.record_request_start()
        in_flight = stats.snapshot()
        assert in_flight.total == 1
        assert in_flight.active == 1

        stats.record_request_end(success=True)
        done = stats.snapshot()
        assert done.total == 1
        assert done.active == 0
        assert done.success == 1
        assert done.error == 0

    def test_error_counted(self):
        stats = Stats()
        stats.record_request_start()
        stats.record_request_end(success=False)

        assert stats.snapshot().error == 1
        assert stats.snapshot().success == 0

    def test_uptime_uses_clock(self):
        clock = FakeClock(100.0)
        stats = Stats(clock=clock)

        clock.now = 112.34567
        assert stats.snapshot().uptime_seconds == pytest.approx(12.34567)
        assert stats.snapshot().to_dict()["uptime_seconds"] == 12.346

    def test_snapshot_is_a_copy(self):
        stats = Stats()
        before = stats.snapshot()
        stats.record_request_start()

        assert before.total == 0
        assert isinstance(before, StatsSnapshot)

    def test_to_dict_keys(self):
        assert list(Stats().snapshot().to_dict()) == [
            "total", "active", "success", "error", "uptime_seconds",
        ]

    def test_concurrent_updates_not_lost(self):
        """Many threads hammering the counters lose no updates."""
        stats = Stats()
        threads_count = 16
        per_thread = 500
        barrier = threading.Barrier(threads_count)

        def worker(index: int):
            barrier.wait()
            for i in range(per_thread):
                stats.record_request_start()
                stats.record_request_end(success=(i + index) % 2 == 0)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = stats.snapshot()
        assert snapshot.total == threads_count * per_thread
        assert snapshot.active == 0
        assert snapshot.success + snapshot.error == snapshot.total
        assert snapshot.success == snapshot.error

    def test_snapshot_consistent_while_busy(self):
        """total == success + error + active holds in every snapshot."""
        stats = Stats()
        stop = threading.Event()

        def worker():
            while not stop.is_set():
                stats.record_request_start()
                stats.record_request_end(success=True)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        try:
            for _ in range(1000):
                s = stats.snapshot()
                assert s.total == s.success + s.error + s.active
        finally:
            stop.set()
            for thread in threads:
                thread.join()
