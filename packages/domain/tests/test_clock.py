"""Tests for clocks, epoch conversion and the periodic ticker."""

import threading
import time
import pytest
from datetime import datetime, timedelta, timezone

from crowdround_domain import ManualClock, PeriodicTicker, SystemClock
from crowdround_domain.clock import from_epoch_ms, to_epoch_ms

from conftest import START


def test_epoch_round_trip():
    ms = to_epoch_ms(START)
    assert ms == 1748779200000
    assert from_epoch_ms(ms) == START


def test_naive_datetimes_are_utc():
    assert to_epoch_ms(datetime(1970, 1, 1, 0, 0, 1)) == 1000


def test_system_clock_is_aware():
    assert SystemClock().now().tzinfo is not None


class TestManualClock:

    def test_advance(self):
        clock = ManualClock(START)
        assert clock.advance(hours=2) == START + timedelta(hours=2)
        assert clock.advance(timedelta(minutes=1)) == START + timedelta(hours=2, minutes=1)

    def test_cannot_go_backwards_with_advance(self):
        with pytest.raises(ValueError):
            ManualClock(START).advance(seconds=-1)

    def test_set_assumes_utc(self):
        clock = ManualClock(START)
        clock.set(datetime(2030, 1, 1))
        assert clock.now() == datetime(2030, 1, 1, tzinfo=timezone.utc)


class TestPeriodicTicker:

    def test_ticks_until_cancelled(self):
        fired = threading.Event()
        ticker = PeriodicTicker(0.01, fired.set)

        with ticker:
            assert fired.wait(timeout=2)
            assert ticker.running
        assert not ticker.running

    def test_cancel_before_start_prevents_ticks(self):
        calls = []
        ticker = PeriodicTicker(0.01, lambda: calls.append(1))
        ticker.cancel()
        ticker.start()
        assert not ticker.running
        assert calls == []

    def test_failing_callback_stops_ticker(self):
        done = threading.Event()

        def boom():
            done.set()
            raise RuntimeError("boom")

        ticker = PeriodicTicker(0.01, boom).start()
        assert done.wait(timeout=2)
        for _ in range(100):
            if not ticker.running:
                break
            time.sleep(0.01)
        assert not ticker.running

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            PeriodicTicker(0, lambda: None)
