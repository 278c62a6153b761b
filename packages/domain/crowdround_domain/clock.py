"""Time sources and the periodic refresh tick.

Everything time-dependent in the engine reads the current instant from an
injected Clock. Production code uses SystemClock; tests drive a ManualClock
forward explicitly instead of sleeping.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(instant: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds (naive values are UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return (instant - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


# =============================================================================
# Clocks
# =============================================================================

class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Deterministic clock that only moves when told to.

    Example:
        clock = ManualClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
        clock.advance(hours=73)
    """

    def __init__(self, start: datetime):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._now = instant

    def advance(self, delta: Optional[timedelta] = None, **kwargs) -> datetime:
        """Move forward by ``delta`` or by timedelta keyword arguments."""
        step = delta if delta is not None else timedelta(**kwargs)
        if step < timedelta(0):
            raise ValueError(f"ManualClock cannot move backwards (step={step})")
        self._now += step
        return self._now


# =============================================================================
# Periodic Ticker
# =============================================================================

class PeriodicTicker:
    """Calls ``callback`` every ``interval`` seconds until cancelled.

    Each tick re-arms a daemon ``threading.Timer``. ``cancel()`` stops the
    pending timer and guarantees no further callbacks are scheduled; the
    ticker is also a context manager that cancels on exit.

    Callbacks must not raise; an exception is logged and stops the ticker.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        with self._lock:
            return self._timer is not None and not self._cancelled

    def start(self) -> "PeriodicTicker":
        with self._lock:
            if self._timer is not None or self._cancelled:
                return self
            self._schedule()
        return self

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._run)
        self._timer.daemon = True
        self._timer.start()

    def _run(self) -> None:
        try:
            self.callback()
        except Exception:
            logger.exception("Tick callback failed, stopping ticker")
            self.cancel()
            return
        with self._lock:
            if not self._cancelled:
                self._schedule()

    def __enter__(self) -> "PeriodicTicker":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()
