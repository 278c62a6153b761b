"""Shared fixtures: a manual clock, in-memory storage and a round factory."""

import threading
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from crowdround_domain import (
    CheckoutController,
    EngineSettings,
    EventLog,
    InMemoryStorage,
    ManualClock,
    ReservationStore,
    RoundContext,
)

START = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
ROUND_ID = "torre-marina"


class SlowStorage(InMemoryStorage):
    """Stalls the first write made off the main thread so a concurrent caller can race it."""

    def __init__(self):
        super().__init__()
        self.stalled = threading.Event()

    def set(self, key, value):
        if threading.current_thread() is not threading.main_thread() and not self.stalled.is_set():
            self.stalled.set()
            time.sleep(0.2)
        super().set(key, value)


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def settings():
    return EngineSettings(_env_file=None)


@pytest.fixture
def store(storage, clock):
    return ReservationStore(storage, clock=clock, key="sps_reservations")


@pytest.fixture
def event_log(storage, clock):
    return EventLog(storage, clock=clock, key="sps_event_log")


@pytest.fixture
def make_context():
    """Factory for RoundContext with a 1000 USD goal closing 10 days after START."""

    def _make(**overrides):
        fields = {
            "goal_type": "amount",
            "goal_value": Decimal("1000"),
            "raised_amount": Decimal("0"),
            "deposit_amount": Decimal("50"),
            "deadline": START + timedelta(days=10),
            "funding_rule": "all_or_nothing",
        }
        fields.update(overrides)
        return RoundContext(**fields)

    return _make


@pytest.fixture
def make_controller(store, event_log, clock, settings, make_context):
    """Factory for a CheckoutController on ROUND_ID."""

    def _make(context=None, default_slots=1, **context_overrides):
        ctx = context or make_context(**context_overrides)
        return CheckoutController(
            ROUND_ID,
            ctx,
            store,
            event_log,
            clock=clock,
            settings=settings,
            default_slots=default_slots,
        )

    return _make
