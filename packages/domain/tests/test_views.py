"""Tests for the DataFrame views.

Tests cover:
- round_progress_frame row contents and refund window source
- milestone_ledger_frame filtering and ordering
- round_overview_frame joining progress with the ledger
"""

import pytest
import pandas as pd
from datetime import timedelta
from decimal import Decimal

from crowdround_domain import EngineSettings, ReservationPayment, ReservationRecord
from crowdround_domain.views import (
    milestone_ledger_frame,
    round_overview_frame,
    round_progress_frame,
)
import crowdround_domain.views.round_progress as round_progress_module

from conftest import START

DEADLINE = START + timedelta(days=10)


@pytest.fixture
def confirmed_record():
    return ReservationRecord(
        slots=5,
        status="confirmed",
        payment=ReservationPayment(method="card", tx_id="pi_mock_1", status="confirmed"),
        timestamp=0,
    )


@pytest.fixture
def events(event_log, clock):
    event_log.append("torre-marina", "progress_80", {"audience": "admin"})
    clock.advance(minutes=1)
    event_log.append("torre-marina", "reservation_confirmed")
    clock.advance(minutes=1)
    event_log.append("other-round", "goal_failed")
    return event_log.query()


# =============================================================================
# Round progress
# =============================================================================

def test_round_progress_frame(make_context, confirmed_record):
    ctx = make_context(raised_amount=Decimal("750"))
    df = round_progress_frame(ctx, confirmed_record, START)

    assert len(df) == 1
    row = df.iloc[0]
    assert row["progress_percent"] == 100
    assert row["round_status"] == "goal_met"
    assert row["contribution_amount"] == 250.0
    assert row["reservation_status"] == "confirmed"
    assert row["payment_method"] == "card"
    assert row["countdown"] == "10d 00:00:00"
    assert bool(row["refund_window_open"])


def test_round_progress_frame_without_payment(make_context):
    df = round_progress_frame(make_context(), ReservationRecord(slots=2), START)

    row = df.iloc[0]
    assert row["payment_method"] is None
    assert row["total_deposit"] == 100.0


def test_refund_window_follows_engine_settings(make_context, monkeypatch):
    monkeypatch.setattr(
        round_progress_module,
        "get_settings",
        lambda: EngineSettings(_env_file=None, refund_window_hours=1),
    )
    df = round_progress_frame(make_context(), ReservationRecord(slots=1), DEADLINE + timedelta(hours=2))

    assert not bool(df.iloc[0]["refund_window_open"])


def test_refund_window_override(make_context):
    record = ReservationRecord(slots=1)
    at = DEADLINE + timedelta(hours=47)

    assert bool(round_progress_frame(make_context(), record, at).iloc[0]["refund_window_open"])
    assert not bool(
        round_progress_frame(make_context(), record, at, refund_window_hours=24).iloc[0]["refund_window_open"]
    )


# =============================================================================
# Milestone ledger
# =============================================================================

def test_milestone_ledger_filters_and_sorts(events):
    df = milestone_ledger_frame(events, audience="buyer", round_id="torre-marina")

    assert list(df["type"]) == ["reservation_confirmed"]
    assert df["fired_at"].iloc[0] == pd.Timestamp(START + timedelta(minutes=1))


def test_milestone_ledger_unfiltered(events):
    df = milestone_ledger_frame(events)

    assert list(df["type"]) == ["goal_failed", "reservation_confirmed", "progress_80"]
    assert df["timestamp"].is_monotonic_decreasing


def test_milestone_ledger_empty():
    df = milestone_ledger_frame([])

    assert df.empty
    assert "fired_at" in df.columns


# =============================================================================
# Overview
# =============================================================================

def test_round_overview(make_context, confirmed_record, events):
    progress_df = round_progress_frame(make_context(raised_amount=Decimal("750")), confirmed_record, START)
    ledger_df = milestone_ledger_frame(events, round_id="torre-marina")

    row = round_overview_frame(progress_df, ledger_df).iloc[0]
    assert row["milestones_count"] == 2
    assert row["latest_milestone"] == "reservation_confirmed"
    assert row["round_status"] == "goal_met"


def test_round_overview_without_milestones(make_context):
    progress_df = round_progress_frame(make_context(), ReservationRecord(slots=1), START)
    row = round_overview_frame(progress_df, milestone_ledger_frame([])).iloc[0]

    assert row["milestones_count"] == 0
    assert row["latest_milestone"] is None
    assert pd.isna(row["latest_milestone_at"])
