"""Milestone ledger and round overview views."""

from typing import Iterable, Optional
import pandas as pd

from ..schemas import EventRecord
from ..schemas.base import EventAudience

MILESTONE_COLUMNS = [
    "id",
    "round_id",
    "type",
    "title",
    "description",
    "audience",
    "timestamp",
    "fired_at",
]


def milestone_ledger_frame(
    events: Iterable[EventRecord],
    audience: Optional[EventAudience] = None,
    round_id: Optional[str] = None,
) -> pd.DataFrame:
    """Milestones visible to ``audience`` for ``round_id``, newest first.

    ``fired_at`` is the timestamp as a UTC pandas Timestamp. Events with the
    same timestamp keep their incoming order.

    Example:
        milestone_ledger_frame(event_log.query(), audience="buyer", round_id="torre-marina")
    """
    rows = [
        {
            "id": e.id,
            "round_id": e.round_id,
            "type": e.type,
            "title": e.title,
            "description": e.description,
            "audience": e.audience,
            "timestamp": e.timestamp,
        }
        for e in events
        if e.visible_to(audience) and (round_id is None or e.round_id == round_id)
    ]

    if not rows:
        return pd.DataFrame(columns=MILESTONE_COLUMNS)

    df = pd.DataFrame(rows)
    df["fired_at"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
    df = df.sort_values("timestamp", ascending=False, kind="stable").reset_index(drop=True)
    return df[MILESTONE_COLUMNS]


def round_overview_frame(progress_df: pd.DataFrame, ledger_df: pd.DataFrame) -> pd.DataFrame:
    """Progress row plus milestones_count, latest_milestone and latest_milestone_at.

    latest_milestone is None and latest_milestone_at is NaT for an empty ledger.
    """
    overview = progress_df.copy()
    overview["milestones_count"] = len(ledger_df)
    if ledger_df.empty:
        overview["latest_milestone"] = None
        overview["latest_milestone_at"] = pd.NaT
    else:
        newest = ledger_df.iloc[0]
        overview["latest_milestone"] = newest["type"]
        overview["latest_milestone_at"] = newest["fired_at"]
    return overview
