"""DataFrame views for round dashboards.

Architecture:
    Schemas (data models) → views (computation) → DataFrames (output)

Available views:
- round_progress_frame: progress, status and countdown for one participant
- milestone_ledger_frame: audience-filtered milestone events, newest first
- round_overview_frame: progress joined with milestone counts

Usage:
    from crowdround_domain.views import (
        round_progress_frame, milestone_ledger_frame, round_overview_frame,
    )

    progress_df = round_progress_frame(ctx, store.get("torre-marina"), clock.now())
    ledger_df = milestone_ledger_frame(event_log.query(), round_id="torre-marina")
    overview_df = round_overview_frame(progress_df, ledger_df)
"""

from .round_progress import ROUND_PROGRESS_COLUMNS, round_progress_frame
from .milestones import MILESTONE_COLUMNS, milestone_ledger_frame, round_overview_frame

__all__ = [
    "ROUND_PROGRESS_COLUMNS",
    "MILESTONE_COLUMNS",
    "round_progress_frame",
    "milestone_ledger_frame",
    "round_overview_frame",
]
