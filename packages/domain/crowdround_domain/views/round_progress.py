"""Round progress view.

Turns (RoundContext, ReservationRecord, now) into the single-row DataFrame
the checkout widget and the admin round list render.
"""

from datetime import datetime
from typing import Optional
import pandas as pd

from ..progress import (
    compute_progress,
    format_countdown,
    is_refund_window_open,
    time_to_deadline,
)
from ..schemas import RoundContext, ReservationRecord
from ..settings import get_settings

ROUND_PROGRESS_COLUMNS = [
    "goal_type",
    "goal_value",
    "progress_value",
    "progress_percent",
    "round_status",
    "contribution_slots",
    "contribution_amount",
    "reservation_slots",
    "reservation_status",
    "payment_method",
    "payment_status",
    "total_deposit",
    "deadline",
    "countdown",
    "refund_window_open",
]


def round_progress_frame(
    ctx: RoundContext,
    record: ReservationRecord,
    now: datetime,
    refund_window_hours: Optional[int] = None,
) -> pd.DataFrame:
    """Progress, status, countdown and reservation snapshot for one participant.

    Args:
        ctx: RoundContext for this render
        record: the participant's ReservationRecord
        now: instant to evaluate against
        refund_window_hours: defaults to the engine setting

    Returns:
        DataFrame with a single row, columns ROUND_PROGRESS_COLUMNS
    """
    if refund_window_hours is None:
        refund_window_hours = get_settings().refund_window_hours

    progress = compute_progress(ctx, record, now)
    payment = record.payment

    row = {
        "goal_type": ctx.goal_type,
        "goal_value": float(ctx.goal_value),
        "progress_value": float(progress.progress_value),
        "progress_percent": progress.progress_percent,
        "round_status": progress.round_status,
        "contribution_slots": progress.contribution_slots,
        "contribution_amount": float(progress.contribution_amount),
        "reservation_slots": record.slots,
        "reservation_status": record.status,
        "payment_method": payment.method if payment else None,
        "payment_status": payment.status if payment else None,
        "total_deposit": float(ctx.deposit_amount * record.slots),
        "deadline": pd.Timestamp(ctx.deadline),
        "countdown": format_countdown(time_to_deadline(ctx.deadline, now)),
        "refund_window_open": is_refund_window_open(ctx.deadline, now, refund_window_hours),
    }

    return pd.DataFrame([row], columns=ROUND_PROGRESS_COLUMNS)
