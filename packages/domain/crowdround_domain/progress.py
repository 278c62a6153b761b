"""Progress engine: contribution, progress and round status.

Everything in this module is a pure function of its arguments. The
auto-refund that follows a missed goal is applied by the checkout
controller, which owns the reservation store.

Status decision (first match wins):
    1. progress_percent >= 100                                 -> goal_met
    2. partial rule and progress_percent >= threshold percent  -> partial_met
    3. now >= deadline                                         -> goal_missed
    4. otherwise                                               -> in_progress

goal_met is checked before the deadline, so a contribution that lands at or
after the deadline still counts as success.
"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from .schemas import RoundContext, ReservationRecord, RoundProgress
from .schemas.base import FundingRule, RoundStatus


def round_half_up(value: Union[Decimal, int, float]) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def contribution_slots(record: ReservationRecord) -> int:
    """Slots that count toward progress; a refunded reservation counts 0."""
    if record.status == "refunded":
        return 0
    return record.slots


def progress_percent(progress_value: Decimal, goal_value: Decimal) -> int:
    """Rounded percentage of the goal, clamped to 0..100."""
    percent = round_half_up(Decimal(progress_value) / Decimal(goal_value) * 100)
    return max(0, min(100, percent))


def decide_round_status(
    percent: int,
    funding_rule: FundingRule,
    partial_threshold: Decimal,
    deadline: datetime,
    now: datetime,
) -> RoundStatus:
    """Decide the round status from progress, funding rule and time."""
    if percent >= 100:
        return "goal_met"
    if funding_rule == "partial" and percent >= round_half_up(Decimal(partial_threshold) * 100):
        return "partial_met"
    if now >= deadline:
        return "goal_missed"
    return "in_progress"


def compute_progress(ctx: RoundContext, record: ReservationRecord, now: datetime) -> RoundProgress:
    """Compute the participant-inclusive progress of a round.

    Args:
        ctx: Round description for this render
        record: The participant's current reservation
        now: Instant to evaluate the deadline against

    Returns:
        RoundProgress with contribution, progress and status

    Raises:
        InvalidConfiguration: goal_value or deposit_amount is not positive

    Example:
        goal 1000 (amount), raised 750, deposit 50, 5 pending slots
        -> contribution 250, progress 1000, 100%, goal_met
    """
    ctx.ensure_valid()

    slots = contribution_slots(record)
    amount = ctx.deposit_amount * slots

    if ctx.goal_type == "reservations":
        value = Decimal(ctx.current_slots or 0) + slots
    else:
        value = ctx.raised_amount + amount

    percent = progress_percent(value, ctx.goal_value)
    status = decide_round_status(
        percent,
        ctx.funding_rule,
        ctx.partial_threshold,
        ctx.deadline,
        now,
    )

    return RoundProgress(
        contribution_slots=slots,
        contribution_amount=amount,
        progress_value=value,
        progress_percent=percent,
        round_status=status,
    )


# =============================================================================
# Deadline helpers
# =============================================================================

def time_to_deadline(deadline: datetime, now: datetime) -> timedelta:
    """Signed time left until the deadline (negative once it has passed)."""
    return deadline - now


def refund_window_closes_at(deadline: datetime, window_hours: int = 48) -> datetime:
    return deadline + timedelta(hours=window_hours)


def is_refund_window_open(deadline: datetime, now: datetime, window_hours: int = 48) -> bool:
    """Refunds are accepted while now <= deadline + window."""
    return now <= refund_window_closes_at(deadline, window_hours)


def format_countdown(remaining: timedelta) -> str:
    """Render time left as ``"{days}d HH:MM:SS"``, clamped at zero.

    >>> format_countdown(timedelta(days=2, hours=3, minutes=4, seconds=5))
    '2d 03:04:05'
    """
    total_seconds = max(0, int(remaining.total_seconds()))
    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{days}d {hours:02d}:{minutes:02d}:{seconds:02d}"
