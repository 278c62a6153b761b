"""Checkout controller: user actions on one participant's reservation.

The controller turns UI commands into reservation store mutations and, on
every tick, recomputes progress and records the milestones that were
crossed. It also applies the auto-refund that follows a missed goal.

Reservation status machine driven here:
    pending --card payment / manual transfer confirmation--> confirmed
    pending | confirmed --refund inside window / missed goal--> refunded (payment detached)

``assigned`` is reserved for an external allocation process and is never
produced by this controller.
"""

import functools
import logging
import secrets
import string
import threading
from datetime import datetime
from typing import List, Optional

from .clock import Clock, PeriodicTicker, SystemClock, to_epoch_ms
from .event_log import EventLog
from .exceptions import GuardRejected
from .progress import (
    compute_progress,
    format_countdown,
    is_refund_window_open,
    time_to_deadline,
)
from .reservations import ReservationStore
from .schemas import (
    CheckoutView,
    EventRecord,
    PaymentDraft,
    ReservationPayment,
    ReservationRecord,
    RoundContext,
    RoundProgress,
)
from .schemas.base import PaymentMethod, ReservationStatus, RoundStatus
from .settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

REFERENCE_PREFIXES = {
    "card": "pi_mock",
    "transfer": "trf",
}


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_mock_reference(prefix: str, now: datetime) -> str:
    """Mock transaction id such as ``pi_mock_lx3k9q2a7fz``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{prefix}_{_to_base36(to_epoch_ms(now))}{suffix}"


def serialized(method):
    """Run a controller method under the controller lock.

    Commands and the periodic tick (on a timer thread) never interleave.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class CheckoutController:
    """Orchestrates one participant's checkout for one round.

    Example:
        controller = CheckoutController("torre-marina", ctx, store, log, clock=clock)
        controller.set_slots(3)
        controller.open_payment()
        controller.select_payment_method("transfer")
        controller.submit_payment()        # reservation stays pending
        controller.confirm_payment()       # reservation and payment confirmed
        view = controller.tick()
    """

    def __init__(
        self,
        round_id: str,
        context: RoundContext,
        store: ReservationStore,
        event_log: EventLog,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
        default_slots: Optional[int] = None,
    ):
        self.round_id = round_id
        self.context = context
        self.store = store
        self.event_log = event_log
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.default_slots = self.settings.default_slots if default_slots is None else default_slots

        self._last_status: Optional[RoundStatus] = None
        self._draft: Optional[PaymentDraft] = None
        self._notifications: List[EventRecord] = []
        self._ticker: Optional[PeriodicTicker] = None
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def reservation(self) -> ReservationRecord:
        return self.store.get(self.round_id, default_slots=self.default_slots)

    @property
    def payment_draft(self) -> Optional[PaymentDraft]:
        return self._draft

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self.clock.now()

    def progress(self, now: Optional[datetime] = None) -> RoundProgress:
        return compute_progress(self.context, self.reservation, self._now(now))

    @serialized
    def view(self, now: Optional[datetime] = None) -> CheckoutView:
        """Derived state for rendering, without side effects."""
        now = self._now(now)
        record = self.reservation
        remaining = time_to_deadline(self.context.deadline, now)
        return CheckoutView(
            round_id=self.round_id,
            progress=compute_progress(self.context, record, now),
            reservation=record,
            total_deposit=self.context.deposit_amount * record.slots,
            countdown=format_countdown(remaining),
            seconds_to_deadline=int(remaining.total_seconds()),
            refund_window_open=is_refund_window_open(
                self.context.deadline, now, self.settings.refund_window_hours
            ),
        )

    @serialized
    def render(self, context: RoundContext, now: Optional[datetime] = None) -> CheckoutView:
        """Replace the round context (fresh per render) and recompute."""
        self.context = context
        return self.tick(now)

    # -------------------------------------------------------------------------
    # Reservation commands
    # -------------------------------------------------------------------------

    @serialized
    def set_slots(self, slots) -> ReservationRecord:
        return self.store.set_slots(self.round_id, slots)

    @serialized
    def set_status(self, status: ReservationStatus) -> ReservationRecord:
        return self.store.set_status(self.round_id, status)

    @serialized
    def reset(self) -> ReservationRecord:
        self._draft = None
        return self.store.reset(self.round_id)

    # -------------------------------------------------------------------------
    # Payment step
    # -------------------------------------------------------------------------

    @serialized
    def open_payment(self) -> Optional[PaymentDraft]:
        """Open (or reopen) the payment step with fresh mock references.

        Returns None when the reservation holds no slots or is already
        refunded or assigned.
        """
        record = self.reservation
        try:
            self._check_payable(record, "open_payment")
        except GuardRejected as e:
            logger.debug("%s", e)
            return None

        now = self.clock.now()
        self._draft = PaymentDraft(
            references={
                method: generate_mock_reference(prefix, now)
                for method, prefix in REFERENCE_PREFIXES.items()
            },
            selected_method=record.payment.method if record.payment else "card",
        )
        return self._draft

    @serialized
    def select_payment_method(self, method: PaymentMethod) -> Optional[PaymentDraft]:
        if self._draft is None:
            logger.debug("select_payment_method ignored: payment step is not open")
            return None
        self._draft.selected_method = method
        return self._draft

    @serialized
    def cancel_payment(self) -> None:
        self._draft = None

    @serialized
    def submit_payment(self) -> Optional[ReservationRecord]:
        """Persist the selected payment.

        Card payments confirm the payment and the reservation at once.
        Transfers are stored as pending and leave the reservation pending
        until confirm_payment() is called.
        """
        draft = self._draft
        try:
            if draft is None:
                raise GuardRejected("submit_payment", "payment step is not open")
            self._check_payable(self.reservation, "submit_payment")
        except GuardRejected as e:
            logger.debug("%s", e)
            return None

        method = draft.selected_method
        if method == "card":
            payment = ReservationPayment(method="card", tx_id=draft.selected_reference, status="confirmed")
            status = "confirmed"
        else:
            payment = ReservationPayment(method="transfer", tx_id=draft.selected_reference, status="pending")
            status = "pending"

        record = self.store.set_payment(self.round_id, payment, status=status)
        self._draft = None
        logger.info("Payment %s submitted for round %s via %s", payment.tx_id, self.round_id, method)
        return record

    @serialized
    def confirm_payment(self) -> Optional[ReservationRecord]:
        """Manually reconcile a pending transfer."""
        record = self.reservation
        if record.payment is None or record.payment.status != "pending" or record.status != "pending":
            logger.debug("confirm_payment ignored for round %s: nothing pending", self.round_id)
            return None

        confirmed = record.payment.model_copy(update={"status": "confirmed"})
        return self.store.set_payment(self.round_id, confirmed, status="confirmed")

    def _check_payable(self, record: ReservationRecord, action: str) -> None:
        if record.slots <= 0:
            raise GuardRejected(action, "reservation holds no slots")
        if record.status in ("refunded", "assigned"):
            raise GuardRejected(action, f"reservation is {record.status}")

    # -------------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------------

    @serialized
    def request_refund(self, now: Optional[datetime] = None) -> bool:
        """Refund the reservation if the refund window is still open.

        The window runs until deadline + refund_window_hours. A request
        outside the window, or for a reservation that is already refunded
        or assigned, changes nothing and returns False.
        """
        now = self._now(now)
        record = self.reservation
        try:
            if record.status not in ("pending", "confirmed"):
                raise GuardRejected("request_refund", f"reservation is {record.status}")
            if not is_refund_window_open(self.context.deadline, now, self.settings.refund_window_hours):
                raise GuardRejected("request_refund", "refund window has closed")
        except GuardRejected as e:
            logger.debug("%s", e)
            return False

        self.store.refund(self.round_id)
        return True

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    @serialized
    def tick(self, now: Optional[datetime] = None) -> CheckoutView:
        """Recompute derived state, auto-refund on a missed goal and record milestones."""
        now = self._now(now)
        record = self.reservation
        progress = compute_progress(self.context, record, now)

        if (
            progress.round_status == "goal_missed"
            and self._last_status != "goal_missed"
            and record.status not in ("refunded", "assigned")
        ):
            logger.info("Round %s missed its goal; refunding reservation", self.round_id)
            record = self.store.refund(self.round_id)
            progress = compute_progress(self.context, record, now)

        self._record_milestones(progress, record, now)
        self._last_status = progress.round_status
        return self.view(now)

    def _record_milestones(self, progress: RoundProgress, record: ReservationRecord, now: datetime) -> None:
        remaining = time_to_deadline(self.context.deadline, now).total_seconds()
        warning = self.settings.deadline_warning_hours * 3600

        crossed = []
        if progress.progress_percent >= self.settings.progress_milestone_percent:
            crossed.append("progress_80")
        if 0 < remaining <= warning:
            crossed.append("deadline_72h")
        if progress.round_status == "goal_missed":
            crossed.append("goal_failed")
        if record.status == "confirmed":
            crossed.append("reservation_confirmed")
        if record.status == "refunded":
            crossed.append("reservation_refunded")

        for event_type in crossed:
            created = self.event_log.append(self.round_id, event_type)
            if created is not None:
                self._notifications.append(created)

    @serialized
    def drain_notifications(self) -> List[EventRecord]:
        """Milestones recorded by this controller since the last drain, oldest first."""
        pending, self._notifications = self._notifications, []
        return pending

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> "CheckoutController":
        """Start the periodic refresh tick."""
        if self._ticker is None:
            self._ticker = PeriodicTicker(self.settings.tick_interval_seconds, self.tick).start()
        return self

    def close(self) -> None:
        """Cancel the refresh tick. Safe to call more than once."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def __enter__(self) -> "CheckoutController":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
