"""Reservation store.

Persists one ReservationRecord per round in a single document:

    {"<roundId>": {"slots": 2, "status": "pending", "timestamp": 1718000000000,
                   "payment": {"method": "card", "txId": "pi_mock_...", "status": "confirmed"}}}

Every operation is a synchronous read-modify-write of the whole document,
serialized within one store instance. There is no merge across processes:
concurrent writers are last-write-wins. A document that
cannot be decoded is treated as an empty store and is overwritten by the
next write.
"""

import logging
import math
import threading
from typing import Dict, Optional

from pydantic import TypeAdapter, ValidationError

from .clock import Clock, SystemClock, to_epoch_ms
from .exceptions import CorruptPersistedState
from .progress import round_half_up
from .schemas import ReservationRecord, ReservationPayment
from .schemas.base import ReservationStatus
from .settings import get_settings
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

_DOCUMENT = TypeAdapter(Dict[str, ReservationRecord])


def normalize_slots(value) -> int:
    """Coerce user input to a non-negative whole slot count.

    Non-numeric and non-finite input becomes 0; halves round up.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, round_half_up(number))


class ReservationStore:
    """Keyed reservation records for one client.

    Example:
        store = ReservationStore(InMemoryStorage(), clock=ManualClock(start))
        store.get("torre-marina", default_slots=1)
        store.set_slots("torre-marina", 3)
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Optional[Clock] = None,
        key: Optional[str] = None,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.key = key or get_settings().reservations_key
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Document I/O
    # -------------------------------------------------------------------------

    def _decode(self, raw: str) -> Dict[str, ReservationRecord]:
        try:
            return _DOCUMENT.validate_json(raw)
        except ValidationError as e:
            raise CorruptPersistedState(self.key, f"{e.error_count()} validation error(s)") from e

    def _read(self) -> Dict[str, ReservationRecord]:
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return {}
            return self._decode(raw)
        except CorruptPersistedState as e:
            logger.warning("%s; treating reservation store as empty", e)
            return {}

    def _write(self, records: Dict[str, ReservationRecord]) -> None:
        self.storage.set(self.key, _DOCUMENT.dump_json(records, by_alias=True, exclude_none=True).decode("utf-8"))

    def _now_ms(self) -> int:
        return to_epoch_ms(self.clock.now())

    def _update(self, round_id: str, **changes) -> ReservationRecord:
        with self._lock:
            records = self._read()
            current = records.get(round_id) or ReservationRecord()
            updated = ReservationRecord.model_validate(
                {**dict(current), **changes, "timestamp": self._now_ms()}
            )
            records[round_id] = updated
            self._write(records)
        return updated

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def all(self) -> Dict[str, ReservationRecord]:
        """Every stored reservation, keyed by round id."""
        return self._read()

    def get(
        self,
        round_id: str,
        default_slots: int = 0,
        default_status: ReservationStatus = "pending",
    ) -> ReservationRecord:
        """Return the stored reservation, seeding and persisting defaults if absent."""
        with self._lock:
            records = self._read()
            stored = records.get(round_id)
            if stored is not None:
                return stored

            seeded = ReservationRecord(
                slots=normalize_slots(default_slots),
                status=default_status,
                timestamp=self._now_ms(),
            )
            records[round_id] = seeded
            self._write(records)
        logger.debug("Seeded reservation for round %s with %d slot(s)", round_id, seeded.slots)
        return seeded

    def set_slots(self, round_id: str, slots) -> ReservationRecord:
        return self._update(round_id, slots=normalize_slots(slots))

    def set_status(self, round_id: str, status: ReservationStatus) -> ReservationRecord:
        """Overwrite the status unconditionally."""
        record = self._update(round_id, status=status)
        logger.info("Reservation for round %s is now %s", round_id, status)
        return record

    def set_payment(
        self,
        round_id: str,
        payment: Optional[ReservationPayment],
        status: Optional[ReservationStatus] = None,
    ) -> ReservationRecord:
        """Attach, replace or (with None) detach the payment sub-record.

        When ``status`` is given it is written in the same update, so the
        payment and the reservation never disagree in storage.
        """
        if status is None:
            return self._update(round_id, payment=payment)
        record = self._update(round_id, payment=payment, status=status)
        logger.info("Reservation for round %s is now %s", round_id, status)
        return record

    def refund(self, round_id: str) -> ReservationRecord:
        """Mark the reservation refunded and detach its payment in one write."""
        record = self._update(round_id, status="refunded", payment=None)
        logger.info("Reservation for round %s is now refunded", round_id)
        return record

    def reset(self, round_id: str) -> ReservationRecord:
        """Restore the default record (0 slots, pending, no payment)."""
        with self._lock:
            records = self._read()
            fresh = ReservationRecord(timestamp=self._now_ms())
            records[round_id] = fresh
            self._write(records)
        return fresh

    def remove(self, round_id: str) -> None:
        with self._lock:
            records = self._read()
            if records.pop(round_id, None) is not None:
                self._write(records)
