"""Milestone event log.

An append-only, deduplicated ledger of one-time milestones, persisted as a
single JSON list kept sorted newest first:

    [{"id": "...", "roundId": "torre-marina", "type": "progress_80",
      "title": "...", "description": "...", "audience": "both",
      "timestamp": 1718000000000}, ...]

At most one record exists per (round_id, type). Appending a milestone that
already fired is a no-op, which is what makes repeated ticks harmless.
"""

import logging
import threading
import uuid
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .clock import Clock, SystemClock, to_epoch_ms
from .exceptions import CorruptPersistedState
from .schemas import EventRecord, EventOverrides, MILESTONE_TEMPLATES
from .schemas.base import EventAudience, EventType
from .settings import get_settings
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

_DOCUMENT = TypeAdapter(List[EventRecord])


def sort_newest_first(events: List[EventRecord]) -> List[EventRecord]:
    return sorted(events, key=lambda e: e.timestamp, reverse=True)


class EventLog:
    """Deduplicated milestone ledger.

    Example:
        log = EventLog(InMemoryStorage())
        log.append("torre-marina", "progress_80")   # -> EventRecord
        log.append("torre-marina", "progress_80")   # -> None (already fired)
        log.query(audience="buyer", round_id="torre-marina")
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Optional[Clock] = None,
        key: Optional[str] = None,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.key = key or get_settings().event_log_key
        self._lock = threading.RLock()

    def _decode(self, raw: str) -> List[EventRecord]:
        try:
            return _DOCUMENT.validate_json(raw)
        except ValidationError as e:
            raise CorruptPersistedState(self.key, f"{e.error_count()} validation error(s)") from e

    def _read(self) -> List[EventRecord]:
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return []
            return self._decode(raw)
        except CorruptPersistedState as e:
            logger.warning("%s; treating event log as empty", e)
            return []

    def _write(self, events: List[EventRecord]) -> None:
        self.storage.set(self.key, _DOCUMENT.dump_json(events, by_alias=True).decode("utf-8"))

    def has(self, round_id: str, event_type: EventType) -> bool:
        return any(e.round_id == round_id and e.type == event_type for e in self._read())

    def append(
        self,
        round_id: str,
        event_type: EventType,
        overrides: Optional[Union[EventOverrides, dict]] = None,
    ) -> Optional[EventRecord]:
        """Record a milestone unless it already fired for this round.

        Args:
            round_id: Round the milestone belongs to
            event_type: One of the five milestone kinds
            overrides: Optional title/description/audience replacing the template

        Returns:
            The new EventRecord, or None when (round_id, event_type) already exists
        """
        if event_type not in MILESTONE_TEMPLATES:
            raise ValueError(f"Unknown milestone type: {event_type!r}")

        if overrides is None:
            overrides = EventOverrides()
        elif isinstance(overrides, dict):
            overrides = EventOverrides.model_validate(overrides)

        template = MILESTONE_TEMPLATES[event_type]
        with self._lock:
            events = self._read()
            if any(e.round_id == round_id and e.type == event_type for e in events):
                logger.debug("Milestone %s already recorded for round %s", event_type, round_id)
                return None

            record = EventRecord(
                id=str(uuid.uuid4()),
                round_id=round_id,
                type=event_type,
                title=overrides.title if overrides.title is not None else template.title,
                description=overrides.description if overrides.description is not None else template.description,
                audience=overrides.audience if overrides.audience is not None else template.audience,
                timestamp=to_epoch_ms(self.clock.now()),
            )
            self._write(sort_newest_first(events + [record]))
        logger.info("Milestone %s recorded for round %s", event_type, round_id)
        return record

    def query(
        self,
        audience: Optional[EventAudience] = None,
        round_id: Optional[str] = None,
    ) -> List[EventRecord]:
        """Events visible to ``audience`` for ``round_id``, newest first.

        Either filter may be omitted. Records addressed to ``both`` match
        every audience filter.
        """
        matches = [
            e for e in self._read()
            if e.visible_to(audience) and (round_id is None or e.round_id == round_id)
        ]
        return sort_newest_first(matches)

    def clear(self) -> None:
        with self._lock:
            self.storage.remove(self.key)
