"""Key-value persistence port.

The reservation store and the event log persist whole JSON documents under a
single key each. Any durable store works as long as it can get, set and
remove a string by key.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .exceptions import CorruptPersistedState

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Minimal string key-value store (the shape of browser localStorage)."""

    def get(self, key: str) -> Optional[str]:
        """Stored text, or None. Raises CorruptPersistedState if unreadable."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryStorage:
    """Dict-backed storage, mainly for tests and single-process use."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """One ``<key>.json`` file per key inside ``directory``.

    Writes go to a temporary sibling file first and are moved into place,
    so a crash never leaves a half-written document behind.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CorruptPersistedState(key, f"not valid UTF-8 at byte {e.start}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
