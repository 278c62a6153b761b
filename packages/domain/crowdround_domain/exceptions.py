"""Exception hierarchy for the round engine.

Only InvalidConfiguration is meant to reach callers. The other two are
raised and absorbed inside the engine so that bad persisted data and
rejected guards degrade quietly.
"""


class CrowdRoundError(Exception):
    """Base class for all round engine errors."""
    pass


class InvalidConfiguration(CrowdRoundError):
    """A round context violates the caller contract (non-positive goal or deposit)."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be greater than zero, got {value!r}")


class CorruptPersistedState(CrowdRoundError):
    """A stored document could not be decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored document '{key}' is unreadable: {reason}")


class GuardRejected(CrowdRoundError):
    """An action was refused by a guard (refund window, empty reservation, ...)."""

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"{action} rejected: {reason}")
