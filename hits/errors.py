"""
Errors raised by the hit-counting core.

Callers of HitRecorder.record_hit catch HitsError and decide how to degrade;
the web layer still serves a badge.
"""


class HitsError(Exception):
    """Base class for everything the counting core raises."""


class StorageUnavailable(HitsError):
    """A log, lock or visitor file could not be read or written."""


class CorruptedLog(HitsError):
    """The last record of a resource log does not parse."""

    def __init__(self, key: str, line: str, reason: str = "malformed record"):
        self.key = key
        self.line = line
        self.reason = reason
        super().__init__(f"{key}: {reason}: {line!r}")


class InvalidResource(HitsError, ValueError):
    """Path segments that cannot be turned into a resource key."""
