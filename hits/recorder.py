"""
HitRecorder ties the pieces together for one badge request.

Only the log append is on the critical path. Visitor bookkeeping and the
broadcast are best-effort: their failures are logged and the hit still
counts. A hit that was not appended is never returned or broadcast.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from .broadcast import GLOBAL_TOPIC, Broadcaster, format_hit_message
from .errors import HitsError, StorageUnavailable
from .fingerprint import DEFAULT_WIDTH, VisitorDescriptor
from .hitlog import HitLog, display_path, resource_key, resource_path
from .visitors import VisitorRegistry

log = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HitRecorder:
    def __init__(
        self,
        hit_log: HitLog,
        visitors: VisitorRegistry,
        broadcaster: Broadcaster,
        topic: str = GLOBAL_TOPIC,
        fingerprint_width: int = DEFAULT_WIDTH,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.hit_log = hit_log
        self.visitors = visitors
        self.broadcaster = broadcaster
        self.topic = topic
        self.fingerprint_width = fingerprint_width
        self.clock = clock

    def record_hit(self, segments: Sequence[str], descriptor: VisitorDescriptor) -> int:
        """
        Record one hit on the badge at `segments` and return its count.

        Raises InvalidResource for unusable paths, StorageUnavailable or
        CorruptedLog when the log cannot be read or appended.
        """
        key = resource_key(segments)
        path = resource_path(segments)

        canonical = descriptor.canonical()
        fingerprint = descriptor.fingerprint(self.fingerprint_width)
        try:
            self.visitors.save(fingerprint, canonical)
        except StorageUnavailable:
            log.warning("Could not save visitor %s, counting the hit anyway", fingerprint, exc_info=True)

        now = self.clock()
        record = self.hit_log.append_next(key, path, fingerprint, int(now.timestamp() * 1000))

        message = format_hit_message(now, display_path(segments), record.count, fingerprint)
        try:
            self.broadcaster.publish(self.topic, message)
        except Exception:
            log.exception("Broadcast of %s #%d failed", key, record.count)

        return record.count

    def fallback_count(self, segments: Sequence[str]) -> int | None:
        """
        Last known count for the badge, for when record_hit failed.
        """
        try:
            return self.hit_log.last_count(resource_key(segments))
        except HitsError:
            return None
