"""
Append-only hit logs, one file per resource.

Each line is

    <timestampMillis>|<resourcePath>|<fingerprint>|<count>

and the current count of a resource is the count on the physically last
line. Reading that line and appending the next one must happen as one unit
per resource, otherwise two concurrent hits read the same count and write a
duplicate. HitLog.locked() provides that unit with a per-key thread lock and
an flock on a per-key lock file (gunicorn workers are separate processes).
"""

import fcntl
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from .errors import CorruptedLog, InvalidResource, StorageUnavailable

log = logging.getLogger(__name__)

DELIMITER = "|"
EXTENSION = ".svg"
# lock file name "<key>.lock" must fit a 255-byte file name
MAX_KEY_BYTES = 255 - len(".lock")

_FORBIDDEN = ("|", "/", "\\", "\x00", "\r", "\n")


# -----------------------------------------------------------------------------
# Resource naming
# -----------------------------------------------------------------------------
def _check_segments(segments: Sequence[str]) -> list[str]:
    segments = list(segments)
    if not segments:
        raise InvalidResource("empty resource path")
    for seg in segments:
        if seg in ("", ".", ".."):
            raise InvalidResource(f"bad path segment {seg!r}")
        if any(ch in seg for ch in _FORBIDDEN):
            raise InvalidResource(f"path segment contains a reserved character: {seg!r}")
    return segments


def _strip_extension(segments: Sequence[str]) -> list[str]:
    segments = _check_segments(segments)
    last = segments[-1]
    if last.endswith(EXTENSION):
        last = last[: -len(EXTENSION)]
        if not last:
            raise InvalidResource("resource name is only an extension")
    return segments[:-1] + [last]


def resource_key(segments: Sequence[str]) -> str:
    """
    ["project", "badge.svg"] -> "project_badge"
    """
    key = "_".join(_strip_extension(segments))
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise InvalidResource(f"resource key longer than {MAX_KEY_BYTES} bytes")
    return key


def resource_path(segments: Sequence[str]) -> str:
    # as logged: extension kept
    return "/".join(_check_segments(segments))


def display_path(segments: Sequence[str]) -> str:
    # as broadcast: extension stripped
    return "/".join(_strip_extension(segments))


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class HitRecord:
    timestamp_ms: int
    resource_path: str
    fingerprint: str
    count: int

    def to_line(self) -> str:
        fields = [str(self.timestamp_ms), self.resource_path, self.fingerprint, str(self.count)]
        return DELIMITER.join(fields) + "\n"

    @classmethod
    def from_line(cls, line: str, key: str = "") -> "HitRecord":
        fields = line.rstrip("\r\n").split(DELIMITER)
        if len(fields) != 4:
            raise CorruptedLog(key, line, f"expected 4 fields, got {len(fields)}")
        ts, path, fingerprint, count = fields
        try:
            timestamp_ms = int(ts)
            count_value = int(count)
        except ValueError:
            raise CorruptedLog(key, line, "non-numeric timestamp or count") from None
        if count_value < 1:
            raise CorruptedLog(key, line, "count must be positive")
        return cls(timestamp_ms, path, fingerprint, count_value)


def _tail_line(f, chunk: int = 4096) -> bytes:
    """
    Last non-empty line of a binary file, read backwards from the end.
    """
    f.seek(0, os.SEEK_END)
    pos = f.tell()
    buf = b""
    while pos > 0:
        step = min(chunk, pos)
        pos -= step
        f.seek(pos)
        buf = f.read(step) + buf
        stripped = buf.rstrip(b"\r\n")
        if b"\n" in stripped:
            return stripped.rsplit(b"\n", 1)[1]
    return buf.rstrip(b"\r\n")


# -----------------------------------------------------------------------------
# Log store
# -----------------------------------------------------------------------------
class HitLog:
    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)
        self.lock_dir = self.root / "locks"
        # one lock per key, never shared between keys
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}.log"

    def _thread_lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """
        Exclusive section for one resource key, across threads and processes.
        """
        with self._thread_lock(key):
            try:
                self.lock_dir.mkdir(parents=True, exist_ok=True)
                f = open(self.lock_dir / f"{key}.lock", "ab")
            except OSError as e:
                raise StorageUnavailable(f"cannot open lock for {key}: {e}") from e
            with f:
                try:
                    fcntl.flock(f, fcntl.LOCK_EX)
                except OSError as e:
                    raise StorageUnavailable(f"cannot lock {key}: {e}") from e
                try:
                    yield
                finally:
                    fcntl.flock(f, fcntl.LOCK_UN)

    def _last_line(self, key: str) -> str | None:
        """
        None if the log does not exist, "" if it holds no records.
        """
        try:
            with open(self.path_for(key), "rb") as f:
                raw = _tail_line(f)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"cannot read log for {key}: {e}") from e
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise CorruptedLog(key, repr(raw), "last line is not UTF-8") from None

    def next_count(self, key: str) -> int:
        """
        Count the next hit on `key` gets. Only meaningful inside locked(key).
        """
        line = self._last_line(key)
        if line is None:
            return 1
        if not line:
            log.warning("Hit log for %s exists but holds no records, starting at 1", key)
            return 1
        return HitRecord.from_line(line, key).count + 1

    def append(self, key: str, record: HitRecord) -> None:
        """
        Append one record and fsync it before returning.
        """
        data = record.to_line().encode("utf-8")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(self.path_for(key), "ab") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageUnavailable(f"cannot append to log for {key}: {e}") from e

    def append_next(self, key: str, resource_path: str, fingerprint: str, timestamp_ms: int) -> HitRecord:
        with self.locked(key):
            record = HitRecord(timestamp_ms, resource_path, fingerprint, self.next_count(key))
            self.append(key, record)
        log.debug("Appended %s #%d", key, record.count)
        return record

    def last_count(self, key: str) -> int | None:
        """
        Current count without taking the lock; None when unknown.
        """
        try:
            line = self._last_line(key)
            if not line:
                return None
            return HitRecord.from_line(line, key).count
        except CorruptedLog:
            log.warning("Hit log for %s is corrupted, no last count", key)
            return None

    def records(self, key: str) -> Iterator[HitRecord]:
        try:
            with open(self.path_for(key), encoding="utf-8") as f:
                for line in f:
                    if line.strip():
                        yield HitRecord.from_line(line, key)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageUnavailable(f"cannot read log for {key}: {e}") from e
