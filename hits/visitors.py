"""
Fingerprint -> canonical descriptor store, one file per fingerprint under
<root>/agents/. Writes overwrite; nothing here ever deletes.
"""

import logging
import os
import re
import tempfile
from pathlib import Path

from .errors import StorageUnavailable

log = logging.getLogger(__name__)

_FINGERPRINT_RE = re.compile(r"^[0-9a-f]{1,64}$")


class VisitorRegistry:
    def __init__(self, root: str | os.PathLike):
        self.root = Path(root) / "agents"

    def path_for(self, fingerprint: str) -> Path:
        if not _FINGERPRINT_RE.match(fingerprint):
            raise ValueError(f"not a fingerprint: {fingerprint!r}")
        return self.root / fingerprint

    def save(self, fingerprint: str, canonical: str) -> None:
        """
        Create or replace the record for `fingerprint`.
        The new content is written to a temp file and moved into place, so
        a concurrent lookup sees either the old or the new descriptor.
        """
        path = self.path_for(fingerprint)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{fingerprint}.")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(canonical.encode("utf-8"))
                os.replace(tmp, path)
            except BaseException:
                try:
                    os.unlink(tmp)
                except FileNotFoundError:
                    pass
                raise
        except OSError as e:
            raise StorageUnavailable(f"cannot write visitor {fingerprint}: {e}") from e
        log.debug("Saved visitor %s", fingerprint)

    def lookup(self, fingerprint: str) -> str | None:
        try:
            path = self.path_for(fingerprint)
        except ValueError:
            return None
        try:
            return path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"cannot read visitor {fingerprint}: {e}") from e
