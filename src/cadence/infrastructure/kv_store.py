"""
Key-value storage adapters.

Keys such as ``deck:biology`` map to ``<root>/deck/biology.json``: the part
before the first colon names a subdirectory. Anything that is not
filename-safe is percent-escaped.
"""

import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from cadence.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


class FileKeyValueStore(KeyValueStore):
    """One UTF-8 file per key under a root directory. Writes are atomic (rename)."""

    def __init__(self, root: Path, suffix: str = ".json"):
        self.root = Path(root)
        self.suffix = suffix

    def path_for(self, key: str) -> Path:
        namespace, sep, name = key.partition(":")
        if not sep:
            return self.root / f"{quote(key, safe='')}{self.suffix}"
        return self.root / quote(namespace, safe="") / f"{quote(name, safe='')}{self.suffix}"

    def load(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def save(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=self.suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {path}")

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.data.get(key)

    def save(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
