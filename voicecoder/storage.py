"""Key-value persistence owned by the host.

The core only ever needs ``get`` and ``update``. Setting a key to ``None``
removes it.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

# Owner read/write only
FILE_MODE = 0o600


class KeyValueStore(Protocol):
    """Host-provided persistent storage."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    async def update(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """In-process store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    async def update(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(MemoryStore):
    """Store backed by a single JSON object on disk.

    The file is read once at construction and rewritten in full on every
    update (written to a sibling temp file, then renamed into place). The
    file is created owner-only (0600) since it may hold API keys.

    The write itself is synchronous: ``update`` changes memory and then
    writes a small file without yielding, so it never runs concurrently
    with another write and never hands work to a thread.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        super().__init__(self._read())

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open() as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    async def update(self, key: str, value: Any) -> None:
        await super().update(key, value)
        self._write()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
        with os.fdopen(fd, "w") as f:
            json.dump(self._data, f, indent=2)
        os.replace(tmp, self.path)
        logger.debug("Saved %d keys to %s", len(self._data), self.path)
