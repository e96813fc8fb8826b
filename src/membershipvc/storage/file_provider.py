# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
File-backed Storage Provider.

Keeps the key space in memory and persists a full JSON snapshot after every
write. Snapshots are written to a temporary file and moved into place with
``os.replace``, so a crash leaves either the previous or the new snapshot on
disk, never a partial one.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from membershipvc.exceptions import StorageError

from .memory_provider import MemoryStorageProvider
from .provider import StorageConfig

logger = logging.getLogger(__name__)


class FileStorageProvider(MemoryStorageProvider):
    """Durable single-process storage backed by a JSON snapshot file.

    Args:
        config: Storage configuration; ``config.path`` names the snapshot file.
    """

    def __init__(self, config: StorageConfig):
        super().__init__(config)
        if not config.path:
            raise StorageError("File storage backend requires a 'path'")
        self._path = Path(config.path)

    @property
    def path(self) -> Path:
        return self._path

    async def connect(self) -> None:
        """Load the snapshot from disk (if any) and mark the store connected."""
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise StorageError(f"Cannot read ledger snapshot {self._path}: {exc}") from exc
            if not isinstance(raw, dict):
                raise StorageError(f"Ledger snapshot {self._path} is not a JSON object")
            self._data = {str(k): str(v) for k, v in raw.items()}
            logger.debug("Loaded %d keys from %s", len(self._data), self._path)
        await super().connect()

    # Writes build the next state, persist it, then swap it in. A failed
    # disk write leaves both the file and the in-memory view untouched.

    async def set(self, key: str, value: str) -> bool:
        """Set a single value and persist."""
        return await self.mset({key: value})

    async def delete(self, key: str) -> bool:
        """Delete key and persist."""
        if key not in self._data:
            return False
        updated = dict(self._data)
        del updated[key]
        self._write_snapshot(updated)
        self._data = updated
        return True

    async def mset(self, mapping: dict[str, str]) -> bool:
        """Set multiple key-value pairs and persist them as one snapshot."""
        updated = dict(self._data)
        updated.update(mapping)
        self._write_snapshot(updated)
        self._data = updated
        return True

    def _write_snapshot(self, data: dict[str, str]) -> None:
        """Atomically replace the snapshot file with *data*."""
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Cannot write ledger snapshot {self._path}: {exc}") from exc
        logger.debug("Persisted %d keys to %s", len(data), self._path)
