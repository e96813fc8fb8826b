# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
In-Memory Storage Provider.

Dict-backed ledger storage. Contents vanish with the process, so use it
for tests, demos and as the base of the file backend.
"""

import fnmatch
from typing import Optional

from .provider import AbstractStorageProvider, StorageConfig


class MemoryStorageProvider(AbstractStorageProvider):
    """Process-local ledger storage.

    Args:
        config: Optional storage configuration (defaults to the memory backend).
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        super().__init__(config or StorageConfig(backend="memory"))
        self._data: dict[str, str] = {}
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def health_check(self) -> bool:
        return self._connected

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self._data

    async def mget(self, keys: list[str]) -> list[Optional[str]]:
        return [self._data.get(key) for key in keys]

    async def mset(self, mapping: dict[str, str]) -> bool:
        """Apply *mapping* in one ``dict.update``.

        No await happens during the update, so no reader on the event loop
        can observe a partially applied commit.
        """
        self._data.update(mapping)
        return True

    async def keys(self, pattern: str) -> list[str]:
        return [key for key in self._data if fnmatch.fnmatchcase(key, pattern)]
