# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""Build a storage provider from a ``StorageConfig``."""

from membershipvc.exceptions import StorageError

from .file_provider import FileStorageProvider
from .memory_provider import MemoryStorageProvider
from .provider import AbstractStorageProvider, StorageConfig
from .redis_provider import RedisStorageProvider

_BACKENDS: dict[str, type[AbstractStorageProvider]] = {
    "memory": MemoryStorageProvider,
    "file": FileStorageProvider,
    "redis": RedisStorageProvider,
}


def create_storage_provider(config: StorageConfig) -> AbstractStorageProvider:
    """Instantiate (but do not connect) the backend named by ``config.backend``."""
    provider_cls = _BACKENDS.get(config.backend)
    if provider_cls is None:
        raise StorageError(f"Unknown storage backend: {config.backend!r}")
    return provider_cls(config)
