"""
Storage providers for MembershipVC.

Provides the abstract key-value interface the ledger is written against and
its memory, file and Redis implementations.
"""

from .provider import AbstractStorageProvider, StorageConfig
from .memory_provider import MemoryStorageProvider
from .file_provider import FileStorageProvider
from .redis_provider import RedisStorageProvider
from .factory import create_storage_provider

__all__ = [
    "AbstractStorageProvider",
    "StorageConfig",
    "MemoryStorageProvider",
    "FileStorageProvider",
    "RedisStorageProvider",
    "create_storage_provider",
]
