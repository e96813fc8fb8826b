# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Abstract Storage Provider Interface.

The ledger is written against this flat string key-value contract. Values
are JSON documents or plain strings; ``mset`` is the only multi-key write
and doubles as the commit primitive for ledger transactions.
"""

from abc import ABC, abstractmethod
from typing import Literal, Optional
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Backend selection and connection settings for a ledger."""

    backend: Literal["memory", "file", "redis"] = Field(
        default="memory", description="Storage backend type"
    )
    path: Optional[str] = Field(default=None, description="Snapshot file for the file backend")
    pool_size: int = Field(default=10, ge=1, le=100, description="Redis connection pool size")
    timeout_seconds: int = Field(default=30, ge=1, le=300, description="Redis socket timeout")

    # Redis-specific
    redis_host: Optional[str] = Field(default="localhost")
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_db: int = Field(default=0, ge=0)
    redis_password: Optional[str] = None
    redis_ssl: bool = False


class AbstractStorageProvider(ABC):
    """
    Key-value backend holding one or more ledger namespaces.

    Implementations:
    - MemoryStorageProvider: process-local, for tests and development
    - FileStorageProvider: JSON snapshot on disk, single process
    - RedisStorageProvider: shared server, atomic ``MSET``
    """

    def __init__(self, config: StorageConfig):
        self.config = config

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend; must be awaited before any other call."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the backend."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Whether the backend is connected and answering."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Committed value of *key*, or ``None``."""

    @abstractmethod
    async def set(self, key: str, value: str) -> bool:
        """Write a single key."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*; False if it did not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def mget(self, keys: list[str]) -> list[Optional[str]]:
        """Values of *keys* in order, ``None`` for missing keys."""

    @abstractmethod
    async def mset(self, mapping: dict[str, str]) -> bool:
        """Write every key of *mapping* atomically.

        Either the whole mapping becomes visible or none of it does.
        Ledger transactions commit through this call.
        """

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """Keys matching a glob-style *pattern* (``vc:default:issuer:*``)."""
