# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Redis Storage Provider.

Ledger storage on a Redis server. Commits map to a single ``MSET`` so
other processes reading the same ledger never see half a transaction.
"""

from typing import Any, Optional
import logging

from membershipvc.exceptions import StorageError

from .provider import AbstractStorageProvider, StorageConfig

logger = logging.getLogger(__name__)


class RedisStorageProvider(AbstractStorageProvider):
    """
    Ledger storage on a shared Redis server.

    Features:
    - Connection pooling
    - Atomic multi-key commits via ``MSET``
    - Shared state across processes reading the same ledger

    Requires: redis package (``pip install membershipvc[storage]``)
    """

    def __init__(self, config: StorageConfig):
        super().__init__(config)
        self._client = None
        self._pool = None
        # Filled in on connect; redis is an optional dependency
        self._redis_errors: tuple[type[BaseException], ...] = ()

    async def connect(self) -> None:
        """Open the connection pool and check the server answers."""
        try:
            import redis.asyncio as aioredis
            from redis.exceptions import RedisError
        except ImportError:
            raise ImportError(
                "redis package is required for RedisStorageProvider. "
                "Install with: pip install membershipvc[storage]"
            )

        self._redis_errors = (RedisError, OSError)
        self._pool = aioredis.ConnectionPool(
            host=self.config.redis_host,
            port=self.config.redis_port,
            db=self.config.redis_db,
            password=self.config.redis_password,
            ssl=self.config.redis_ssl,
            max_connections=self.config.pool_size,
            socket_timeout=self.config.timeout_seconds,
            socket_connect_timeout=self.config.timeout_seconds,
            decode_responses=True,
        )

        self._client = aioredis.Redis(connection_pool=self._pool)

        try:
            await self._client.ping()
        except Exception as exc:
            raise StorageError(
                f"Cannot reach Redis at {self.config.redis_host}:{self.config.redis_port}: {exc}"
            ) from exc

    async def disconnect(self) -> None:
        """Close the client and its pool."""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()
        self._client = None
        self._pool = None

    async def health_check(self) -> bool:
        """Ping the server; False when unreachable or not connected."""
        try:
            if self._client:
                await self._client.ping()
                return True
        except Exception:
            logger.debug("Redis health check failed", exc_info=True)
        return False

    async def _call(self, command: str, *args: Any) -> Any:
        """Run a client command, surfacing Redis failures as ``StorageError``."""
        if self._client is None:
            raise StorageError("RedisStorageProvider is not connected")
        try:
            return await getattr(self._client, command)(*args)
        except self._redis_errors as exc:
            raise StorageError(f"Redis {command.upper()} failed: {exc}") from exc

    async def get(self, key: str) -> Optional[str]:
        """Committed value of *key*, or ``None``."""
        return await self._call("get", key)

    async def set(self, key: str, value: str) -> bool:
        return bool(await self._call("set", key, value))

    async def delete(self, key: str) -> bool:
        return await self._call("delete", key) > 0

    async def exists(self, key: str) -> bool:
        return await self._call("exists", key) > 0

    async def mget(self, keys: list[str]) -> list[Optional[str]]:
        """Values of *keys* in order (``MGET``)."""
        if not keys:
            return []
        return await self._call("mget", keys)

    async def mset(self, mapping: dict[str, str]) -> bool:
        """Commit *mapping* with a single atomic ``MSET``."""
        if not mapping:
            return True
        return bool(await self._call("mset", mapping))

    async def keys(self, pattern: str) -> list[str]:
        """Keys matching a glob-style *pattern*.

        Uses ``SCAN`` rather than ``KEYS`` so large ledgers do not block
        the server.
        """
        if self._client is None:
            raise StorageError("RedisStorageProvider is not connected")
        try:
            return [key async for key in self._client.scan_iter(match=pattern, count=500)]
        except self._redis_errors as exc:
            raise StorageError(f"Redis SCAN failed: {exc}") from exc
