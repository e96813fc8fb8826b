# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Ledger State

Shared access to the injected storage provider plus the single
serialization discipline every mutating ledger operation goes through.

Mutations run inside ``LedgerStore.transaction()``:

    async with store.transaction() as batch:
        ...checks against committed state...
        batch.put_json(key, value)
        batch.emit(EVENT_MEMBERSHIP_ISSUED, source=caller, payload={...})

The writer lock is held for the whole block, so the checks and the writes
observe one snapshot. On a clean exit the staged writes and their audit
entries are committed with one atomic ``mset`` and the events are then
published. If the block raises, nothing is written and nothing is emitted.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Optional

from membershipvc.events import Event, EventBus, InMemoryEventBus
from membershipvc.governance.audit import AuditTrail
from membershipvc.storage import AbstractStorageProvider

from .keys import LedgerKeys

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default ledger clock."""
    return datetime.now(timezone.utc)


@dataclass
class WriteBatch:
    """Writes and events staged by one mutating operation."""

    timestamp: datetime
    writes: dict[str, str] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)

    def put(self, key: str, value: str) -> None:
        self.writes[key] = value

    def put_json(self, key: str, value: Any) -> None:
        self.writes[key] = json.dumps(value, sort_keys=True, default=str)

    def emit(self, event_type: str, source: str, payload: dict[str, Any]) -> Event:
        event = Event(
            event_type=event_type,
            source=source,
            payload=payload,
            timestamp=self.timestamp,
        )
        self.events.append(event)
        return event

    def __bool__(self) -> bool:
        return bool(self.writes or self.events)


class LedgerStore:
    """Storage, clock, event bus and writer lock shared by the ledger components.

    Args:
        storage: Connected storage backend.
        namespace: Key namespace for this ledger.
        bus: Event bus receiving committed events.
        clock: Callable returning the current aware UTC datetime.
    """

    def __init__(
        self,
        storage: AbstractStorageProvider,
        namespace: str = "default",
        bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.storage = storage
        self.keys = LedgerKeys(namespace)
        self.bus = bus or InMemoryEventBus()
        self.clock = clock or utc_now
        self.audit = AuditTrail(storage, self.keys)
        self._writer = asyncio.Lock()
        self._high_water: Optional[datetime] = None

    def now(self) -> datetime:
        """Current ledger time as an aware UTC datetime.

        Never earlier than a previously returned value, so a clock stepping
        backwards cannot revive an expired credential.
        """
        current = self.clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        if self._high_water is None or current > self._high_water:
            self._high_water = current
        return self._high_water

    # ── Reads (lock-free, committed state) ────────────────────

    async def get(self, key: str) -> Optional[str]:
        return await self.storage.get(key)

    async def get_json(self, key: str) -> Any:
        raw = await self.storage.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def mget(self, keys: list[str]) -> list[Optional[str]]:
        if not keys:
            return []
        return await self.storage.mget(keys)

    async def keys_matching(self, pattern: str) -> list[str]:
        return await self.storage.keys(pattern)

    # ── Writes ────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[WriteBatch]:
        """Serialize a mutation and commit its batch atomically on success."""
        async with self._writer:
            batch = WriteBatch(timestamp=self.now())
            yield batch
            if batch:
                await self._commit(batch)

    async def _commit(self, batch: WriteBatch) -> None:
        entries = await self.audit.stage(batch.events, batch.writes)
        await self.storage.mset(batch.writes)
        logger.debug(
            "Committed %d keys and %d audit entries", len(batch.writes), len(entries)
        )
        for event in batch.events:
            self.bus.emit(event)
