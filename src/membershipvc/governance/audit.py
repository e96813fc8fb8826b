# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Audit Trail

Durable, ordered, hash-chained log of every committed ledger event.

Entries are staged into the same atomic write batch as the state change
they describe, so the trail and the ledger can never disagree after a
crash. Each entry carries the hash of its predecessor; rewriting or
dropping any stored entry breaks ``verify_integrity()``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from pydantic import BaseModel, Field

from membershipvc.events import Event
from membershipvc.storage import AbstractStorageProvider

if TYPE_CHECKING:
    from membershipvc.core.keys import LedgerKeys


GENESIS_HASH = "0" * 64


class AuditEntry(BaseModel):
    """
    Single audit trail entry.

    Every entry is:
    - Sequenced (gap-free, starting at 1)
    - Timestamped with the commit time of its operation
    - Chained to the previous entry via hash
    """

    sequence: int = Field(..., ge=1)
    event_id: str
    event_type: str
    source: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    previous_hash: str = Field(default=GENESIS_HASH)
    entry_hash: str = Field(default="")

    def compute_hash(self) -> str:
        """Compute the SHA-256 hash of this entry's canonical fields.

        Returns:
            Hex-encoded SHA-256 digest.
        """
        data = {
            "sequence": self.sequence,
            "event_id": self.event_id,
            "event_type": self.event_type,
            "source": self.source,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "previous_hash": self.previous_hash,
        }
        canonical = json.dumps(data, sort_keys=True)
        return hashlib.sha256(canonical.encode()).hexdigest()

    def verify_hash(self) -> bool:
        """Check that ``entry_hash`` equals a fresh ``compute_hash()``."""
        return self.entry_hash == self.compute_hash()

    def to_event(self) -> Event:
        """Rebuild the bus event this entry recorded."""
        return Event(
            event_type=self.event_type,
            source=self.source,
            payload=dict(self.payload),
            timestamp=self.timestamp,
            event_id=self.event_id,
        )


class AuditTrail:
    """Persistent audit trail stored under a ledger's key namespace.

    Args:
        storage: Storage backend implementing ``AbstractStorageProvider``.
        keys: Key layout of the owning ledger.
    """

    def __init__(self, storage: AbstractStorageProvider, keys: "LedgerKeys") -> None:
        self._storage = storage
        self._keys = keys

    # ── Write path ────────────────────────────────────────────

    async def stage(self, events: list[Event], writes: dict[str, str]) -> list[AuditEntry]:
        """Chain *events* onto the trail and add their keys to *writes*.

        Must be called while the ledger writer lock is held; the head read
        here is only valid until the batch is committed.
        """
        if not events:
            return []

        count, last_hash = await self._head()
        entries: list[AuditEntry] = []
        for event in events:
            count += 1
            entry = AuditEntry(
                sequence=count,
                event_id=event.event_id,
                event_type=event.event_type,
                source=event.source,
                payload=event.payload,
                timestamp=event.timestamp,
                previous_hash=last_hash,
            )
            entry.entry_hash = entry.compute_hash()
            last_hash = entry.entry_hash
            writes[self._keys.audit_entry(count)] = entry.model_dump_json()
            entries.append(entry)

        writes[self._keys.audit_head()] = json.dumps(
            {"count": count, "last_hash": last_hash}, sort_keys=True
        )
        return entries

    async def _head(self) -> tuple[int, str]:
        raw = await self._storage.get(self._keys.audit_head())
        if raw is None:
            return 0, GENESIS_HASH
        head = json.loads(raw)
        return int(head["count"]), head["last_hash"]

    # ── Read path ─────────────────────────────────────────────

    async def count(self) -> int:
        """Number of committed entries."""
        count, _ = await self._head()
        return count

    async def head_hash(self) -> Optional[str]:
        """Hash of the newest entry, or ``None`` for an empty trail."""
        count, last_hash = await self._head()
        return last_hash if count else None

    async def entries(self, start: int = 1, limit: Optional[int] = None) -> list[AuditEntry]:
        """Read entries in commit order.

        Args:
            start: First sequence number to return (1-based).
            limit: Maximum number of entries, or ``None`` for all.

        Returns:
            List of ``AuditEntry`` instances ordered by sequence.
        """
        count = await self.count()
        start = max(start, 1)
        stop = count if limit is None else min(count, start + limit - 1)
        if stop < start:
            return []
        keys = [self._keys.audit_entry(seq) for seq in range(start, stop + 1)]
        raws = await self._storage.mget(keys)
        return [AuditEntry.model_validate_json(raw) for raw in raws if raw is not None]

    async def verify_integrity(self) -> tuple[bool, Optional[str]]:
        """Walk the whole chain and check sequence, links and hashes.

        Returns:
            A tuple of ``(is_valid, error_message)``.
        """
        count, last_hash = await self._head()
        entries = await self.entries()
        if len(entries) != count:
            return False, f"Entry count mismatch: head={count}, stored={len(entries)}"

        previous = GENESIS_HASH
        for expected_seq, entry in enumerate(entries, start=1):
            if entry.sequence != expected_seq:
                return False, f"Sequence gap at {expected_seq} (found {entry.sequence})"
            if entry.previous_hash != previous:
                return False, f"Broken chain link at entry {entry.sequence}"
            if not entry.verify_hash():
                return False, f"Hash mismatch at entry {entry.sequence}"
            previous = entry.entry_hash

        if count and previous != last_hash:
            return False, "Head hash does not match the last entry"
        return True, None

    async def replay(
        self,
        handler: Callable[[Event], Any],
        event_type: Optional[str] = None,
        start: int = 1,
    ) -> int:
        """Re-deliver recorded events, in order, to *handler*.

        Used to rebuild subscribers (indexes, notifiers) after a restart.

        Args:
            handler: Callable receiving each reconstructed ``Event``.
            event_type: Only replay entries of this exact type.
            start: First sequence number to replay.

        Returns:
            Number of events delivered.
        """
        delivered = 0
        for entry in await self.entries(start=start):
            if event_type is not None and entry.event_type != event_type:
                continue
            handler(entry.to_event())
            delivered += 1
        return delivered
