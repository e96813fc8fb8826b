"""Tests for the hash-chained audit trail."""

import json
from datetime import timedelta

import pytest

from conftest import ADMIN, ALICE, BOB, IMAGE_HASH, ISSUER
from membershipvc.events import (
    EVENT_ISSUER_AUTHORIZED,
    EVENT_MEMBERSHIP_ISSUED,
    EVENT_MEMBERSHIP_REVOKED,
    Event,
)
from membershipvc.governance import GENESIS_HASH, AuditEntry


@pytest.fixture
async def populated(registry, clock):
    """Registry with an authorization, two issuances and a revocation."""
    expires = clock.current + timedelta(days=1)
    first = await registry.issue_membership(ISSUER, IMAGE_HASH, ALICE, expires)
    clock.advance(seconds=1)
    await registry.issue_membership(ADMIN, IMAGE_HASH, BOB, expires)
    await registry.revoke_membership(ISSUER, first)
    return registry


class TestAuditEntry:
    def test_hash_covers_fields(self, clock):
        entry = AuditEntry(
            sequence=1,
            event_id="evt-1",
            event_type=EVENT_MEMBERSHIP_ISSUED,
            source=ISSUER,
            payload={"id": "x"},
            timestamp=clock.current,
        )
        entry.entry_hash = entry.compute_hash()
        assert entry.verify_hash()
        assert entry.previous_hash == GENESIS_HASH

        tampered = entry.model_copy(update={"payload": {"id": "y"}})
        assert not tampered.verify_hash()

    def test_to_event(self, clock):
        entry = AuditEntry(
            sequence=3,
            event_id="evt-3",
            event_type=EVENT_MEMBERSHIP_REVOKED,
            source=ADMIN,
            payload={"id": "abc"},
            timestamp=clock.current,
        )
        event = entry.to_event()
        assert isinstance(event, Event)
        assert event.event_id == "evt-3"
        assert event.payload == {"id": "abc"}
        assert event.timestamp == clock.current


class TestAuditTrail:
    @pytest.mark.asyncio
    async def test_records_every_committed_event(self, populated):
        entries = await populated.audit.entries()
        assert [e.event_type for e in entries] == [
            EVENT_ISSUER_AUTHORIZED,
            EVENT_MEMBERSHIP_ISSUED,
            EVENT_MEMBERSHIP_ISSUED,
            EVENT_MEMBERSHIP_REVOKED,
        ]
        assert [e.sequence for e in entries] == [1, 2, 3, 4]
        assert await populated.audit.count() == 4
        assert await populated.audit.head_hash() == entries[-1].entry_hash

    @pytest.mark.asyncio
    async def test_chain_links(self, populated):
        entries = await populated.audit.entries()
        assert entries[0].previous_hash == GENESIS_HASH
        for previous, entry in zip(entries, entries[1:]):
            assert entry.previous_hash == previous.entry_hash

    @pytest.mark.asyncio
    async def test_entries_window(self, populated):
        window = await populated.audit.entries(start=2, limit=2)
        assert [e.sequence for e in window] == [2, 3]
        assert await populated.audit.entries(start=10) == []

    @pytest.mark.asyncio
    async def test_empty_trail(self, bare_registry):
        assert await bare_registry.audit.count() == 0
        assert await bare_registry.audit.head_hash() is None
        assert await bare_registry.audit.entries() == []
        assert await bare_registry.audit.verify_integrity() == (True, None)

    @pytest.mark.asyncio
    async def test_entries_match_published_events(self, registry, clock):
        received = []
        registry.subscribe("*", received.append)
        await registry.issue_membership(ISSUER, IMAGE_HASH, ALICE, clock.current + timedelta(days=1))

        entry = (await registry.audit.entries())[-1]
        assert entry.event_id == received[0].event_id
        assert entry.payload == received[0].payload


class TestIntegrity:
    @pytest.mark.asyncio
    async def test_intact(self, populated):
        assert await populated.audit.verify_integrity() == (True, None)

    @pytest.mark.asyncio
    async def test_tampered_payload(self, populated, storage):
        key = populated.store.keys.audit_entry(2)
        data = json.loads(await storage.get(key))
        data["payload"]["holder"] = "did:example:forged"
        await storage.set(key, json.dumps(data))

        valid, error = await populated.audit.verify_integrity()
        assert not valid
        assert "Hash mismatch at entry 2" in error

    @pytest.mark.asyncio
    async def test_rehashed_entry_breaks_link(self, populated, storage):
        key = populated.store.keys.audit_entry(2)
        entry = AuditEntry.model_validate_json(await storage.get(key))
        forged = entry.model_copy(update={"source": "did:example:forged"})
        forged.entry_hash = forged.compute_hash()
        await storage.set(key, forged.model_dump_json())

        valid, error = await populated.audit.verify_integrity()
        assert not valid
        assert "Broken chain link at entry 3" in error

    @pytest.mark.asyncio
    async def test_dropped_entry(self, populated, storage):
        await storage.delete(populated.store.keys.audit_entry(4))
        valid, error = await populated.audit.verify_integrity()
        assert not valid
        assert "count mismatch" in error


class TestReplay:
    @pytest.mark.asyncio
    async def test_replay_all(self, populated):
        replayed = []
        assert await populated.audit.replay(replayed.append) == 4
        assert [e.event_type for e in replayed][0] == EVENT_ISSUER_AUTHORIZED

    @pytest.mark.asyncio
    async def test_replay_filtered(self, populated):
        replayed = []
        delivered = await populated.audit.replay(
            replayed.append, event_type=EVENT_MEMBERSHIP_ISSUED
        )
        assert delivered == 2
        assert {e.payload["holder"] for e in replayed} == {ALICE, BOB}

    @pytest.mark.asyncio
    async def test_replay_from_sequence(self, populated):
        replayed = []
        assert await populated.audit.replay(replayed.append, start=4) == 1
        assert replayed[0].event_type == EVENT_MEMBERSHIP_REVOKED
