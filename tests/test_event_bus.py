"""Tests for the event bus."""

from __future__ import annotations

import logging

from membershipvc.events import (
    ALL_EVENT_TYPES,
    EVENT_ISSUER_AUTHORIZED,
    EVENT_MEMBERSHIP_ISSUED,
    EVENT_MEMBERSHIP_REVOKED,
    Event,
    InMemoryEventBus,
)


class TestEvent:
    """Tests for the Event dataclass."""

    def test_event_creation(self) -> None:
        """Event creates with required fields and sensible defaults."""
        event = Event(event_type=EVENT_MEMBERSHIP_ISSUED, source="did:example:admin")
        assert event.event_type == "membership.issued"
        assert event.source == "did:example:admin"
        assert event.payload == {}
        assert event.timestamp.tzinfo is not None
        assert event.event_id.startswith("evt-")

    def test_event_ids_are_globally_unique(self) -> None:
        ids = {Event(event_type=EVENT_MEMBERSHIP_ISSUED, source="s").event_id for _ in range(100)}
        assert len(ids) == 100
        assert all(len(event_id) == len("evt-") + 32 for event_id in ids)

    def test_event_types(self) -> None:
        assert set(ALL_EVENT_TYPES) == {
            "membership.issued",
            "membership.revoked",
            "issuer.authorized",
            "issuer.revoked",
        }


class TestInMemoryEventBus:
    """Tests for the synchronous in-process event bus."""

    def test_emit_and_subscribe(self) -> None:
        bus = InMemoryEventBus()
        received: list[Event] = []
        bus.subscribe("membership.*", received.append)

        event = Event(event_type=EVENT_MEMBERSHIP_ISSUED, source="a")
        bus.emit(event)

        assert received == [event]

    def test_pattern_matching_glob(self) -> None:
        bus = InMemoryEventBus()
        membership: list[Event] = []
        everything: list[Event] = []
        bus.subscribe("membership.*", membership.append)
        bus.subscribe("*", everything.append)

        bus.emit(Event(event_type=EVENT_MEMBERSHIP_REVOKED, source="a"))
        bus.emit(Event(event_type=EVENT_ISSUER_AUTHORIZED, source="a"))

        assert [e.event_type for e in membership] == ["membership.revoked"]
        assert len(everything) == 2

    def test_unsubscribe(self) -> None:
        bus = InMemoryEventBus()
        received: list[Event] = []
        bus.subscribe("*", received.append)
        bus.subscribe("membership.*", received.append)
        assert len(bus) == 2

        bus.unsubscribe(received.append)
        assert len(bus) == 0
        bus.emit(Event(event_type=EVENT_MEMBERSHIP_ISSUED, source="a"))
        assert received == []

    def test_failing_handler_is_isolated(self, caplog) -> None:
        bus = InMemoryEventBus()
        received: list[Event] = []

        def broken(event: Event) -> None:
            raise RuntimeError("subscriber down")

        bus.subscribe("*", broken)
        bus.subscribe("*", received.append)

        with caplog.at_level(logging.ERROR, logger="membershipvc.events.bus"):
            bus.emit(Event(event_type=EVENT_MEMBERSHIP_ISSUED, source="a"))

        assert len(received) == 1
        assert "subscriber down" in caplog.text
