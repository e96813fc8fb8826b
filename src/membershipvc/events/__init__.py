"""Ledger events: types, the Event record and the in-process bus."""

from .bus import (
    ALL_EVENT_TYPES,
    EVENT_ISSUER_AUTHORIZED,
    EVENT_ISSUER_REVOKED,
    EVENT_MEMBERSHIP_ISSUED,
    EVENT_MEMBERSHIP_REVOKED,
    Event,
    EventBus,
    EventHandler,
    InMemoryEventBus,
)

__all__ = [
    "ALL_EVENT_TYPES",
    "EVENT_ISSUER_AUTHORIZED",
    "EVENT_ISSUER_REVOKED",
    "EVENT_MEMBERSHIP_ISSUED",
    "EVENT_MEMBERSHIP_REVOKED",
    "Event",
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
]
