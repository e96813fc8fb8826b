# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Event bus for ledger audit events.

Committed ledger mutations are published here so that indexers, notifiers
and metrics can follow the ledger without polling. Subscriptions use
glob-style patterns over the event type (``membership.*``, ``*``).
"""

from __future__ import annotations

import fnmatch
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)


# Standard event types
EVENT_MEMBERSHIP_ISSUED = "membership.issued"
EVENT_MEMBERSHIP_REVOKED = "membership.revoked"
EVENT_ISSUER_AUTHORIZED = "issuer.authorized"
EVENT_ISSUER_REVOKED = "issuer.revoked"

ALL_EVENT_TYPES = [
    EVENT_MEMBERSHIP_ISSUED,
    EVENT_MEMBERSHIP_REVOKED,
    EVENT_ISSUER_AUTHORIZED,
    EVENT_ISSUER_REVOKED,
]


@dataclass
class Event:
    """An event emitted by the ledger after a committed mutation."""

    event_type: str
    source: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: f"evt-{uuid.uuid4().hex}")


EventHandler = Callable[[Event], Any]


class EventBus(ABC):
    """Abstract base class for event bus implementations."""

    @abstractmethod
    def emit(self, event: Event) -> None:
        """Emit an event to all matching subscribers."""

    @abstractmethod
    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Subscribe a handler to events matching a glob-style pattern.

        Args:
            pattern: Glob-style pattern (e.g., ``membership.*``, ``*``).
            handler: Callable invoked with the matching Event.
        """

    @abstractmethod
    def unsubscribe(self, handler: EventHandler) -> None:
        """Remove a handler from all subscriptions."""


class InMemoryEventBus(EventBus):
    """Synchronous in-process event bus with glob-style pattern matching.

    A handler that raises is logged and skipped; it never affects the
    ledger operation that produced the event or the other subscribers.
    """

    def __init__(self) -> None:
        self._subscriptions: list[tuple[str, EventHandler]] = []

    def emit(self, event: Event) -> None:
        for pattern, handler in list(self._subscriptions):
            if fnmatch.fnmatchcase(event.event_type, pattern):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Event handler %r failed for %s", handler, event.event_type
                    )

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscriptions.append((pattern, handler))

    def unsubscribe(self, handler: EventHandler) -> None:
        self._subscriptions = [
            (p, h) for p, h in self._subscriptions if h != handler
        ]

    def __len__(self) -> int:
        return len(self._subscriptions)
