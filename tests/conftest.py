"""Shared fixtures for the MembershipVC test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from membershipvc import MembershipRegistry
from membershipvc.observability import MetricsCollector
from membershipvc.storage import MemoryStorageProvider

ADMIN = "did:example:admin"
ISSUER = "did:example:issuer"
ALICE = "did:example:alice"
BOB = "did:example:bob"
MALLORY = "did:example:mallory"

IMAGE_HASH = "ab" * 32
OTHER_HASH = "cd" * 32

START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def storage():
    """Connected in-memory storage provider."""
    provider = MemoryStorageProvider()
    await provider.connect()
    yield provider
    await provider.disconnect()


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
async def registry(storage, clock, metrics):
    """Registry initialized with ADMIN and ISSUER authorized."""
    registry = MembershipRegistry(storage, namespace="test", clock=clock, metrics=metrics)
    await registry.initialize(ADMIN)
    await registry.authorize_issuer(ADMIN, ISSUER)
    return registry


@pytest.fixture
async def bare_registry(storage, clock):
    """Registry that has not been initialized."""
    return MembershipRegistry(storage, namespace="test", clock=clock)


def in_days(clock: FakeClock, days: int) -> datetime:
    return clock.current + timedelta(days=days)
