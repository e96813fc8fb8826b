# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Membership Registry

Single entry point composing the ledger components over one storage
backend:

- ``AccessControlManager`` gates every mutating call
- ``CredentialLedger`` issues, stores and revokes credentials
- ``VerificationEngine`` answers read-only validity queries

Usage:
    from membershipvc import MembershipRegistry
    from membershipvc.storage import MemoryStorageProvider

    storage = MemoryStorageProvider()
    await storage.connect()

    registry = MembershipRegistry(storage)
    await registry.initialize("did:example:admin")

    credential_id = await registry.issue_membership(
        "did:example:admin", image_hash, "did:example:alice", expires_at
    )
    assert await registry.verify_membership(credential_id, image_hash)

The caller identity passed to mutating operations is supplied by the
hosting environment's authentication layer.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from membershipvc.config import RegistrySettings
from membershipvc.core.state import Clock, LedgerStore
from membershipvc.core.validation import ExpiryInput, ImageHashInput
from membershipvc.credentials import CredentialLedger, CredentialRecord, VerificationEngine
from membershipvc.events import EventBus, EventHandler
from membershipvc.exceptions import AuthorizationError
from membershipvc.governance import AccessControlManager, AuditTrail
from membershipvc.observability import MetricsCollector
from membershipvc.storage import AbstractStorageProvider, create_storage_provider

logger = logging.getLogger(__name__)


class MembershipRegistry:
    """Tamper-evident membership credential registry.

    Args:
        storage: Connected storage backend.
        namespace: Key namespace of this ledger inside the backend.
        unique_ids: Fold a sequence number into credential identifiers.
        bus: Event bus for committed events (in-memory bus by default).
        clock: Callable returning the current time (UTC).
        metrics: Prometheus collector (a private one by default).
    """

    def __init__(
        self,
        storage: AbstractStorageProvider,
        namespace: str = "default",
        *,
        unique_ids: bool = True,
        bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._storage = storage
        self.store = LedgerStore(storage, namespace=namespace, bus=bus, clock=clock)
        self.access = AccessControlManager(self.store)
        self.ledger = CredentialLedger(self.store, self.access, unique_ids=unique_ids)
        self.verifier = VerificationEngine(self.ledger, self.store)
        self.metrics = metrics or MetricsCollector()

    @classmethod
    async def open(
        cls,
        settings: RegistrySettings,
        *,
        bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "MembershipRegistry":
        """Connect the configured backend and return a ready registry.

        If ``settings.admin`` is set the ledger is initialized with it
        (a no-op when reopening a ledger created by the same admin).
        """
        storage = create_storage_provider(settings.storage)
        await storage.connect()
        registry = cls(
            storage,
            namespace=settings.namespace,
            unique_ids=settings.unique_ids,
            bus=bus,
            clock=clock,
            metrics=metrics,
        )
        if settings.admin:
            await registry.initialize(settings.admin)
        logger.debug(
            "Opened registry %r on %s storage", settings.namespace, settings.storage.backend
        )
        return registry

    async def close(self) -> None:
        await self._storage.disconnect()

    async def __aenter__(self) -> "MembershipRegistry":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Plumbing ──────────────────────────────────────────────

    @property
    def events(self) -> EventBus:
        return self.store.bus

    @property
    def audit(self) -> AuditTrail:
        return self.store.audit

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Subscribe *handler* to committed events matching *pattern*."""
        self.store.bus.subscribe(pattern, handler)

    @asynccontextmanager
    async def _guarded(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except AuthorizationError:
            self.metrics.record_denied(operation)
            raise

    async def _refresh_issuer_gauge(self) -> None:
        self.metrics.set_authorized_issuers(len(await self.access.list_issuers()))

    # ── Access control ────────────────────────────────────────

    async def initialize(self, admin: str) -> bool:
        """Fix the admin identity; it also becomes the first authorized issuer."""
        created = await self.access.initialize(admin)
        await self._refresh_issuer_gauge()
        return created

    async def get_admin(self) -> Optional[str]:
        return await self.access.get_admin()

    async def authorize_issuer(self, caller: str, issuer: str) -> None:
        async with self._guarded("authorize_issuer"):
            await self.access.authorize_issuer(caller, issuer)
        await self._refresh_issuer_gauge()

    async def revoke_issuer(self, caller: str, issuer: str) -> None:
        async with self._guarded("revoke_issuer"):
            await self.access.revoke_issuer(caller, issuer)
        await self._refresh_issuer_gauge()

    async def is_authorized_issuer(self, issuer: str) -> bool:
        return await self.access.is_authorized_issuer(issuer)

    async def list_issuers(self) -> list[str]:
        return await self.access.list_issuers()

    # ── Credentials ───────────────────────────────────────────

    async def issue_membership(
        self,
        caller: str,
        image_hash: ImageHashInput,
        holder: str,
        expires_at: ExpiryInput,
    ) -> str:
        async with self._guarded("issue_membership"):
            credential_id = await self.ledger.issue_membership(
                caller, image_hash, holder, expires_at
            )
        self.metrics.record_credential_issued(caller.strip())
        return credential_id

    async def revoke_membership(self, caller: str, credential_id: str) -> None:
        async with self._guarded("revoke_membership"):
            changed = await self.ledger.revoke_membership(caller, credential_id)
        if changed:
            self.metrics.record_credential_revoked()

    async def get_credential(self, credential_id: str) -> CredentialRecord:
        return await self.ledger.get_credential(credential_id)

    async def is_credential_active(self, credential_id: str) -> bool:
        return await self.ledger.is_credential_active(credential_id)

    async def list_credentials(
        self,
        holder: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> list[CredentialRecord]:
        return await self.ledger.list_credentials(holder=holder, issuer=issuer)

    async def get_statistics(self) -> dict[str, int]:
        return await self.ledger.get_statistics()

    # ── Verification ──────────────────────────────────────────

    async def verify_membership(self, credential_id: str, image_hash: ImageHashInput) -> bool:
        valid = await self.verifier.verify_membership(credential_id, image_hash)
        self.metrics.record_verification(valid)
        return valid
