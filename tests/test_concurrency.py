"""Concurrent mutations are serialized by the ledger writer lock."""

import asyncio
from datetime import timedelta

import pytest

from conftest import ADMIN, ALICE, IMAGE_HASH, ISSUER
from membershipvc import MembershipRegistry
from membershipvc.exceptions import ConflictError


class TestConcurrentIssuance:
    @pytest.mark.asyncio
    async def test_identical_issuances_all_succeed_with_unique_ids(self, registry, clock):
        expires = clock.current + timedelta(hours=1)
        ids = await asyncio.gather(*[
            registry.issue_membership(ISSUER, IMAGE_HASH, ALICE, expires) for _ in range(25)
        ])
        assert len(set(ids)) == 25
        records = await registry.list_credentials(holder=ALICE)
        assert sorted(r.sequence for r in records) == list(range(1, 26))
        assert await registry.audit.verify_integrity() == (True, None)

    @pytest.mark.asyncio
    async def test_legacy_identifiers_admit_exactly_one(self, storage, clock):
        registry = MembershipRegistry(storage, unique_ids=False, clock=clock)
        await registry.initialize(ADMIN)
        expires = clock.current + timedelta(hours=1)

        results = await asyncio.gather(
            *[registry.issue_membership(ADMIN, IMAGE_HASH, ALICE, expires) for _ in range(10)],
            return_exceptions=True,
        )
        issued = [r for r in results if isinstance(r, str)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(issued) == 1
        assert len(conflicts) == 9
        assert len(await registry.list_credentials()) == 1


class TestConcurrentMixedOperations:
    @pytest.mark.asyncio
    async def test_authorization_and_revocation_interleave_consistently(self, registry, clock):
        expires = clock.current + timedelta(hours=1)
        ids = [
            await registry.issue_membership(ISSUER, IMAGE_HASH, f"did:example:member-{i}", expires)
            for i in range(10)
        ]
        issuers = [f"did:example:issuer-{i}" for i in range(10)]

        await asyncio.gather(
            *[registry.revoke_membership(ADMIN, credential_id) for credential_id in ids],
            *[registry.authorize_issuer(ADMIN, issuer) for issuer in issuers],
            *[registry.verify_membership(credential_id, IMAGE_HASH) for credential_id in ids],
        )

        for credential_id in ids:
            assert not await registry.is_credential_active(credential_id)
        for issuer in issuers:
            assert await registry.is_authorized_issuer(issuer)

        entries = await registry.audit.entries()
        assert [e.sequence for e in entries] == list(range(1, len(entries) + 1))
        assert len(entries) == 1 + 10 + 10 + 10
        assert await registry.audit.verify_integrity() == (True, None)
