# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential Ledger

Durable mapping from credential identifier to credential record.

Lifecycle per credential::

    NonExistent --issue--> Active --revoke--> Revoked (terminal)

``Expired`` is not stored: an unrevoked record whose ``expires_at`` has
passed is reported as invalid by every query without touching ``active``.
Records are never deleted or overwritten.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Optional

from membershipvc.core.validation import (
    ExpiryInput,
    ImageHashInput,
    normalize_credential_id,
    normalize_expiry,
    normalize_image_hash,
    normalize_principal,
)
from membershipvc.events import EVENT_MEMBERSHIP_ISSUED, EVENT_MEMBERSHIP_REVOKED
from membershipvc.exceptions import (
    ConflictError,
    MembershipVCError,
    NotFoundError,
    ValidationError,
)
from membershipvc.governance.access import (
    AccessControlManager,
    authenticate_caller,
    require_authorized_issuer,
    require_issuer_or_admin,
)

from .models import CredentialRecord, derive_credential_id

if TYPE_CHECKING:
    from membershipvc.core.state import LedgerStore, WriteBatch

logger = logging.getLogger(__name__)


class CredentialLedger:
    """Issues, stores and revokes membership credentials.

    Args:
        store: Shared ledger state.
        access: Access control manager gating issuance and revocation.
        unique_ids: Fold a monotonic sequence number into every identifier.
            With ``False`` the identifier depends only on the image hash,
            holder, issuer and issuance second, and a repeat issuance in
            the same second is rejected with ``ConflictError``.
    """

    def __init__(
        self,
        store: LedgerStore,
        access: AccessControlManager,
        unique_ids: bool = True,
    ) -> None:
        self._store = store
        self._keys = store.keys
        self._access = access
        self.unique_ids = unique_ids

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def issue_membership(
        self,
        caller: str,
        image_hash: ImageHashInput,
        holder: str,
        expires_at: ExpiryInput,
    ) -> str:
        """Issue a membership credential to *holder*.

        Args:
            caller: Authenticated principal issuing the credential.
            image_hash: 32-byte digest of the image evidence (bytes or hex).
            holder: Principal receiving the membership.
            expires_at: Expiry instant; must be later than the issuance time.

        Returns:
            The new credential identifier.

        Raises:
            AuthorizationError: If *caller* is not an authorized issuer.
            ValidationError: On a zero or malformed hash, empty holder or
                non-future expiry.
            ConflictError: If the derived identifier is already taken.
        """
        async with self._store.transaction() as batch:
            await self._access.require_initialized()
            caller = authenticate_caller(caller, "issue_membership")
            authorized = await self._access.check_issuer(caller)
            require_authorized_issuer(caller, authorized, "issue_membership").enforce()

            image_hash = normalize_image_hash(image_hash)
            holder = normalize_principal(holder, "holder")
            expires_at = normalize_expiry(expires_at)
            now = batch.timestamp
            if expires_at <= now:
                raise ValidationError(
                    f"expires_at must be in the future (got {expires_at.isoformat()})"
                )

            issued_at = now.replace(microsecond=0)
            sequence = await self._next_sequence(batch) if self.unique_ids else None
            credential_id = derive_credential_id(
                image_hash, holder, caller, issued_at, sequence
            )
            if await self._store.get(self._keys.credential(credential_id)) is not None:
                raise ConflictError(f"credential {credential_id} already exists")

            record = CredentialRecord(
                credential_id=credential_id,
                image_hash=image_hash,
                holder=holder,
                issuer=caller,
                issued_at=issued_at,
                expires_at=expires_at,
                active=True,
                sequence=sequence,
            )
            batch.put(self._keys.credential(credential_id), record.model_dump_json())
            await self._append_index(batch, self._keys.holder_index(holder), credential_id)
            await self._append_index(batch, self._keys.issuer_index(caller), credential_id)
            batch.emit(
                EVENT_MEMBERSHIP_ISSUED,
                source=caller,
                payload={"id": credential_id, "holder": holder, "issuer": caller},
            )

        logger.info(
            "Issued credential %s to %s by %s (image %s…)",
            credential_id, holder, caller, image_hash[:12],
        )
        return credential_id

    async def revoke_membership(self, caller: str, credential_id: str) -> bool:
        """Permanently deactivate a credential.

        Allowed for the credential's issuer and for the admin. Revoking an
        already revoked credential succeeds without changing the record.

        Returns:
            True if this call moved the credential from active to revoked.

        Raises:
            NotFoundError: If no credential has this identifier.
            AuthorizationError: If *caller* is neither issuer nor admin.
        """
        async with self._store.transaction() as batch:
            admin = await self._access.require_initialized()
            caller = authenticate_caller(caller, "revoke_membership")
            record = await self.find(credential_id)
            if record is None:
                raise NotFoundError(f"credential {credential_id} not found")
            require_issuer_or_admin(
                caller, record.issuer, admin, "revoke_membership"
            ).enforce()

            changed = record.active
            if changed:
                batch.put(
                    self._keys.credential(record.credential_id),
                    record.revoked().model_dump_json(),
                )
            batch.emit(
                EVENT_MEMBERSHIP_REVOKED,
                source=caller,
                payload={"id": record.credential_id},
            )
        logger.info("Revoked credential %s by %s", record.credential_id, caller)
        return changed

    async def _next_sequence(self, batch: WriteBatch) -> int:
        current = await self._store.get(self._keys.sequence())
        sequence = (int(current) if current is not None else 0) + 1
        batch.put(self._keys.sequence(), str(sequence))
        return sequence

    async def _append_index(self, batch: WriteBatch, key: str, credential_id: str) -> None:
        ids = batch.writes.get(key)
        current = json.loads(ids) if ids is not None else await self._store.get_json(key)
        batch.put_json(key, (current or []) + [credential_id])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find(self, credential_id: str) -> Optional[CredentialRecord]:
        """Load a record, or ``None`` if the identifier is unknown or malformed."""
        try:
            credential_id = normalize_credential_id(credential_id)
        except ValidationError:
            return None
        raw = await self._store.get(self._keys.credential(credential_id))
        if raw is None:
            return None
        return CredentialRecord.model_validate_json(raw)

    async def get_credential(self, credential_id: str) -> CredentialRecord:
        """Return the full record for *credential_id*.

        Raises:
            NotFoundError: If no credential has this identifier.
        """
        record = await self.find(credential_id)
        if record is None:
            raise NotFoundError(f"credential {credential_id} not found")
        return record

    async def is_credential_active(self, credential_id: str) -> bool:
        """True iff the credential exists, is unrevoked and unexpired. Never raises."""
        try:
            record = await self.find(credential_id)
        except MembershipVCError:
            logger.debug("Status lookup failed for %s", credential_id, exc_info=True)
            return False
        return record is not None and record.is_valid_at(self._store.now())

    async def list_credentials(
        self,
        holder: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> list[CredentialRecord]:
        """List credentials, optionally filtered by holder and/or issuer.

        Returns:
            Records ordered by issuance (sequence, then time).
        """
        if holder is None and issuer is None:
            keys = await self._store.keys_matching(self._keys.credential_pattern())
        else:
            ids: Optional[list[str]] = None
            if holder is not None:
                holder = normalize_principal(holder, "holder")
                ids = await self._store.get_json(self._keys.holder_index(holder)) or []
            if issuer is not None:
                issuer = normalize_principal(issuer, "issuer")
                by_issuer = await self._store.get_json(self._keys.issuer_index(issuer)) or []
                if ids is None:
                    ids = by_issuer
                else:
                    issued = set(by_issuer)
                    ids = [i for i in ids if i in issued]
            keys = [self._keys.credential(credential_id) for credential_id in ids or []]

        raws = await self._store.mget(keys)
        records = [CredentialRecord.model_validate_json(raw) for raw in raws if raw is not None]
        records.sort(key=lambda r: (r.issued_at, r.sequence or 0, r.credential_id))
        return records

    async def get_statistics(self) -> dict[str, int]:
        """Counts of credentials by derived status."""
        now = self._store.now()
        stats = {"total": 0, "active": 0, "revoked": 0, "expired": 0}
        for record in await self.list_credentials():
            stats["total"] += 1
            stats[record.status_at(now).value] += 1
        return stats
