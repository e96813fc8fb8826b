# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Access Control Manager

Owns the administrator identity and the set of authorized issuers.

Authorization is a flat, single-admin hierarchy: the admin is fixed when
the ledger is initialized, is always an authorized issuer, and is the only
principal allowed to authorize or revoke other issuers.

Guards are plain functions returning an ``AccessDecision``; mutating
operations call ``enforce()`` on the decision at the top of their
transaction, so the check runs against the same snapshot as the write.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from membershipvc.core.validation import normalize_principal
from membershipvc.events import EVENT_ISSUER_AUTHORIZED, EVENT_ISSUER_REVOKED
from membershipvc.exceptions import (
    AuthorizationError,
    ConflictError,
    InvariantViolation,
    MembershipVCError,
    StorageError,
    ValidationError,
)

if TYPE_CHECKING:
    from membershipvc.core.state import LedgerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access guard.

    Attributes:
        allowed: Whether the operation may proceed.
        operation: Name of the guarded operation.
        reason: Why access was denied (``None`` when allowed).
        error: Exception type raised by ``enforce()`` on denial.
    """

    allowed: bool
    operation: str
    reason: Optional[str] = None
    error: type[MembershipVCError] = AuthorizationError

    @classmethod
    def allow(cls, operation: str) -> "AccessDecision":
        return cls(allowed=True, operation=operation)

    @classmethod
    def deny(
        cls,
        operation: str,
        reason: str,
        error: type[MembershipVCError] = AuthorizationError,
    ) -> "AccessDecision":
        return cls(allowed=False, operation=operation, reason=reason, error=error)

    def enforce(self) -> None:
        """Raise the decision's error if access was denied."""
        if not self.allowed:
            logger.warning("Denied %s: %s", self.operation, self.reason)
            raise self.error(self.reason or f"{self.operation} denied")


# ── Guards ────────────────────────────────────────────────────


def authenticate_caller(caller: object, operation: str) -> str:
    """Canonical form of *caller*; a malformed identity is denied, not invalid."""
    try:
        return normalize_principal(caller, "caller")
    except ValidationError as exc:
        logger.warning("Denied %s: %s", operation, exc)
        raise AuthorizationError(f"{operation} denied: {exc}") from exc


def require_admin(caller: str, admin: str, operation: str) -> AccessDecision:
    if caller != admin:
        return AccessDecision.deny(operation, f"{caller!r} is not the admin")
    return AccessDecision.allow(operation)


def require_authorized_issuer(caller: str, authorized: bool, operation: str) -> AccessDecision:
    if not authorized:
        return AccessDecision.deny(operation, f"{caller!r} is not an authorized issuer")
    return AccessDecision.allow(operation)


def require_issuer_or_admin(
    caller: str, issuer: str, admin: str, operation: str
) -> AccessDecision:
    if caller != issuer and caller != admin:
        return AccessDecision.deny(
            operation, f"{caller!r} is neither the credential's issuer nor the admin"
        )
    return AccessDecision.allow(operation)


def forbid_admin_target(target: str, admin: str, operation: str) -> AccessDecision:
    if target == admin:
        return AccessDecision.deny(
            operation,
            "the admin is always an authorized issuer and cannot be revoked",
            error=InvariantViolation,
        )
    return AccessDecision.allow(operation)


# ── Manager ───────────────────────────────────────────────────


class AccessControlManager:
    """Admin identity and issuer authorization set of one ledger.

    Args:
        store: Shared ledger state.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store
        self._keys = store.keys

    async def initialize(self, admin: str) -> bool:
        """Fix the admin identity and make it the first authorized issuer.

        Re-initializing with the same admin is a no-op, so a persisted
        ledger can be reopened with its original configuration.

        Returns:
            True if the ledger was initialized by this call.

        Raises:
            ValidationError: If *admin* is empty.
            ConflictError: If the ledger already has a different admin.
        """
        admin = normalize_principal(admin, "admin")
        async with self._store.transaction() as batch:
            existing = await self._store.get(self._keys.admin())
            if existing is not None:
                if existing != admin:
                    raise ConflictError(
                        f"ledger is already initialized with admin {existing!r}"
                    )
                return False
            batch.put(self._keys.admin(), admin)
            batch.put_json(self._keys.issuer(admin), True)
        logger.info("Initialized ledger %r with admin %s", self._keys.namespace, admin)
        return True

    async def get_admin(self) -> Optional[str]:
        """The admin identity, or ``None`` if the ledger is uninitialized."""
        return await self._store.get(self._keys.admin())

    async def require_initialized(self) -> str:
        """Return the admin identity or fail if the ledger has none."""
        admin = await self.get_admin()
        if admin is None:
            raise InvariantViolation("ledger has not been initialized with an admin")
        return admin

    async def is_authorized_issuer(self, issuer: str) -> bool:
        """Whether *issuer* may issue credentials. Never raises."""
        try:
            return await self.check_issuer(issuer)
        except (ValidationError, StorageError):
            logger.debug("Issuer lookup failed for %r", issuer, exc_info=True)
            return False

    async def check_issuer(self, issuer: str) -> bool:
        """Like ``is_authorized_issuer`` but lets lookup errors propagate."""
        issuer = normalize_principal(issuer, "issuer")
        admin, flag = await self._store.mget(
            [self._keys.admin(), self._keys.issuer(issuer)]
        )
        if admin is not None and issuer == admin:
            return True
        return flag is not None and json.loads(flag) is True

    async def authorize_issuer(self, caller: str, issuer: str) -> None:
        """Add *issuer* to the authorized set. Admin only, idempotent.

        Raises:
            AuthorizationError: If *caller* is not the admin.
            ValidationError: If *issuer* is empty.
        """
        async with self._store.transaction() as batch:
            admin = await self.require_initialized()
            caller = authenticate_caller(caller, "authorize_issuer")
            require_admin(caller, admin, "authorize_issuer").enforce()
            issuer = normalize_principal(issuer, "issuer")
            batch.put_json(self._keys.issuer(issuer), True)
            batch.emit(EVENT_ISSUER_AUTHORIZED, source=caller, payload={"issuer": issuer})
        logger.info("Authorized issuer %s", issuer)

    async def revoke_issuer(self, caller: str, issuer: str) -> None:
        """Remove *issuer* from the authorized set. Admin only, idempotent.

        Credentials already issued by *issuer* are unaffected.

        Raises:
            AuthorizationError: If *caller* is not the admin.
            InvariantViolation: If *issuer* is the admin.
            ValidationError: If *issuer* is empty.
        """
        async with self._store.transaction() as batch:
            admin = await self.require_initialized()
            caller = authenticate_caller(caller, "revoke_issuer")
            require_admin(caller, admin, "revoke_issuer").enforce()
            issuer = normalize_principal(issuer, "issuer")
            forbid_admin_target(issuer, admin, "revoke_issuer").enforce()
            batch.put_json(self._keys.issuer(issuer), False)
            batch.emit(EVENT_ISSUER_REVOKED, source=caller, payload={"issuer": issuer})
        logger.info("Revoked issuer %s", issuer)

    async def list_issuers(self) -> list[str]:
        """All currently authorized issuers, admin first."""
        admin = await self.get_admin()
        keys = await self._store.keys_matching(self._keys.issuer_pattern())
        flags = await self._store.mget(keys)
        issuers = sorted(
            self._keys.principal_from_issuer_key(key)
            for key, flag in zip(keys, flags)
            if flag is not None and json.loads(flag) is True
        )
        if admin is None:
            return issuers
        return [admin] + [issuer for issuer in issuers if issuer != admin]
