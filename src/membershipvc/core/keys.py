# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""Storage key layout for one ledger namespace."""

from __future__ import annotations


class LedgerKeys:
    """Builds every storage key used by a ledger.

    All keys share the ``vc:<namespace>:`` prefix so several independent
    ledgers can live in the same backend.
    """

    def __init__(self, namespace: str = "default") -> None:
        self.namespace = namespace
        self._prefix = f"vc:{namespace}:"

    # ── Access control ────────────────────────────────────────

    def admin(self) -> str:
        return f"{self._prefix}meta:admin"

    def issuer(self, principal: str) -> str:
        return f"{self._prefix}issuer:{principal}"

    def issuer_pattern(self) -> str:
        return f"{self._prefix}issuer:*"

    def principal_from_issuer_key(self, key: str) -> str:
        return key[len(self._prefix) + len("issuer:"):]

    # ── Credentials ───────────────────────────────────────────

    def sequence(self) -> str:
        return f"{self._prefix}meta:sequence"

    def credential(self, credential_id: str) -> str:
        return f"{self._prefix}credential:{credential_id}"

    def credential_pattern(self) -> str:
        return f"{self._prefix}credential:*"

    def holder_index(self, holder: str) -> str:
        return f"{self._prefix}index:holder:{holder}"

    def issuer_index(self, issuer: str) -> str:
        return f"{self._prefix}index:issuer:{issuer}"

    # ── Audit trail ───────────────────────────────────────────

    def audit_head(self) -> str:
        return f"{self._prefix}audit:head"

    def audit_entry(self, sequence: int) -> str:
        return f"{self._prefix}audit:entry:{sequence:012d}"
