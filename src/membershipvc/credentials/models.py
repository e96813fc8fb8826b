# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential records and identifier derivation.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CredentialStatus(str, Enum):
    """Lifecycle state of a credential as seen at a given instant.

    ``EXPIRED`` is derived from the clock, never stored.
    """

    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class CredentialRecord(BaseModel):
    """A membership credential bound to the hash of its image evidence.

    Attributes:
        credential_id: Lookup key derived by ``derive_credential_id``.
        image_hash: 32-byte image digest as lowercase hex.
        holder: Principal holding the membership.
        issuer: Principal that issued the credential.
        issued_at: Issuance time, truncated to whole seconds.
        expires_at: Expiry time; always later than ``issued_at``.
        active: Revocation flag; only ever goes from True to False.
        sequence: Ledger sequence number folded into the identifier, if any.
    """

    model_config = ConfigDict(frozen=True)

    credential_id: str = Field(..., description="Deterministic credential identifier")
    image_hash: str = Field(..., description="Hex digest of the image evidence")
    holder: str
    issuer: str
    issued_at: datetime
    expires_at: datetime
    active: bool = True
    sequence: Optional[int] = Field(default=None, ge=1)

    def is_expired(self, at: datetime) -> bool:
        return at >= self.expires_at

    def is_valid_at(self, at: datetime) -> bool:
        """True iff the credential is unrevoked and unexpired at *at*."""
        return self.active and not self.is_expired(at)

    def status_at(self, at: datetime) -> CredentialStatus:
        if not self.active:
            return CredentialStatus.REVOKED
        if self.is_expired(at):
            return CredentialStatus.EXPIRED
        return CredentialStatus.ACTIVE

    def revoked(self) -> "CredentialRecord":
        """Copy of this record with the active flag cleared."""
        return self.model_copy(update={"active": False})


def derive_credential_id(
    image_hash: str,
    holder: str,
    issuer: str,
    issued_at: datetime,
    sequence: Optional[int] = None,
) -> str:
    """Compute the SHA-256 identifier of a credential.

    The digest covers the image hash, holder, issuer and issuance second.
    When *sequence* is given it is folded in as well, which keeps two
    issuances with identical inputs in the same second apart.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    data: dict[str, object] = {
        "image_hash": image_hash,
        "holder": holder,
        "issuer": issuer,
        "issued_at": int(issued_at.timestamp()),
    }
    if sequence is not None:
        data["sequence"] = sequence
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()
