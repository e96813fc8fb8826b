# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Verification Engine

Stateless, read-only membership checks against the credential ledger.

``verify_membership`` answers a single yes/no question. An unknown
identifier, a revoked or expired credential and a hash mismatch all yield
the same ``False``, so callers cannot probe which identifiers exist.
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING

from membershipvc.core.validation import ImageHashInput, normalize_image_hash
from membershipvc.exceptions import MembershipVCError

if TYPE_CHECKING:
    from membershipvc.core.state import LedgerStore

    from .ledger import CredentialLedger

logger = logging.getLogger(__name__)


class VerificationEngine:
    """Evaluates membership validity. Holds no state of its own.

    Args:
        ledger: Credential ledger to read records from.
        store: Shared ledger state (for the clock).
    """

    def __init__(self, ledger: CredentialLedger, store: LedgerStore) -> None:
        self._ledger = ledger
        self._store = store

    async def verify_membership(self, credential_id: str, image_hash: ImageHashInput) -> bool:
        """Check that a credential is live and bound to *image_hash*.

        Returns True iff the record exists, is active, has not expired and
        its stored image hash equals *image_hash*. Never raises.
        """
        try:
            expected = normalize_image_hash(image_hash)
            record = await self._ledger.find(credential_id)
        except MembershipVCError:
            logger.debug("Verification input rejected for %s", credential_id, exc_info=True)
            return False
        if record is None:
            return False
        if not record.is_valid_at(self._store.now()):
            return False
        return hmac.compare_digest(record.image_hash, expected)
