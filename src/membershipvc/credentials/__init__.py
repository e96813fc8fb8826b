"""
Membership credentials: records, the ledger that issues and revokes them,
and the verification engine that answers validity queries.
"""

from .models import CredentialRecord, CredentialStatus, derive_credential_id
from .ledger import CredentialLedger
from .verifier import VerificationEngine

__all__ = [
    "CredentialLedger",
    "CredentialRecord",
    "CredentialStatus",
    "VerificationEngine",
    "derive_credential_id",
]
