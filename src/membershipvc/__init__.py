"""
MembershipVC - Tamper-evident membership credentials

Issuance · Verification · Revocation

Membership credentials are bound to the hash of their image evidence,
issued by authorized issuers under a single administrative identity, and
recorded in a durable ledger with a hash-chained audit trail.

Version: 0.1.0
"""

__version__ = "0.1.0"

# Registry
from .registry import MembershipRegistry
from .config import RegistrySettings

# Credentials
from .credentials import (
    CredentialLedger,
    CredentialRecord,
    CredentialStatus,
    VerificationEngine,
    derive_credential_id,
)

# Governance
from .governance import (
    AccessControlManager,
    AccessDecision,
    AuditEntry,
    AuditTrail,
)

# Events
from .events import (
    EVENT_ISSUER_AUTHORIZED,
    EVENT_ISSUER_REVOKED,
    EVENT_MEMBERSHIP_ISSUED,
    EVENT_MEMBERSHIP_REVOKED,
    Event,
    EventBus,
    InMemoryEventBus,
)

# Exceptions
from .exceptions import (
    MembershipVCError,
    ValidationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    InvariantViolation,
    StorageError,
    ConfigurationError,
)

__all__ = [
    # Version
    "__version__",
    # Registry
    "MembershipRegistry",
    "RegistrySettings",
    # Credentials
    "CredentialLedger",
    "CredentialRecord",
    "CredentialStatus",
    "VerificationEngine",
    "derive_credential_id",
    # Governance
    "AccessControlManager",
    "AccessDecision",
    "AuditEntry",
    "AuditTrail",
    # Events
    "EVENT_ISSUER_AUTHORIZED",
    "EVENT_ISSUER_REVOKED",
    "EVENT_MEMBERSHIP_ISSUED",
    "EVENT_MEMBERSHIP_REVOKED",
    "Event",
    "EventBus",
    "InMemoryEventBus",
    # Exceptions
    "MembershipVCError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "InvariantViolation",
    "StorageError",
    "ConfigurationError",
]
