"""
Governance: issuer authorization and the tamper-evident audit trail.
"""

from .audit import AuditEntry, AuditTrail, GENESIS_HASH
from .access import (
    AccessControlManager,
    AccessDecision,
    authenticate_caller,
    forbid_admin_target,
    require_admin,
    require_authorized_issuer,
    require_issuer_or_admin,
)

__all__ = [
    "AccessControlManager",
    "AccessDecision",
    "AuditEntry",
    "AuditTrail",
    "GENESIS_HASH",
    "authenticate_caller",
    "forbid_admin_target",
    "require_admin",
    "require_authorized_issuer",
    "require_issuer_or_admin",
]
