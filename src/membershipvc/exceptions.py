# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for MembershipVC.

All MembershipVC exceptions inherit from MembershipVCError, enabling
consistent error handling across the ledger, the CLI and storage backends.
"""


class MembershipVCError(Exception):
    """Base exception for all MembershipVC errors."""


class ValidationError(MembershipVCError):
    """Malformed or zero inputs, or an expiry that is not in the future."""


class AuthorizationError(MembershipVCError):
    """Caller lacks the role required for a mutating operation."""


class NotFoundError(MembershipVCError):
    """Operation references an unknown identifier where existence is required."""


class ConflictError(MembershipVCError):
    """Identifier collision on issuance, or a conflicting re-initialization."""


class InvariantViolation(MembershipVCError):
    """Operation would break a ledger invariant (e.g. revoking the admin)."""


class StorageError(MembershipVCError):
    """Errors related to storage backend operations."""


class ConfigurationError(MembershipVCError):
    """Invalid registry or storage configuration."""


__all__ = [
    "MembershipVCError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "InvariantViolation",
    "StorageError",
    "ConfigurationError",
]
