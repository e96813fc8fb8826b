# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""Input normalization shared by the ledger components.

Every helper returns the canonical form of its input or raises
``ValidationError``.
"""

from __future__ import annotations

import string
from datetime import datetime, timezone
from typing import Union

from membershipvc.exceptions import ValidationError

IMAGE_HASH_BYTES = 32
IMAGE_HASH_HEX_LENGTH = IMAGE_HASH_BYTES * 2
CREDENTIAL_ID_HEX_LENGTH = 64

_HEX_DIGITS = frozenset(string.hexdigits)

ImageHashInput = Union[bytes, bytearray, str]
ExpiryInput = Union[datetime, int, float]


def _strip_hex_prefix(value: str) -> str:
    value = value.strip()
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def _is_hex(value: str, length: int) -> bool:
    return len(value) == length and all(c in _HEX_DIGITS for c in value)


def normalize_principal(value: object, field_name: str = "principal") -> str:
    """Return a principal identifier stripped of surrounding whitespace."""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    principal = value.strip()
    if not principal:
        raise ValidationError(f"{field_name} must not be empty")
    return principal


def normalize_image_hash(value: ImageHashInput) -> str:
    """Return a 32-byte image digest as 64 lowercase hex characters.

    Accepts raw bytes or a hex string with an optional ``0x`` prefix.
    The all-zero digest is rejected.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != IMAGE_HASH_BYTES:
            raise ValidationError(
                f"image hash must be {IMAGE_HASH_BYTES} bytes (got {len(value)})"
            )
        digest = bytes(value).hex()
    elif isinstance(value, str):
        digest = _strip_hex_prefix(value).lower()
        if not _is_hex(digest, IMAGE_HASH_HEX_LENGTH):
            raise ValidationError(
                f"image hash must be {IMAGE_HASH_HEX_LENGTH} hex characters"
            )
    else:
        raise ValidationError("image hash must be bytes or a hex string")

    if digest == "0" * IMAGE_HASH_HEX_LENGTH:
        raise ValidationError("image hash must be non-zero")
    return digest


def normalize_credential_id(value: object) -> str:
    """Return a credential identifier as 64 lowercase hex characters."""
    if not isinstance(value, str):
        raise ValidationError("credential id must be a string")
    credential_id = _strip_hex_prefix(value).lower()
    if not _is_hex(credential_id, CREDENTIAL_ID_HEX_LENGTH):
        raise ValidationError(f"malformed credential id: {value!r}")
    return credential_id


def normalize_expiry(value: ExpiryInput) -> datetime:
    """Return an aware UTC datetime.

    Naive datetimes are taken as UTC; numbers are Unix timestamps in seconds.
    """
    if isinstance(value, bool):
        raise ValidationError("expiry must be a datetime or a Unix timestamp")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValidationError(f"expiry timestamp out of range: {value!r}") from exc
    raise ValidationError("expiry must be a datetime or a Unix timestamp")
