# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Registry configuration.

Settings can be built directly, read from ``MEMBERSHIPVC_*`` environment
variables, or loaded from a YAML file of the same shape::

    namespace: prod
    admin: did:example:registry-admin
    unique_ids: true
    storage:
      backend: file
      path: /var/lib/membershipvc/ledger.json
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import pydantic
import yaml
from pydantic import BaseModel, Field

from membershipvc.exceptions import ConfigurationError
from membershipvc.storage import StorageConfig

ENV_PREFIX = "MEMBERSHIPVC_"

# Environment variable suffix -> StorageConfig field
_STORAGE_ENV_FIELDS = {
    "STORAGE": "backend",
    "STORAGE_PATH": "path",
    "REDIS_HOST": "redis_host",
    "REDIS_PORT": "redis_port",
    "REDIS_DB": "redis_db",
    "REDIS_PASSWORD": "redis_password",
    "REDIS_SSL": "redis_ssl",
}


class RegistrySettings(BaseModel):
    """Configuration for a membership credential registry."""

    namespace: str = Field(default="default", min_length=1, pattern=r"^[A-Za-z0-9_.-]+$")
    admin: Optional[str] = Field(default=None, description="Admin principal used on first start")
    unique_ids: bool = Field(
        default=True,
        description="Fold a sequence number into credential identifiers",
    )
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RegistrySettings":
        try:
            return cls.model_validate(dict(data))
        except pydantic.ValidationError as exc:
            raise ConfigurationError(f"Invalid registry settings: {exc}") from exc

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RegistrySettings":
        """Read settings from ``MEMBERSHIPVC_*`` variables."""
        env = os.environ if environ is None else environ

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        data: dict[str, Any] = {}
        for name, field in (("NAMESPACE", "namespace"), ("ADMIN", "admin"), ("UNIQUE_IDS", "unique_ids")):
            value = _get(name)
            if value is not None:
                data[field] = value

        storage: dict[str, Any] = {}
        for name, field in _STORAGE_ENV_FIELDS.items():
            value = _get(name)
            if value is not None:
                storage[field] = value
        if storage:
            data["storage"] = storage

        return cls.from_mapping(data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "RegistrySettings":
        """Load settings from a YAML file."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_mapping(data)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode="json"), default_flow_style=False, sort_keys=False)
