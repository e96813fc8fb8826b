# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""Shared plumbing for the ``membershipvc`` command line."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console

from membershipvc.config import RegistrySettings
from membershipvc.exceptions import MembershipVCError
from membershipvc.registry import MembershipRegistry

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default ledger location when no storage backend is configured
DEFAULT_LEDGER_FILE = Path(".membershipvc") / "ledger.json"


@dataclass
class CliContext:
    """State shared by all commands of one invocation."""

    settings: RegistrySettings
    caller: Optional[str] = None

    def require_caller(self) -> str:
        if not self.caller:
            raise click.UsageError(
                "This command needs a caller identity: pass --caller or set MEMBERSHIPVC_CALLER."
            )
        return self.caller


def build_settings(config_path: Optional[str], store_path: Optional[str]) -> RegistrySettings:
    """Resolve settings from a YAML file or the environment.

    The in-memory backend would forget everything between invocations, so
    the CLI falls back to a file-backed ledger when nothing else is set.
    """
    if config_path:
        settings = RegistrySettings.from_yaml(config_path)
    else:
        settings = RegistrySettings.from_env()

    if store_path:
        storage = settings.storage.model_copy(update={"backend": "file", "path": store_path})
        settings = settings.model_copy(update={"storage": storage})
    elif settings.storage.backend == "memory":
        storage = settings.storage.model_copy(
            update={"backend": "file", "path": str(DEFAULT_LEDGER_FILE)}
        )
        settings = settings.model_copy(update={"storage": storage})
    return settings


def run_with_registry(
    ctx: CliContext,
    operation: Callable[[MembershipRegistry], Awaitable[T]],
) -> T:
    """Open the configured registry, run *operation*, and close it.

    Ledger errors are reported on stderr and end the process with status 1.
    """

    async def _main() -> T:
        registry = await MembershipRegistry.open(ctx.settings)
        try:
            return await operation(registry)
        finally:
            await registry.close()

    try:
        return asyncio.run(_main())
    except MembershipVCError as exc:
        logger.debug("Command failed", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def format_datetime(dt: Optional[datetime]) -> str:
    """Format a datetime for display, handling None."""
    if dt is None:
        return "N/A"
    return dt.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def output_json(data: Any) -> None:
    """Print data as JSON to stdout."""
    click.echo(json.dumps(data, indent=2, default=str))
