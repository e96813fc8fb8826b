# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
MembershipVC command line entry point.

The caller identity for mutating commands is taken from ``--caller`` or
``MEMBERSHIPVC_CALLER``, standing in for the hosting environment's
authentication layer.
"""

from __future__ import annotations

import logging
from typing import Optional

import click

from membershipvc import __version__
from membershipvc.exceptions import ConfigurationError

from .context import CliContext, build_settings
from .credential_commands import issue, list_credentials, revoke, show, stats, status, verify
from .governance_commands import audit, init, issuer


@click.group()
@click.version_option(__version__, prog_name="membershipvc")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML settings file (defaults to MEMBERSHIPVC_* environment variables).",
)
@click.option(
    "--store", "store_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Use a file-backed ledger at this path.",
)
@click.option("--caller", envvar="MEMBERSHIPVC_CALLER", default=None, help="Authenticated caller identity.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def app(
    ctx: click.Context,
    config_path: Optional[str],
    store_path: Optional[str],
    caller: Optional[str],
    verbose: bool,
) -> None:
    """Issue, verify and revoke tamper-evident membership credentials."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
    )
    try:
        settings = build_settings(config_path, store_path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = CliContext(settings=settings, caller=caller)


for command in (init, issue, show, verify, status, revoke, list_credentials, stats, issuer, audit):
    app.add_command(command)


if __name__ == "__main__":
    app()
