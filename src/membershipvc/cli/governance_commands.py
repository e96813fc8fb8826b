# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Governance CLI Commands

Commands for ledger setup, issuer authorization and the audit trail:
- init: Fix the admin identity of a new ledger
- issuer authorize|revoke|check|list: Manage authorized issuers
- audit list|verify: Inspect and check the hash-chained audit trail
"""

from __future__ import annotations

from typing import Optional

import click
from rich import box
from rich.table import Table

from .context import CliContext, console, format_datetime, output_json, run_with_registry


@click.command("init")
@click.option("--admin", default=None, help="Admin principal (defaults to --caller).")
@click.pass_obj
def init(ctx: CliContext, admin: Optional[str]) -> None:
    """Initialize the ledger with its admin identity."""
    admin = admin or ctx.require_caller()
    created = run_with_registry(ctx, lambda r: r.initialize(admin))
    if created:
        console.print(f"[green]✓[/green] Ledger initialized with admin [cyan]{admin}[/cyan]")
    else:
        console.print(f"Ledger already initialized with admin [cyan]{admin}[/cyan]")


# ── Issuers ───────────────────────────────────────────────────


@click.group()
def issuer() -> None:
    """Manage authorized issuers (admin only for changes)."""


@issuer.command("authorize")
@click.argument("principal")
@click.pass_obj
def authorize_issuer(ctx: CliContext, principal: str) -> None:
    """Authorize PRINCIPAL to issue credentials."""
    caller = ctx.require_caller()
    run_with_registry(ctx, lambda r: r.authorize_issuer(caller, principal))
    console.print(f"[green]✓[/green] Authorized issuer [cyan]{principal}[/cyan]")


@issuer.command("revoke")
@click.argument("principal")
@click.pass_obj
def revoke_issuer(ctx: CliContext, principal: str) -> None:
    """Withdraw PRINCIPAL's issuer authorization."""
    caller = ctx.require_caller()
    run_with_registry(ctx, lambda r: r.revoke_issuer(caller, principal))
    console.print(f"[green]✓[/green] Revoked issuer [cyan]{principal}[/cyan]")


@issuer.command("check")
@click.argument("principal")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def check_issuer(ctx: CliContext, principal: str, json_flag: bool) -> None:
    """Report whether PRINCIPAL is an authorized issuer."""
    authorized = run_with_registry(ctx, lambda r: r.is_authorized_issuer(principal))
    if json_flag:
        output_json({"issuer": principal, "authorized": authorized})
        return
    click.echo("authorized" if authorized else "not authorized")


@issuer.command("list")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def list_issuers(ctx: CliContext, json_flag: bool) -> None:
    """List authorized issuers."""

    async def _load(registry):
        return await registry.get_admin(), await registry.list_issuers()

    admin, issuers = run_with_registry(ctx, _load)
    if json_flag:
        output_json({"admin": admin, "issuers": issuers})
        return
    for principal in issuers:
        suffix = " (admin)" if principal == admin else ""
        click.echo(f"{principal}{suffix}")


# ── Audit trail ───────────────────────────────────────────────


@click.group()
def audit() -> None:
    """Inspect the hash-chained audit trail."""


@audit.command("list")
@click.option("--start", type=click.IntRange(min=1), default=1, help="First sequence number.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Max number of entries.")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def list_audit(ctx: CliContext, start: int, limit: Optional[int], json_flag: bool) -> None:
    """List audit entries in commit order."""
    entries = run_with_registry(ctx, lambda r: r.audit.entries(start=start, limit=limit))
    if json_flag:
        output_json([entry.model_dump(mode="json") for entry in entries])
        return

    table = Table(box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Timestamp", style="dim")
    table.add_column("Event")
    table.add_column("Source", style="cyan")
    table.add_column("Payload")
    table.add_column("Hash", style="dim")
    for entry in entries:
        payload = ", ".join(f"{k}={v}" for k, v in sorted(entry.payload.items()))
        table.add_row(
            str(entry.sequence),
            format_datetime(entry.timestamp),
            entry.event_type,
            entry.source,
            payload,
            entry.entry_hash[:12],
        )
    console.print(table)


@audit.command("verify")
@click.pass_obj
def verify_audit(ctx: CliContext) -> None:
    """Check the integrity of the audit trail."""

    async def _verify(registry):
        valid, error = await registry.audit.verify_integrity()
        return valid, error, await registry.audit.count()

    valid, error, count = run_with_registry(ctx, _verify)
    if valid:
        console.print(f"[green]✓[/green] Audit trail intact ({count} entries)")
        return
    click.echo(f"Audit trail integrity check failed: {error}", err=True)
    raise SystemExit(1)
