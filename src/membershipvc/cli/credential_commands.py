# Copyright (c) MembershipVC Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential CLI Commands

Defines click commands for the credential lifecycle. These are standalone
functions that are wired into the main CLI group.

Commands:
    - membershipvc issue <image-hash> <holder>
    - membershipvc show <credential-id>
    - membershipvc verify <credential-id> <image-hash>
    - membershipvc status <credential-id>
    - membershipvc revoke <credential-id>
    - membershipvc list
    - membershipvc stats
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import click
from rich import box
from rich.table import Table

from membershipvc.credentials import CredentialRecord, CredentialStatus

from .context import CliContext, console, format_datetime, output_json, run_with_registry

_STATUS_STYLES = {
    CredentialStatus.ACTIVE: "green",
    CredentialStatus.REVOKED: "bold red",
    CredentialStatus.EXPIRED: "yellow",
}


def _record_to_dict(record: CredentialRecord, now: datetime) -> dict:
    data = record.model_dump(mode="json")
    data["status"] = record.status_at(now).value
    return data


def _resolve_expiry(expires_at: Optional[datetime], expires_in: Optional[int]) -> datetime:
    if (expires_at is None) == (expires_in is None):
        raise click.UsageError("Pass exactly one of --expires-at or --expires-in.")
    if expires_in is not None:
        return datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return expires_at


@click.command("issue")
@click.argument("image_hash")
@click.argument("holder")
@click.option(
    "--expires-at",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]),
    default=None,
    help="Expiry as a UTC date/time.",
)
@click.option("--expires-in", type=click.IntRange(min=1), default=None, help="Expiry in seconds from now.")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def issue(
    ctx: CliContext,
    image_hash: str,
    holder: str,
    expires_at: Optional[datetime],
    expires_in: Optional[int],
    json_flag: bool,
) -> None:
    """Issue a membership credential.

    IMAGE_HASH is the hex SHA-256 of the image evidence; HOLDER is the
    member's principal identifier.
    """
    caller = ctx.require_caller()
    expiry = _resolve_expiry(expires_at, expires_in)

    credential_id = run_with_registry(
        ctx, lambda r: r.issue_membership(caller, image_hash, holder, expiry)
    )
    if json_flag:
        output_json({"credential_id": credential_id})
        return
    console.print(f"[green]✓[/green] Issued credential [cyan]{credential_id}[/cyan]")


@click.command("show")
@click.argument("credential_id")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def show(ctx: CliContext, credential_id: str, json_flag: bool) -> None:
    """Show the full record of a credential."""

    async def _load(registry):
        return await registry.get_credential(credential_id), registry.store.now()

    record, now = run_with_registry(ctx, _load)
    if json_flag:
        output_json(_record_to_dict(record, now))
        return

    status = record.status_at(now)
    style = _STATUS_STYLES[status]
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("Credential ID", record.credential_id)
    table.add_row("Holder", record.holder)
    table.add_row("Issuer", record.issuer)
    table.add_row("Image Hash", record.image_hash)
    table.add_row("Issued At", format_datetime(record.issued_at))
    table.add_row("Expires At", format_datetime(record.expires_at))
    table.add_row("Status", f"[{style}]{status.value}[/{style}]")
    console.print(table)


@click.command("verify")
@click.argument("credential_id")
@click.argument("image_hash")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def verify(ctx: CliContext, credential_id: str, image_hash: str, json_flag: bool) -> None:
    """Verify a credential against an image hash.

    Exits with status 0 when valid and 2 when not valid.
    """
    valid = run_with_registry(ctx, lambda r: r.verify_membership(credential_id, image_hash))
    if json_flag:
        output_json({"credential_id": credential_id, "valid": valid})
    elif valid:
        console.print("[green]✓ valid[/green]")
    else:
        console.print("[red]✗ not valid[/red]")
    if not valid:
        raise SystemExit(2)


@click.command("status")
@click.argument("credential_id")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def status(ctx: CliContext, credential_id: str, json_flag: bool) -> None:
    """Report whether a credential is currently active."""
    active = run_with_registry(ctx, lambda r: r.is_credential_active(credential_id))
    if json_flag:
        output_json({"credential_id": credential_id, "active": active})
        return
    click.echo("active" if active else "inactive")


@click.command("revoke")
@click.argument("credential_id")
@click.pass_obj
def revoke(ctx: CliContext, credential_id: str) -> None:
    """Revoke a credential (its issuer or the admin only)."""
    caller = ctx.require_caller()
    run_with_registry(ctx, lambda r: r.revoke_membership(caller, credential_id))
    console.print(f"[green]✓[/green] Revoked credential [cyan]{credential_id}[/cyan]")


@click.command("list")
@click.option("--holder", default=None, help="Only credentials held by this principal.")
@click.option("--issuer", default=None, help="Only credentials issued by this principal.")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def list_credentials(
    ctx: CliContext, holder: Optional[str], issuer: Optional[str], json_flag: bool
) -> None:
    """List credentials."""

    async def _load(registry):
        return await registry.list_credentials(holder=holder, issuer=issuer), registry.store.now()

    records, now = run_with_registry(ctx, _load)
    if json_flag:
        output_json([_record_to_dict(r, now) for r in records])
        return

    table = Table(box=box.ROUNDED)
    table.add_column("Credential ID", style="cyan", no_wrap=True)
    table.add_column("Holder")
    table.add_column("Issuer")
    table.add_column("Expires At", style="dim")
    table.add_column("Status")
    for record in records:
        state = record.status_at(now)
        style = _STATUS_STYLES[state]
        table.add_row(
            record.credential_id[:16] + "…",
            record.holder,
            record.issuer,
            format_datetime(record.expires_at),
            f"[{style}]{state.value}[/{style}]",
        )
    console.print(table)
    console.print(f"\n  Total credentials: {len(records)}\n")


@click.command("stats")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
@click.pass_obj
def stats(ctx: CliContext, json_flag: bool) -> None:
    """Show credential counts by status."""
    counts = run_with_registry(ctx, lambda r: r.get_statistics())
    if json_flag:
        output_json(counts)
        return
    for name, value in counts.items():
        click.echo(f"{name}: {value}")
