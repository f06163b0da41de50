"""CLI entry point for agent-auth.

Invoked as::

    agent-auth [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_auth.cli.main

Commands
--------
init                 Create the storage layout and root authority
issue                Issue a certificate for an agent
sign                 Sign challenge data with an agent's stored key
authenticate         Authenticate an agent and open a session
session validate     Validate a bearer session token
session revoke       Revoke a bearer session token
session cleanup      Delete expired sessions (for cron/timers)
permissions          Show default permissions per agent type
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agent_auth.config import AuthSettings
from agent_auth.exceptions import AgentAuthError
from agent_auth.service import AgentAuthService

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-auth")
@click.option(
    "--root",
    "security_root",
    type=click.Path(file_okay=False),
    default=None,
    help="Security root directory (default: $AGENT_AUTH_SECURITY_ROOT or ./.security).",
)
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level.",
)
@click.pass_context
def cli(ctx: click.Context, security_root: str | None, log_level: str) -> None:
    """Agent certificate authority and session authentication"""
    logging.basicConfig(level=getattr(logging, log_level.upper()))
    overrides = {"security_root": Path(security_root)} if security_root else {}
    try:
        settings = AuthSettings(**overrides)
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        sys.exit(1)
    ctx.obj = AgentAuthService(settings)


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agent_auth import __version__

    console.print(f"[bold]agent-auth[/bold] v{__version__}")


# ------------------------------------------------------------------
# Authority
# ------------------------------------------------------------------


@cli.command(name="init")
@click.pass_obj
def init_command(service: AgentAuthService) -> None:
    """Create the security directories and, if absent, the root authority."""
    try:
        result = service.initialize()
    except AgentAuthError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print(f"[green]{result.message}[/green]")
    state = "generated" if result.generated_root else "already present"
    console.print(f"  Root:        {service.settings.ca_subject} ({state})")
    console.print(f"  Fingerprint: {service.cert_store.load_root_fingerprint()}")


@cli.command(name="issue")
@click.argument("agent_id")
@click.option(
    "--type",
    "-t",
    "agent_type",
    default="meta-agent",
    show_default=True,
    help="Agent type; selects the default permission set.",
)
@click.pass_obj
def issue_command(service: AgentAuthService, agent_id: str, agent_type: str) -> None:
    """Issue a root-signed certificate for AGENT_ID."""
    try:
        issued = service.generate_agent_certificate(agent_id, agent_type)
    except (AgentAuthError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    metadata = service.cert_store.load_agent_metadata(agent_id)
    console.print(f"[green]Issued[/green] certificate for [bold]{issued.agent_id}[/bold]")
    console.print(f"  Type:        {agent_type}")
    console.print(f"  Fingerprint: {issued.fingerprint}")
    console.print(f"  Expires:     {issued.expires_at.isoformat()}")
    console.print(f"  Permissions: {', '.join(metadata.permissions)}")


# ------------------------------------------------------------------
# Authentication
# ------------------------------------------------------------------


@cli.command(name="sign")
@click.argument("agent_id")
@click.argument("data")
@click.pass_obj
def sign_command(service: AgentAuthService, agent_id: str, data: str) -> None:
    """Sign DATA with the stored private key of AGENT_ID."""
    try:
        signature = service.sign_data(agent_id, data)
    except AgentAuthError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    click.echo(signature)


@cli.command(name="authenticate")
@click.argument("agent_id")
@click.argument("data")
@click.option("--signature", "-s", required=True, help="Base64 signature over DATA.")
@click.pass_obj
def authenticate_command(
    service: AgentAuthService, agent_id: str, data: str, signature: str
) -> None:
    """Authenticate AGENT_ID by its SIGNATURE over DATA and open a session."""
    result = service.authenticate_agent(agent_id, signature, data)
    if not result.authenticated:
        console.print(f"[red]FAIL[/red]  {result.error}")
        sys.exit(1)

    console.print(f"[green]Authenticated[/green] [bold]{result.agent_id}[/bold]")
    console.print(f"  Type:        {result.agent_type}")
    console.print(f"  Permissions: {', '.join(result.permissions)}")
    console.print(f"  Session:     {result.session_token}")
    console.print(f"  Expires:     {result.expires_at.isoformat() if result.expires_at else '-'}")


# ------------------------------------------------------------------
# Sessions
# ------------------------------------------------------------------


@cli.group(name="session")
def session_group() -> None:
    """Manage bearer sessions."""


@session_group.command(name="validate")
@click.argument("token")
@click.pass_obj
def session_validate_command(service: AgentAuthService, token: str) -> None:
    """Validate session TOKEN."""
    result = service.validate_session(token)
    if not result.valid:
        console.print(f"[red]INVALID[/red]  {result.error}")
        sys.exit(1)
    console.print(f"[green]VALID[/green]  agent [bold]{result.agent_id}[/bold]")
    console.print(f"  Permissions: {', '.join(result.permissions)}")


@session_group.command(name="revoke")
@click.argument("token")
@click.pass_obj
def session_revoke_command(service: AgentAuthService, token: str) -> None:
    """Revoke session TOKEN."""
    result = service.revoke_session(token)
    if not result.success:
        console.print(f"[red]Error:[/red] {result.error}")
        sys.exit(1)
    console.print("[red]Revoked[/red] session")


@session_group.command(name="cleanup")
@click.pass_obj
def session_cleanup_command(service: AgentAuthService) -> None:
    """Delete all expired sessions."""
    result = service.cleanup_expired_sessions()
    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
        sys.exit(1)
    console.print(result.message)


# ------------------------------------------------------------------
# Permissions
# ------------------------------------------------------------------


@cli.command(name="permissions")
@click.argument("agent_type", required=False)
@click.pass_obj
def permissions_command(service: AgentAuthService, agent_type: str | None) -> None:
    """Show default permissions, for AGENT_TYPE or for every known type."""
    registry = service.authority.permissions
    types = [agent_type] if agent_type else registry.agent_types()

    table = Table(title="Default Permissions", show_header=True)
    table.add_column("Agent Type", style="cyan")
    table.add_column("Permissions")
    for name in types:
        table.add_row(name, ", ".join(registry.get_default_permissions(name)))
    console.print(table)


if __name__ == "__main__":
    cli()
