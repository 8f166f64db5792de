"""CLI entry point for vc-agent.

Invoked as::

    vc-agent [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m vc_agent.cli.main

Configuration (``KMS_SECRET_KEY``, ``INFURA_PROJECT_ID``, ...) is read from
the environment and ``.env``, exactly as the server reads it.

Commands
--------
identifier create    Create a managed identifier
identifier list      List managed identifiers
identifier default   Show (creating if the store is empty) the default identifier
credential issue     Issue a signed credential
credential verify    Verify a credential from a file
credential status    Check a credential's revocation state
did resolve          Resolve a DID document
serve                Run the HTTP server
"""
from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, NoReturn

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from vc_agent.agent import DEFAULT_ALIAS, DEFAULT_PROOF_FORMAT, Agent, create_agent
from vc_agent.config import AgentSettings
from vc_agent.credentials.model import CredentialStatusEntry, VerifiableCredential
from vc_agent.did.identifier import Identifier
from vc_agent.errors import AgentError
from vc_agent.status.checker import STATUS_LIST_2017

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="vc-agent")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level.",
)
@click.option(
    "--database-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="SQLite file (overrides DATABASE_FILE).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, database_file: str | None) -> None:
    """Manage identifiers and issue and verify verifiable credentials"""
    logging.basicConfig(level=getattr(logging, log_level.upper()))
    ctx.ensure_object(dict)
    if database_file is not None:
        ctx.obj["database_file"] = Path(database_file)


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from vc_agent import __version__

    console.print(f"[bold]vc-agent[/bold] v{__version__}")


# ------------------------------------------------------------------
# identifier command group
# ------------------------------------------------------------------


@cli.group(name="identifier")
def identifier_group() -> None:
    """Manage identifiers."""


@identifier_group.command(name="create")
@click.argument("alias", required=False)
@click.option(
    "--provider",
    "-p",
    default=None,
    help="DID provider, e.g. did:ethr:sepolia, did:web, did:key (default from settings).",
)
@click.pass_context
def create_command(ctx: click.Context, alias: str | None, provider: str | None) -> None:
    """Create a new identifier, optionally labelled ALIAS."""
    with _agent(ctx) as agent:
        try:
            identifier = agent.create_identifier(alias=alias, provider=provider)
        except (AgentError, ValueError) as exc:
            _fail(exc)
    console.print(f"[green]Created[/green] identifier [bold]{identifier.did}[/bold]")
    _print_identifier(identifier)


@identifier_group.command(name="list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List all managed identifiers."""
    with _agent(ctx) as agent:
        try:
            identifiers = agent.find_identifiers()
        except AgentError as exc:
            _fail(exc)

    if not identifiers:
        console.print("[yellow]No identifiers yet.[/yellow]")
        return

    table = Table(title="Managed Identifiers", show_header=True)
    table.add_column("DID", style="cyan")
    table.add_column("Alias")
    table.add_column("Provider")
    table.add_column("Created")
    for identifier in identifiers:
        table.add_row(
            identifier.did,
            identifier.alias or "",
            identifier.provider,
            identifier.created_at.isoformat(timespec="seconds"),
        )
    console.print(table)
    console.print(f"\nTotal: {len(identifiers)} identifier(s)")


@identifier_group.command(name="default")
@click.pass_context
def default_command(ctx: click.Context) -> None:
    """Show the default identifier, creating it if the store is empty."""
    with _agent(ctx) as agent:
        try:
            identifier = agent.ensure_default_identifier()
        except AgentError as exc:
            _fail(exc)
    _print_identifier(identifier)


# ------------------------------------------------------------------
# credential command group
# ------------------------------------------------------------------


@cli.group(name="credential")
def credential_group() -> None:
    """Issue, verify and check credentials."""


@credential_group.command(name="issue")
@click.option(
    "--subject",
    "-s",
    required=True,
    help="JSON object of subject claims (e.g. '{\"id\": \"did:web:example.com\", \"you\": \"Rock\"}').",
)
@click.option("--issuer", "-i", "issuer_alias", default=DEFAULT_ALIAS, show_default=True, help="Issuer alias.")
@click.option(
    "--proof-format",
    "-f",
    default=DEFAULT_PROOF_FORMAT,
    show_default=True,
    help="EthereumEip712Signature2021 or JsonWebSignature2020.",
)
@click.option("--type", "-t", "types", multiple=True, help="Extra credential type (repeatable).")
@click.option("--status-url", default=None, help="credentialStatus endpoint URL.")
@click.option("--status-type", default=STATUS_LIST_2017, show_default=True, help="credentialStatus type.")
@click.option("--expires", default=None, help="ISO-8601 expiration date.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the credential to this file instead of stdout.",
)
@click.pass_context
def issue_command(
    ctx: click.Context,
    subject: str,
    issuer_alias: str,
    proof_format: str,
    types: tuple[str, ...],
    status_url: str | None,
    status_type: str,
    expires: str | None,
    output: str | None,
) -> None:
    """Issue a credential signed by an identifier."""
    try:
        claims = json.loads(subject)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/red] --subject is not valid JSON: {exc}")
        sys.exit(1)
    if not isinstance(claims, dict):
        console.print("[red]Error:[/red] --subject must be a JSON object.")
        sys.exit(1)

    status = CredentialStatusEntry(type=status_type, id=status_url) if status_url else None
    with _agent(ctx) as agent:
        try:
            credential = agent.issue_credential(
                claims,
                issuer_alias=issuer_alias,
                proof_format=proof_format,
                credential_status=status,
                types=list(types),
                expiration_date=expires,
            )
        except (AgentError, ValueError) as exc:
            _fail(exc)

    text = credential.to_json()
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Issued[/green] credential written to {output}")
    else:
        click.echo(text)


@credential_group.command(name="verify")
@click.argument("credential_file", type=click.File("r"))
@click.pass_context
def verify_command(ctx: click.Context, credential_file: IO[str]) -> None:
    """Verify the credential in CREDENTIAL_FILE ('-' for stdin)."""
    credential = _load_credential(credential_file)
    with _agent(ctx) as agent:
        try:
            result = agent.verify_credential(credential)
        except AgentError as exc:
            _fail(exc)

    table = Table(title="Verification", show_header=False)
    table.add_column("Check")
    table.add_column("Result")
    table.add_row("Signature", _yes_no(result.signature_valid))
    if result.revoked is None:
        table.add_row("Revoked", "[yellow]unknown[/yellow]")
    else:
        table.add_row("Revoked", _yes_no(not result.revoked, str(result.revoked)))
    table.add_row("Expired", _yes_no(not result.expired, str(result.expired)))
    if result.error:
        table.add_row("Error", result.error)
    if result.status_error:
        table.add_row("Status error", result.status_error)
    console.print(table)

    if result.verified:
        console.print("[green]Credential verified[/green]")
    else:
        console.print("[red]Credential NOT verified[/red]")
        sys.exit(1)


@credential_group.command(name="status")
@click.argument("credential_file", type=click.File("r"))
@click.pass_context
def status_command(ctx: click.Context, credential_file: IO[str]) -> None:
    """Check the revocation state of the credential in CREDENTIAL_FILE."""
    credential = _load_credential(credential_file)
    with _agent(ctx) as agent:
        try:
            result = agent.check_status(credential)
        except AgentError as exc:
            _fail(exc)
    if result.revoked:
        console.print("[red]Revoked[/red]")
    else:
        console.print("[green]Not revoked[/green]")


# ------------------------------------------------------------------
# did command group
# ------------------------------------------------------------------


@cli.group(name="did")
def did_group() -> None:
    """Work with DID documents."""


@did_group.command(name="resolve")
@click.argument("did")
@click.pass_context
def resolve_command(ctx: click.Context, did: str) -> None:
    """Resolve DID and print its document."""
    with _agent(ctx) as agent:
        try:
            document = agent.resolve_did(did)
        except AgentError as exc:
            _fail(exc)
    click.echo(json.dumps(document.to_dict(), indent=2))


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------


@cli.command(name="serve")
@click.option("--host", default=None, help="Bind address (overrides HOST).")
@click.option("--port", type=int, default=None, help="TCP port (overrides PORT).")
@click.pass_context
def serve_command(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP server until interrupted."""
    from vc_agent.server.app import run_server

    overrides: dict[str, Any] = dict(ctx.obj)
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    try:
        run_server(_settings(overrides))
    except AgentError as exc:
        _fail(exc)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _settings(overrides: dict[str, Any]) -> AgentSettings:
    try:
        return AgentSettings(**overrides)
    except ValidationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)


@contextmanager
def _agent(ctx: click.Context) -> Iterator[Agent]:
    """Build an agent from settings for the duration of one command."""
    try:
        agent = create_agent(_settings(dict(ctx.obj or {})))
    except AgentError as exc:
        _fail(exc)
    try:
        yield agent
    finally:
        agent.close()


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc}")
    sys.exit(1)


def _load_credential(credential_file: IO[str]) -> VerifiableCredential:
    try:
        return VerifiableCredential.from_json(credential_file.read())
    except ValueError as exc:
        console.print(f"[red]Error:[/red] not a valid credential: {exc}")
        sys.exit(1)


def _print_identifier(identifier: Identifier) -> None:
    console.print(f"  DID:        {identifier.did}")
    console.print(f"  Alias:      {identifier.alias or '(none)'}")
    console.print(f"  Provider:   {identifier.provider}")
    console.print(f"  Controller: {identifier.controller_key_id}")


def _yes_no(ok: bool, label: str | None = None) -> str:
    text = label if label is not None else ("valid" if ok else "invalid")
    return f"[green]{text}[/green]" if ok else f"[red]{text}[/red]"


if __name__ == "__main__":
    cli()
