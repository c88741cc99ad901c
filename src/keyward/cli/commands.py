"""keyward CLI commands.

Commands:
    keyward assign --type client|secret <name> <group>
    keyward unassign --type client|secret <name> <group>
    keyward describe <group>
    keyward login
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
import yaml

from keyward.assign import (
    AssignmentOrchestrator,
    InvalidArgumentError,
    NotFoundError,
    require_valid_name,
)
from keyward.audit import AuditLogger, configure_audit_logging
from keyward.config import settings as app_settings
from keyward.directory import (
    DirectoryAuthError,
    DirectoryClient,
    DirectoryError,
    DirectoryNotFoundError,
    DirectorySettings,
)
from keyward.logs import configure_logging
from keyward.models import AssignmentOutcome, AssignmentRequest, GroupDetail

logger = logging.getLogger(__name__)

# Shared option declarations
BaseUrlOption = Annotated[
    Optional[str],
    typer.Option("--base-url", "-u", help="Directory server base URL"),
]
UserOption = Annotated[
    Optional[str],
    typer.Option("--user", help="Operator username"),
]
PasswordOption = Annotated[
    Optional[str],
    typer.Option("--password", help="Operator password"),
]
SessionFileOption = Annotated[
    Optional[Path],
    typer.Option("--session-file", help="Saved session file"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose output"),
]
TypeOption = Annotated[
    Optional[list[str]],
    typer.Option("--type", "-t", help="What to assign: client or secret"),
]


def _configure(verbose: bool) -> None:
    configure_logging(verbose)
    configure_audit_logging(
        log_level="DEBUG" if verbose else app_settings.log_level,
        json_format=app_settings.audit_json,
    )


def _build_settings(
    base_url: str | None,
    user: str | None,
    password: str | None,
    session_file: Path | None,
) -> DirectorySettings:
    """Build settings from environment, CLI overrides, and the saved session."""
    base = DirectorySettings()
    settings = base.with_overrides(
        base_url=base_url,
        username=user,
        password=password,
        session_file=session_file,
    )

    # Fall back to the session saved by `keyward login`
    settings = settings.with_auto_session()

    return settings


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _error_message(error: Exception) -> str:
    """Human-readable message for each failure kind."""
    if isinstance(error, InvalidArgumentError):
        return f"Invalid argument: {error}"
    if isinstance(error, NotFoundError):
        return f"Not found: {error}"
    if isinstance(error, DirectoryAuthError):
        return f"Authentication failed: {error}"
    if isinstance(error, DirectoryError):
        return f"Directory error: {error}"
    return f"Error: {error}"


async def _async_assignment(
    settings: DirectorySettings,
    request: AssignmentRequest,
    unassign: bool,
) -> AssignmentOutcome:
    """Run one assign/unassign against the directory."""
    # The session is opened lazily, so validation still precedes any request.
    async with DirectoryClient(settings) as client:
        orchestrator = AssignmentOrchestrator(client)
        if unassign:
            return await orchestrator.unassign(request)
        return await orchestrator.run(request)


def _run_assignment(
    request: AssignmentRequest,
    settings: DirectorySettings,
    unassign: bool,
    verbose: bool,
) -> None:
    audit = AuditLogger(enabled=app_settings.audit_enabled, operator=settings.username)

    try:
        outcome = asyncio.run(_async_assignment(settings, request, unassign))
    except (InvalidArgumentError, NotFoundError, DirectoryError) as e:
        audit.log_error(str(e), request=request, server=settings.base_url)
        _fail(_error_message(e))
    except Exception as e:
        audit.log_error(str(e), request=request, server=settings.base_url)
        if verbose:
            import traceback

            traceback.print_exc()
        _fail(_error_message(e))

    audit.log_outcome(outcome, server=settings.base_url)
    typer.echo(outcome.summary())


def assign(
    name: Annotated[str, typer.Argument(help="Client name or secret display name")],
    group: Annotated[str, typer.Argument(help="Group name")],
    assign_type: TypeOption = None,
    base_url: BaseUrlOption = None,
    user: UserOption = None,
    password: PasswordOption = None,
    session_file: SessionFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Assign a client or secret to a group.

    Missing clients are created first. Running the command again once the
    assignment exists changes nothing.

    Example:
        keyward assign --type client billing-worker payments
        keyward assign --type secret db-password..15a3c8f2b0e payments
    """
    _configure(verbose)
    settings = _build_settings(base_url, user, password, session_file)
    request = AssignmentRequest(assign_type=assign_type, name=name, group=group)
    _run_assignment(request, settings, unassign=False, verbose=verbose)


def unassign(
    name: Annotated[str, typer.Argument(help="Client name or secret display name")],
    group: Annotated[str, typer.Argument(help="Group name")],
    assign_type: TypeOption = None,
    base_url: BaseUrlOption = None,
    user: UserOption = None,
    password: PasswordOption = None,
    session_file: SessionFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Remove a client or secret from a group.

    Example:
        keyward unassign --type client billing-worker payments
    """
    _configure(verbose)
    settings = _build_settings(base_url, user, password, session_file)
    request = AssignmentRequest(assign_type=assign_type, name=name, group=group)
    _run_assignment(request, settings, unassign=True, verbose=verbose)


async def _async_describe(settings: DirectorySettings, group_name: str) -> GroupDetail:
    async with DirectoryClient(settings) as client:
        group = await client.get_group_by_name(group_name)
        return await client.group_details_for_id(group.id)


def describe(
    group: Annotated[str, typer.Argument(help="Group name")],
    base_url: BaseUrlOption = None,
    user: UserOption = None,
    password: PasswordOption = None,
    session_file: SessionFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show a group's clients and secrets.

    Example:
        keyward describe payments
    """
    _configure(verbose)
    settings = _build_settings(base_url, user, password, session_file)

    try:
        require_valid_name(group, "group")
        detail = asyncio.run(_async_describe(settings, group))
    except DirectoryNotFoundError:
        _fail(f"Not found: Group not found: {group}")
    except (InvalidArgumentError, DirectoryError) as e:
        _fail(_error_message(e))

    typer.echo(f"Group: {detail.name} (id={detail.id})")
    if detail.description:
        typer.echo(f"  {detail.description}")

    typer.echo(f"\nClients ({len(detail.clients)}):")
    for client in sorted(detail.clients, key=lambda c: c.name):
        flags = [] if client.enabled else ["disabled"]
        if client.automation_allowed:
            flags.append("automation")
        typer.echo(f"  - {client.name}" + (f" ({', '.join(flags)})" if flags else ""))

    typer.echo(f"\nSecrets ({len(detail.secrets)}):")
    for secret in sorted(detail.secrets, key=lambda s: s.display_name):
        typer.echo(f"  - {secret.display_name}")


def _update_session_file(
    session_file: Path,
    base_url: str,
    username: str,
    cookies: dict[str, str],
) -> None:
    """Update or create the session file with the cookies for ``base_url``."""
    from datetime import datetime, timezone

    from keyward.directory.settings import load_session_file

    data = load_session_file(session_file)

    # Ensure structure
    if "servers" not in data or not isinstance(data["servers"], dict):
        data["servers"] = {}

    # Update server entry (preserves other servers)
    data["servers"][base_url.rstrip("/")] = {
        "username": username,
        "cookies": cookies,
        "logged_in_at": datetime.now(timezone.utc).isoformat(),
    }

    content = "# WARNING: This file contains session credentials. DO NOT COMMIT.\n"
    content += yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    # Restrict permissions before the cookie is written
    session_file.touch(mode=0o600, exist_ok=True)
    session_file.chmod(0o600)
    session_file.write_text(content)
    logger.info("Updated session file: %s", session_file)


async def _async_login(settings: DirectorySettings, username: str, password: str) -> dict[str, str]:
    async with DirectoryClient(settings) as client:
        await client.login(username, password)
        return client.session_cookies


def login(
    base_url: BaseUrlOption = None,
    user: UserOption = None,
    password: PasswordOption = None,
    session_file: SessionFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Log in and save the session for later commands.

    Example:
        keyward login --user alice
    """
    _configure(verbose)
    settings = DirectorySettings().with_overrides(
        base_url=base_url,
        username=user,
        password=password,
        session_file=session_file,
    )

    username = settings.username or typer.prompt("Username")
    secret = settings.password or typer.prompt("Password", hide_input=True)

    try:
        cookies = asyncio.run(_async_login(settings, username, secret))
    except DirectoryError as e:
        _fail(_error_message(e))

    if not cookies:
        _fail("Login succeeded but the server returned no session cookie")

    _update_session_file(settings.session_file, settings.base_url, username, cookies)
    typer.secho(f"✓ Logged in to {settings.base_url} as {username}", fg=typer.colors.GREEN)
    typer.echo(f"  Session file: {settings.session_file}")
