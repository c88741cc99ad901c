"""keyward CLI - Main entrypoint.

Usage:
    keyward login --user alice
    keyward assign --type client billing-worker payments
    keyward assign --type secret db-password..15a3c8f2b0e payments
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as package_version

import typer

from keyward.cli import commands

app = typer.Typer(
    name="keyward",
    help="Assign clients and secrets to groups in the secrets directory",
    add_completion=True,
    no_args_is_help=True,
)

app.command("assign")(commands.assign)
app.command("unassign")(commands.unassign)
app.command("describe")(commands.describe)
app.command("login")(commands.login)


@app.command("version")
def version() -> None:
    """Show the application version and exit."""
    try:
        current = package_version("keyward")
    except PackageNotFoundError:
        current = "unknown"
    typer.echo(f"keyward version: {current}")


def create_app() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    create_app()
