"""Tollgate CLI - Command line interface."""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.panel import Panel

console = Console()

BANNER = """
 _        _ _             _
| |_ ___ | | | __ _  __ _| |_ ___
| __/ _ \\| | |/ _` |/ _` | __/ _ \\
| || (_) | | | (_| | (_| | ||  __/
 \\__\\___/|_|_|\\__, |\\__,_|\\__\\___|
              |___/
        Basic auth in front of anything
"""


def _configure_logging(log_level: str) -> None:
    import structlog

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
    )


def _parse_user(value: str) -> dict[str, str]:
    username, sep, password = value.partition(":")
    if not sep or not username:
        raise click.BadParameter(f"expected USER:PASS, got {value!r}")
    return {"username": username, "password": password}


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx: click.Context):
    """Tollgate - HTTP Basic authentication for aiohttp services."""
    if ctx.invoked_subcommand is None:
        console.print(BANNER, style="cyan")
        click.echo(ctx.get_help())


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
@click.option("--port", "-p", type=int, default=8080, help="Bind port (default: 8080)")
@click.option("--username", "-u", envvar="TOLLGATE_USERNAME", help="Primary username")
@click.option("--password", envvar="TOLLGATE_PASSWORD", help="Primary password")
@click.option("--realm", default=None, help='Challenge realm (default: "Secure Area")')
@click.option(
    "--extra-user",
    "extra_users",
    multiple=True,
    help="Additional user as USER:PASS (can be repeated)",
)
@click.option(
    "--hash-algorithm",
    type=click.Choice(["sha256", "blake3"], case_sensitive=False),
    default=None,
    help="Digest used for comparison (default: sha256)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    help="Log level (default: info)",
)
def serve(
    directory: str,
    config_file: str | None,
    host: str,
    port: int,
    username: str | None,
    password: str | None,
    realm: str | None,
    extra_users: tuple[str, ...],
    hash_algorithm: str | None,
    log_level: str,
):
    """Serve DIRECTORY behind HTTP Basic authentication.

    \b
    Examples:
        tollgate serve ./site -u admin --password s3cret
        tollgate serve ./site -c tollgate.yaml --extra-user ops:hunter2
    """
    from aiohttp import web

    from tollgate.core.config import AuthSettings
    from tollgate.security.basicauth import ConfigurationError
    from tollgate.server.middleware import create_app

    _configure_logging(log_level)

    overrides = {
        "username": username,
        "password": password,
        "realm": realm,
        "hash_algorithm": hash_algorithm,
        "log_level": log_level,
    }
    if extra_users:
        overrides["extra_users"] = [_parse_user(user) for user in extra_users]

    try:
        if config_file:
            settings = AuthSettings.from_file(config_file, **overrides)
        else:
            settings = AuthSettings(**{k: v for k, v in overrides.items() if v is not None})
        app = create_app(settings, static_dir=directory)
    except (ConfigurationError, ValueError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    console.print(
        Panel(
            f"[bold]Directory:[/bold] {directory}\n"
            f"[bold]Listening:[/bold] http://{host}:{port}\n"
            f"[bold]Realm:[/bold] {settings.realm}\n"
            f"[bold]Users:[/bold] {1 + len(settings.extra_users)}",
            title="Tollgate",
            style="cyan",
        )
    )
    web.run_app(app, host=host, port=port, print=None)


@main.command()
@click.argument("username")
@click.argument("password")
def header(username: str, password: str):
    """Print the Authorization header value for USERNAME and PASSWORD."""
    from tollgate.security.basicauth import encode_credentials

    click.echo(encode_credentials(username, password))


@main.command()
def version():
    """Show version information."""
    from tollgate import __version__

    console.print(BANNER, style="cyan")
    console.print(f"[bold]Version:[/bold] {__version__}")
    console.print(f"[bold]Python:[/bold] {sys.version}")


if __name__ == "__main__":
    main()
