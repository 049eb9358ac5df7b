#!/usr/bin/env python3
"""
Sticky Board CLI.

Primary entry point for board operations. Use --service to select what to run.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service token --actor-id 1 --role administrator
    python cli.py --service purge --yes
    python cli.py --service config
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.backend.core.logging import get_logger, log_with_source, setup_logging


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "purge", "token", "config", "info"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--host",
    default=None,
    help="Server host.",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Server port.",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload (server only).",
)
@click.option(
    "--yes", "-y",
    is_flag=True,
    help="Skip the confirmation prompt (purge only).",
)
@click.option(
    "--actor-id",
    default="1",
    help="Actor id to mint a token for (token only).",
)
@click.option(
    "--role",
    "roles",
    multiple=True,
    default=("administrator",),
    help="Role granted by the token; repeatable (token only).",
)
def main(
    service: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    yes: bool,
    actor_id: str,
    roles: tuple[str, ...],
) -> None:
    """
    Sticky Board CLI.

    Use --service to select what to run.

    \b
    Examples:
        python cli.py --service server --reload --verbose
        python cli.py --service token --actor-id 7 --role editor
        python cli.py --service purge
        python cli.py --service config
        python cli.py --service info
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console", enable_file_logging=False)

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "log_level": log_level})

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "purge":
        run_purge(logger, yes)
    elif service == "token":
        issue_token(logger, actor_id, list(roles))
    elif service == "config":
        show_config(logger)
    elif service == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI development server."""
    from modules.backend.core.config import get_app_config

    server_config = get_app_config().application.server
    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "modules.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


async def _purge_board() -> dict[str, int]:
    from modules.backend.core.database import create_tables, dispose_engine, get_session_factory
    from modules.backend.services.board import BoardService

    try:
        await create_tables()
        async with get_session_factory()() as session:
            removed = await BoardService(session).purge_board()
            await session.commit()
    finally:
        await dispose_engine()
    return removed


def run_purge(logger, yes: bool) -> None:
    """Delete every note, all note metadata and every collapsed-set."""
    if not yes:
        click.confirm("This permanently deletes every note on the board. Continue?", abort=True)

    removed = asyncio.run(_purge_board())

    log_with_source(logger, "cli", "info", "Board purged", **removed)
    click.echo(
        f"Removed {removed['notes']} note(s) and {removed['collapsed_sets']} collapsed-set(s)."
    )


def issue_token(logger, actor_id: str, roles: list[str]) -> None:
    """Print a development bearer token for an actor."""
    from modules.backend.core.config import get_app_config
    from modules.backend.core.security import create_access_token

    known_roles = get_app_config().board.roles
    unknown = [role for role in roles if role not in known_roles]
    if unknown:
        click.echo(
            click.style(f"Error: unknown role(s): {', '.join(unknown)}", fg="red"),
            err=True,
        )
        sys.exit(1)

    token = create_access_token(actor_id, roles=roles)
    logger.info("Token issued", extra={"actor_id": actor_id, "roles": roles})
    click.echo(token)


def _echo_section(title: str, values: dict) -> None:
    click.echo(f"\n{title}:")
    click.echo("-" * 40)
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"  {key}:")
            for k, v in value.items():
                click.echo(f"    {k}: {v}")
        else:
            click.echo(f"  {key}: {value}")


def show_config(logger) -> None:
    """Display loaded configuration."""
    from modules.backend.core.config import get_app_config

    click.echo("Application Configuration:")

    app_config = get_app_config()
    _echo_section("Application Settings (from YAML)", app_config.application.model_dump())
    _echo_section("Database Settings (from YAML)", app_config.database.model_dump())
    _echo_section("Logging Settings (from YAML)", app_config.logging.model_dump())
    _echo_section("Security Settings (from YAML)", app_config.security.model_dump())
    _echo_section("Board Settings (from YAML)", app_config.board.model_dump())

    logger.info("Configuration displayed successfully")


def show_info(logger) -> None:
    """Display application information."""
    from modules.backend.core.config import get_app_config

    app_settings = get_app_config().application

    click.echo("Sticky Board")
    click.echo("=" * 40)
    click.echo(f"Name: {app_settings.name}")
    click.echo(f"Version: {app_settings.version}")
    click.echo(f"Description: {app_settings.description}")
    click.echo()
    click.echo("Services (--service):")
    click.echo("  server         FastAPI development server")
    click.echo("  purge          Delete every note and collapsed-set")
    click.echo("  token          Mint a development bearer token")
    click.echo("  config         Display configuration")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")
    click.echo()
    click.echo("Examples:")
    click.echo("  python cli.py --service server --reload --verbose")
    click.echo("  python cli.py --service token --actor-id 7 --role editor")
    click.echo("  python cli.py --service purge --yes")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
