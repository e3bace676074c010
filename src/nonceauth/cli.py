"""Command-line interface for NonceAuth.

This module provides the CLI commands for running and managing
the NonceAuth application.
"""

import asyncio
from typing import NoReturn

import click

from nonceauth import __version__
from nonceauth.core.config import get_settings
from nonceauth.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version=__version__, prog_name="NonceAuth")
def cli() -> None:
    """NonceAuth - passwordless, multi-device authentication.

    Settings are read from NONCEAUTH_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the NonceAuth server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    if bind_workers > 1 and settings.database_url.startswith("sqlite"):
        click.echo(
            "Error: SQLite does not support multiple worker processes. "
            "Use --workers 1 or switch to PostgreSQL.",
            err=True,
        )
        raise SystemExit(1)

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting NonceAuth server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "nonceauth.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
        proxy_headers=True,
    )


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Create all database tables.

    Use this only in development. In production, use migrations instead.
    """
    from nonceauth.infrastructure.persistence.database import DatabaseManager, init_database

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize():
        db = DatabaseManager(settings)
        try:
            await init_database(db)
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
def purge_expired() -> None:
    """Delete expired login and email change tokens once."""
    from nonceauth.infrastructure.persistence.database import DatabaseManager
    from nonceauth.infrastructure.persistence.reaper import ExpiryReaper

    settings = get_settings()
    configure_logging(settings)

    async def purge():
        db = DatabaseManager(settings)
        try:
            return await ExpiryReaper(db).run_once()
        finally:
            await db.disconnect()

    result = asyncio.run(purge())
    click.echo(
        f"Deleted {result.login_tokens} login token(s) and "
        f"{result.email_change_tokens} email change token(s)."
    )


@cli.command()
def check_email() -> None:
    """Test the configured email transport connection."""
    from nonceauth.infrastructure.services.email_service import create_email_provider

    settings = get_settings()
    configure_logging(settings)

    ok, error = asyncio.run(create_email_provider(settings).test_connection())
    if not ok:
        click.echo(f"ERROR: {error}", err=True)
        raise SystemExit(1)
    click.echo(f"Email transport '{settings.email_transport}' is reachable.")


@cli.command()
def info() -> None:
    """Display NonceAuth configuration."""
    settings = get_settings()
    auth = settings.auth_config

    click.echo(f"""
NonceAuth v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Mode:         {auth.mode.value}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}
  Force HTTPS:  {settings.force_https}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Tokens:
  Session:      {int(auth.session_lifetime.total_seconds())} seconds
  Pending TTL:  {int(auth.token_ttl.total_seconds())} seconds
  Reaper every: {settings.reaper_interval_seconds} seconds

Email:
  Transport:    {settings.email_transport}
  From:         {settings.email_from_address}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `nonceauth` command is run
    or when using `python -m nonceauth`.
    """
    cli()


if __name__ == "__main__":
    main()
