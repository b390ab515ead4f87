"""Command line interface for the site audit service.

Provides commands for:
- Starting the API server
- Showing configuration
- Listing agent skills
- Compressing a screenshot file
"""

import asyncio
from dataclasses import asdict
from pathlib import Path

import click
import uvicorn

from siteaudit import __version__
from siteaudit.config import FRAMEWORK, get_settings


@click.group()
@click.version_option(version=__version__, prog_name="siteaudit")
def cli() -> None:
    """Site audit admin API and pipeline helpers."""
    pass


@cli.command()
@click.option("--host", "-h", default=None, help="Host to bind to")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the API server."""
    settings = get_settings()

    actual_host = host or settings.host
    actual_port = port or settings.port

    click.echo(f"Starting siteaudit server on {actual_host}:{actual_port}")

    uvicorn.run(
        "siteaudit.server:app",
        host=actual_host,
        port=actual_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command()
def info() -> None:
    """Show server configuration."""
    settings = get_settings()
    framework = asdict(FRAMEWORK)

    click.echo("Siteaudit Configuration:\n")
    click.echo(f"  Host:        {settings.host}")
    click.echo(f"  Port:        {settings.port}")
    click.echo(f"  Debug:       {settings.debug}")
    click.echo(f"  Environment: {settings.environment}")
    click.echo(f"  Log Level:   {settings.log_level}")
    click.echo(f"  Database:    {settings.database_url}")
    click.echo(f"  Admin:       {'configured' if settings.admin_secret else 'not configured'}")
    click.echo(f"  External packages: {', '.join(framework['external_packages'])}")
    click.echo(f"  Auth interrupts:   {framework['auth_interrupts']}")


@cli.group()
def skills() -> None:
    """Agent skill commands."""
    pass


@skills.command("list")
def list_skills() -> None:
    """List agent skills (no system prompts)."""
    from siteaudit.db import SQLGateway, init_db
    from siteaudit.db.engine import close_db

    async def _fetch():
        await init_db()
        try:
            return await SQLGateway().list_skills()
        finally:
            await close_db()

    rows = asyncio.run(_fetch())

    if not rows:
        click.echo("No agent skills found.")
        return

    click.echo(f"Agent skills ({len(rows)}):\n")
    for row in rows:
        state = "active" if row["active"] else "inactive"
        click.echo(
            f"  {click.style(row['agent_slug'], fg='green', bold=True)}"
            f"  [{row['category']}] v{row['version']} {state}"
        )
        click.echo(f"    {row['agent_name']}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output path (defaults to SOURCE with a .webp suffix)",
)
def compress(source: Path, output: Path | None) -> None:
    """Compress a PNG screenshot to WebP."""
    from siteaudit.imaging import compress_screenshot_to_webp

    target = output or source.with_suffix(".webp")
    data = source.read_bytes()
    result = compress_screenshot_to_webp(data)
    target.write_bytes(result.buffer)

    click.echo(
        f"Wrote {target} ({result.content_type}, {len(data)} -> {len(result.buffer)} bytes)"
    )


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
