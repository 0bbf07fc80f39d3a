"""
hostprov — CLI entrypoint.

Usage:
    hostprov --help
    hostprov install --dry-run
    hostprov list-packages
    hostprov config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hostprov import __version__
from hostprov.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="hostprov")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to hostprov.yaml (default: auto-detect).",
)
@click.option(
    "--os",
    "os_override",
    type=click.Choice(["linux", "windows"]),
    default=None,
    help="Override OS detection.",
)
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be done without making changes.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    os_override: str | None,
    dry_run: bool,
) -> None:
    """hostprov — declarative host provisioning."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["os_override"] = os_override
    ctx.obj["dry_run"] = dry_run

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


@cli.group()
def config() -> None:
    """Catalog configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate hostprov.yaml."""
    from hostprov.core.config.validate import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.catalog is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Version: {result.catalog.version}")
        click.echo(f"   Applications: {len(result.catalog.applications)}")
        click.echo(f"   Entries: {len(result.catalog.entries)}")
        click.echo(f"   Packages: {result.catalog.package_count}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register command groups ─────────────────────────────────────

from hostprov.ui.cli.packages import backends, install, list_packages, status  # noqa: E402

cli.add_command(install)
cli.add_command(list_packages)
cli.add_command(status)
cli.add_command(backends)


if __name__ == "__main__":
    cli()
