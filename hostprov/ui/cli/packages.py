"""
CLI commands for package provisioning.

Thin wrappers over ``hostprov.core.services.pkg_install`` and
``hostprov.core.services.selection``.
"""

from __future__ import annotations

import json
import signal
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from hostprov.core.models.catalog import Catalog
    from hostprov.core.models.package import Package
    from hostprov.core.services.pkg_install import HostInfo, Orchestrator


@dataclass
class _Run:
    """Everything a command needs: catalog, host, applicable packages, orchestrator."""

    catalog: Catalog
    host: HostInfo
    packages: list[Package]
    orchestrator: Orchestrator


def _detect_host(ctx: click.Context) -> HostInfo:
    from hostprov.core.services.pkg_install.detection.host import detect_host

    host = detect_host()
    os_override: str | None = ctx.obj.get("os_override")
    if os_override:
        host = host.with_os(os_override)
    return host


def _prepare(ctx: click.Context, dry_run: bool = False) -> _Run:
    """Load the catalog, detect the host and select applicable packages.

    Exits with status 1 when the catalog cannot be loaded.
    """
    from hostprov.core.config.loader import ConfigError, load_catalog
    from hostprov.core.services.pkg_install import Orchestrator, PackageCatalog
    from hostprov.core.services.selection import EntrySelector, Matcher, TemplateRenderer

    config_path: Path | None = ctx.obj.get("config_path")
    try:
        catalog = load_catalog(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    host = _detect_host(ctx)
    matcher = Matcher(host.filter_context(), TemplateRenderer.from_host(host))
    packages = EntrySelector(catalog, matcher).packages()

    orchestrator = Orchestrator(
        PackageCatalog(
            packages=packages,
            default_manager=catalog.default_manager,
            manager_priority=catalog.manager_priority,
        ),
        host.os,
        dry_run=dry_run,
        verbose=ctx.obj.get("verbose", False),
        is_wsl=host.is_wsl,
    )
    return _Run(catalog=catalog, host=host, packages=packages, orchestrator=orchestrator)


@contextmanager
def _cancel_on_signal(orchestrator: Orchestrator):
    """Cancel the whole batch on SIGINT / SIGTERM."""

    def _handler(signum, frame):
        click.echo("\nOperation canceled by user")
        orchestrator.scope.cancel()

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


# ── Install ─────────────────────────────────────────────────────


@click.command("install")
@click.argument("names", nargs=-1)
@click.pass_context
def install(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Install applicable packages (all, or only NAMES)."""
    dry_run = ctx.obj.get("dry_run", False)
    run = _prepare(ctx, dry_run=dry_run)
    orch = run.orchestrator

    click.echo(f"Detected OS: {run.host.os}")
    if run.catalog.backup_root:
        click.echo(f"Config directory: {run.catalog.backup_root}")

    if not run.packages:
        click.secho("❌ No matching packages configured", fg="red")
        sys.exit(1)

    click.echo(f"Available package managers: {', '.join(orch.available) or '(none)'}")
    if orch.preferred:
        click.echo(f"Preferred package manager: {orch.preferred}")
    if dry_run:
        click.secho("=== DRY RUN MODE ===", fg="yellow", bold=True)

    to_install = orch.get_installable_packages()
    if names:
        wanted = set(names)
        to_install = [p for p in to_install if p.name in wanted]
        missing = wanted - {p.name for p in to_install}
        for name in sorted(missing):
            click.secho(f"⚠️  {name}: not applicable or not installable on this host", fg="yellow")

    with _cancel_on_signal(orch):
        results = orch.install_all(to_install)

    ok = 0
    failed = 0
    for r in results:
        if r.success:
            ok += 1
            click.secho(r.report_line(), fg="green")
        else:
            failed += 1
            click.secho(r.report_line(), fg="red")

    click.echo(f"\nInstallation complete: {ok} successful, {failed} failed")
    if failed:
        sys.exit(1)


# ── Observe ─────────────────────────────────────────────────────


@click.command("list-packages")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_packages(ctx: click.Context, as_json: bool) -> None:
    """List applicable packages and how each would be installed."""
    run = _prepare(ctx)
    orch = run.orchestrator

    rows = []
    for pkg in run.packages:
        can_install = orch.can_install(pkg)
        rows.append({
            "name": pkg.name,
            "description": pkg.description,
            "installable": can_install,
            "method": orch.get_install_method(pkg) if can_install else "unavailable",
            "command": orch.preview(pkg) if can_install else None,
        })

    if as_json:
        click.echo(json.dumps({"available": orch.available, "packages": rows}, indent=2))
        return

    if not rows:
        click.echo("No matching packages configured")
        return

    click.echo(f"Available package managers: {', '.join(orch.available) or '(none)'}\n")
    for row in rows:
        mark = "✓" if row["installable"] else "✗"
        click.echo(f"{mark} {row['name']} ({row['method']})")
        if row["description"]:
            click.echo(f"    {row['description']}")
        if ctx.obj.get("verbose") and row["command"]:
            click.echo(f"    → {row['command']}")


@click.command("status")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--workers", default=4, show_default=True, help="Concurrent status checks.")
@click.pass_context
def status(ctx: click.Context, as_json: bool, workers: int) -> None:
    """Show which applicable packages are already installed."""
    run = _prepare(ctx)
    orch = run.orchestrator

    installed = orch.installed_status(run.packages, max_workers=workers)
    rows = [
        {
            "name": pkg.name,
            "method": orch.get_install_method(pkg),
            "installed": installed.get(pkg.name, False),
        }
        for pkg in run.packages
    ]

    if as_json:
        click.echo(json.dumps({"packages": rows}, indent=2))
        return

    if not rows:
        click.echo("No matching packages configured")
        return

    n_installed = sum(1 for r in rows if r["installed"])
    click.secho(f"📦 Packages: {n_installed}/{len(rows)} installed", fg="cyan", bold=True)
    for row in rows:
        if row["installed"]:
            click.secho(f"   ✅ {row['name']} ({row['method']})", fg="green")
        else:
            click.secho(f"   ❌ {row['name']} ({row['method']})", fg="red")


@click.command("backends")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def backends(ctx: click.Context, as_json: bool) -> None:
    """Show detected host attributes and available install backends."""
    from hostprov.core.services.pkg_install import detect_available_backends

    host = _detect_host(ctx)
    available = detect_available_backends(host.os, is_wsl=host.is_wsl)

    if as_json:
        click.echo(json.dumps({"host": host.to_dict(), "available": available}, indent=2))
        return

    click.secho("🖥️  Host:", fg="cyan", bold=True)
    click.echo(f"   OS:       {host.os}")
    if host.distro:
        click.echo(f"   Distro:   {host.distro}")
    click.echo(f"   Hostname: {host.hostname}")
    click.echo(f"   User:     {host.user}")
    if host.is_wsl:
        click.echo("   WSL:      yes")
    click.echo()
    click.secho("📦 Backends:", fg="cyan", bold=True)
    if not available:
        click.secho("   ⚠️  No package managers detected", fg="yellow")
    for name in available:
        click.echo(f"   • {name}")
