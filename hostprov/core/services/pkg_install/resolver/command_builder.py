"""
L2 Resolver — Install command builder.

Pure and deterministic: takes a package, a method and an OS, returns
the argv that would install it, or None. Never spawns, never touches
the filesystem. The same argv is used for dry-run previews and real
execution, so what a preview shows is exactly what runs.
"""

from __future__ import annotations

import shlex

from hostprov.core.models.package import (
    GitSpec,
    InstallMethod,
    MethodKind,
    Package,
    URLInstall,
)
from hostprov.core.services.pkg_install.data.managers import (
    MANAGER_COMMANDS,
    OS_WINDOWS,
    PKG_PLACEHOLDER,
)

FILE_PLACEHOLDER = "{file}"


def build_command(pkg: Package, method: InstallMethod | str, os_type: str) -> list[str] | None:
    """Build the install argv for ``pkg`` via ``method`` on ``os_type``.

    Args:
        pkg: Canonical package.
        method: An ``InstallMethod`` or its name (``pacman``, ``git``,
            ``installer``, ``custom``, ``url``).
        os_type: ``linux`` / ``windows``.

    Returns:
        argv list, or None when the package has nothing for that method
        on that OS (or the method is unknown).
    """
    if isinstance(method, str):
        method = InstallMethod.parse(method)

    kind = method.kind
    if kind == MethodKind.MANAGER:
        value = pkg.managers.get(method.manager)
        if value is None or value.is_git() or value.is_installer():
            return None
        return manager_install_command(method.manager, value.package_name)

    if kind == MethodKind.GIT:
        spec = pkg.git_spec()
        if spec is None:
            return None
        target = spec.targets.get(os_type, "")
        if not target:
            return None
        return build_git_clone(spec, target)

    if kind == MethodKind.INSTALLER:
        installer = pkg.installer_spec()
        if installer is None or os_type not in installer.command:
            return None
        return wrap_shell(os_type, installer.command[os_type])

    if kind == MethodKind.CUSTOM:
        if os_type not in pkg.custom:
            return None
        return wrap_shell(os_type, pkg.custom[os_type])

    if kind == MethodKind.URL:
        if os_type not in pkg.url:
            return None
        return wrap_shell(os_type, build_url_script(pkg.url[os_type], os_type))

    return None


def manager_install_command(manager: str, package_name: str) -> list[str] | None:
    """Install argv from the manager table, or None for an unknown manager."""
    commands = MANAGER_COMMANDS.get(manager)
    if commands is None:
        return None
    return _expand(commands.install, package_name)


def check_command(manager: str, package_name: str) -> list[str] | None:
    """Per-package check argv, or None (unknown or bulk-listed manager)."""
    commands = MANAGER_COMMANDS.get(manager)
    if commands is None or not commands.check:
        return None
    return _expand(commands.check, package_name)


def _expand(template: tuple[str, ...], package_name: str) -> list[str]:
    return [package_name if arg == PKG_PLACEHOLDER else arg for arg in template]


# ── Git ─────────────────────────────────────────────────────────


def build_git_clone(spec: GitSpec, target: str) -> list[str]:
    argv = ["git", "clone"]
    if spec.branch:
        argv += ["-b", spec.branch]
    argv += [spec.url, target]
    return _sudo(argv) if spec.sudo else argv


def build_git_pull(spec: GitSpec, target: str) -> list[str]:
    argv = ["git", "-C", target, "pull"]
    return _sudo(argv) if spec.sudo else argv


def _sudo(argv: list[str]) -> list[str]:
    return ["sudo", *argv]


# ── Shell ───────────────────────────────────────────────────────


def wrap_shell(os_type: str, command: str) -> list[str]:
    """OS-native shell invocation of a command string."""
    if os_type == OS_WINDOWS:
        return ["powershell", "-Command", command]
    return ["sh", "-c", command]


def build_url_script(url_install: URLInstall, os_type: str) -> str:
    """One self-cleaning script: private temp dir, download, run, remove.

    The temp directory is created fresh (``mktemp -d`` / a GUID name)
    and removed on every exit path, including interrupts.
    """
    if os_type == OS_WINDOWS:
        return _powershell_url_script(url_install)
    return _posix_url_script(url_install)


def _posix_url_script(url_install: URLInstall) -> str:
    command = url_install.command.replace(FILE_PLACEHOLDER, '"$tmpfile"')
    lines = [
        'tmpdir=$(mktemp -d "${TMPDIR:-/tmp}/hostprov.XXXXXXXX") || exit 1',
        "trap 'rm -rf \"$tmpdir\"' EXIT",
        "pid=",
        "trap '[ -n \"$pid\" ] && kill \"$pid\" 2>/dev/null; exit 130' INT",
        "trap '[ -n \"$pid\" ] && kill \"$pid\" 2>/dev/null; exit 143' TERM",
        'tmpfile="$tmpdir/installer"',
        # Backgrounded so a signal to the shell alone still interrupts the download
        f'curl -fsSL -o "$tmpfile" {shlex.quote(url_install.url)} &',
        'pid=$!',
        'wait "$pid" || exit 1',
        "pid=",
        'chmod +x "$tmpfile" || exit 1',
        command,
    ]
    return "\n".join(lines)


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _powershell_url_script(url_install: URLInstall) -> str:
    lines = [
        "$ErrorActionPreference = 'Stop'",
        "$tmpdir = Join-Path ([System.IO.Path]::GetTempPath()) ('hostprov-' + [guid]::NewGuid().ToString())",
        "New-Item -ItemType Directory -Path $tmpdir | Out-Null",
        "try {",
        "  $tmpfile = Join-Path $tmpdir 'installer'",
        f"  Invoke-WebRequest -Uri {_ps_quote(url_install.url)} -OutFile $tmpfile -UseBasicParsing",
        f"  $cmd = {_ps_quote(url_install.command)}.Replace('{FILE_PLACEHOLDER}', $tmpfile)",
        "  Invoke-Expression $cmd",
        "  if ($LASTEXITCODE) { exit $LASTEXITCODE }",
        "} finally {",
        "  Remove-Item -Recurse -Force -ErrorAction SilentlyContinue $tmpdir",
        "}",
    ]
    return "\n".join(lines)


def format_command(argv: list[str]) -> str:
    """Human-readable command text, embedded in dry-run messages."""
    return " ".join(argv)
