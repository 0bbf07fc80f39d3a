"""
L0 Data — Package manager command table.

Pure data. No logic. No imports beyond stdlib.

Every traditional manager maps to an install argv template and a
check argv template. ``{pkg}`` is replaced with the manager-specific
package name. Managers flagged ``bulk_list`` are checked through a
single cached "list everything installed" invocation instead of the
per-package check.
"""

from __future__ import annotations

from dataclasses import dataclass, field

PKG_PLACEHOLDER = "{pkg}"

OS_LINUX = "linux"
OS_WINDOWS = "windows"


@dataclass(frozen=True)
class ManagerCommands:
    """Install / check argv templates for one manager."""

    install: tuple[str, ...]
    check: tuple[str, ...] = ()
    bulk_list: tuple[str, ...] = field(default=())


MANAGER_COMMANDS: dict[str, ManagerCommands] = {
    "pacman": ManagerCommands(
        install=("sudo", "pacman", "-S", "--noconfirm", PKG_PLACEHOLDER),
        check=("pacman", "-Q", PKG_PLACEHOLDER),
    ),
    "yay": ManagerCommands(
        install=("yay", "-S", "--noconfirm", PKG_PLACEHOLDER),
        check=("pacman", "-Q", PKG_PLACEHOLDER),
    ),
    "paru": ManagerCommands(
        install=("paru", "-S", "--noconfirm", PKG_PLACEHOLDER),
        check=("pacman", "-Q", PKG_PLACEHOLDER),
    ),
    "apt": ManagerCommands(
        install=("sudo", "apt-get", "install", "-y", PKG_PLACEHOLDER),
        check=("dpkg", "-s", PKG_PLACEHOLDER),
    ),
    "dnf": ManagerCommands(
        install=("sudo", "dnf", "install", "-y", PKG_PLACEHOLDER),
        check=("rpm", "-q", PKG_PLACEHOLDER),
    ),
    "brew": ManagerCommands(
        install=("brew", "install", PKG_PLACEHOLDER),
        check=("brew", "list", PKG_PLACEHOLDER),
    ),
    # winget is slow and errors (0x8a150001) under parallel per-package
    # queries, so it is listed once and cached.
    "winget": ManagerCommands(
        install=(
            "winget", "install",
            "--accept-package-agreements", "--accept-source-agreements",
            PKG_PLACEHOLDER,
        ),
        bulk_list=("winget", "list", "--disable-interactivity", "--accept-source-agreements"),
    ),
    "scoop": ManagerCommands(
        install=("scoop", "install", PKG_PLACEHOLDER),
        check=("scoop", "info", PKG_PLACEHOLDER),
    ),
    "choco": ManagerCommands(
        install=("choco", "install", "-y", PKG_PLACEHOLDER),
        check=("choco", "list", "--local-only", PKG_PLACEHOLDER),
    ),
}

# Detection order. Also the default per-package priority.
KNOWN_MANAGERS: tuple[str, ...] = (
    "yay", "paru", "pacman", "apt", "dnf", "brew",
    "winget", "scoop", "choco",
    "git",
)

# Managers that only make sense on one OS family. ``git`` is everywhere.
MANAGERS_FOR_OS: dict[str, tuple[str, ...]] = {
    OS_LINUX: ("yay", "paru", "pacman", "apt", "dnf", "brew"),
    OS_WINDOWS: ("winget", "scoop", "choco"),
}
CROSS_PLATFORM_MANAGERS: tuple[str, ...] = ("git",)

# Preferred-manager fallback when nothing is configured.
PREFERRED_FALLBACK: dict[str, tuple[str, ...]] = {
    OS_WINDOWS: ("winget", "scoop", "choco"),
    OS_LINUX: ("yay", "paru", "pacman", "apt", "dnf", "brew"),
}
