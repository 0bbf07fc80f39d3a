"""
L2 Resolver — Install method selection.

Decides which method installs a package on this host. The order is
fixed and independent of the preferred manager:

    1. git        — package has a git value (git itself assumed present)
    2. installer  — installer value with a command for this OS
    3. manager    — first available manager (detection order) on the package
    4. custom     — custom command for this OS
    5. url        — URL install for this OS
    6. none
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hostprov.core.models.package import (
    GIT,
    INSTALLER,
    NO_METHOD,
    InstallMethod,
    MethodKind,
    Package,
)
from hostprov.core.services.pkg_install.data.managers import (
    OS_LINUX,
    OS_WINDOWS,
    PREFERRED_FALLBACK,
)

logger = logging.getLogger(__name__)


def select_method(pkg: Package, os_type: str, available: Sequence[str]) -> InstallMethod:
    """Pick the install method for ``pkg``.

    Args:
        pkg: Canonical package.
        os_type: Current OS.
        available: Detected managers, in detection order.

    Returns:
        The selected ``InstallMethod`` (``NO_METHOD`` when nothing fits).
    """
    if pkg.git_spec() is not None:
        return InstallMethod(kind=MethodKind.GIT)

    installer = pkg.installer_spec()
    if installer is not None and os_type in installer.command:
        return InstallMethod(kind=MethodKind.INSTALLER)

    if pkg.managers:
        for manager in available:
            if manager in (GIT, INSTALLER):
                continue
            if manager in pkg.managers:
                return InstallMethod.for_manager(manager)

    if os_type in pkg.custom:
        return InstallMethod(kind=MethodKind.CUSTOM)

    if os_type in pkg.url:
        return InstallMethod(kind=MethodKind.URL)

    logger.debug("No install method for %s on %s (available: %s)", pkg.name, os_type, list(available))
    return NO_METHOD


def select_preferred_manager(
    available: Sequence[str],
    os_type: str,
    manager_priority: Sequence[str] = (),
    default_manager: str = "",
) -> str | None:
    """Host-level preferred manager. Reported only, never decides a method."""
    for manager in manager_priority:
        if manager in available:
            return manager

    if default_manager and default_manager in available:
        return default_manager

    family = OS_WINDOWS if os_type == OS_WINDOWS else OS_LINUX
    for manager in PREFERRED_FALLBACK[family]:
        if manager in available:
            return manager

    return None
