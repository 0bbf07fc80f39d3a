"""
L3 Detection — Available install backends.

Searches PATH for every known manager, in detection order. Managers
that belong to another OS family are never reported (MSYS2 ships a
``pacman`` on Windows). On WSL, PATH entries under Windows drive
mounts are skipped: they are slow 9p/drvfs mounts and never hold a
Linux package manager.

Results are memoized per (os, wsl) pair because PATH rarely changes
during a run. ``reset_available_backends_cache()`` clears them.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from pathlib import Path

from hostprov.core.services.pkg_install.data.managers import (
    KNOWN_MANAGERS,
    MANAGERS_FOR_OS,
)

logger = logging.getLogger(__name__)

_PROC_MOUNTS = Path("/proc/mounts")

_cache: dict[tuple[str, bool], list[str]] = {}
_cache_lock = threading.Lock()


def detect_available_backends(os_type: str | None = None, is_wsl: bool = False) -> list[str]:
    """Return the managers found on this host, in detection order.

    Args:
        os_type: ``linux`` / ``windows``. None or unknown allows every manager.
        is_wsl: Skip PATH entries under Windows drive mounts.

    Returns:
        A fresh list of manager ids.
    """
    key = (os_type or "", is_wsl)
    with _cache_lock:
        cached = _cache.get(key)
        if cached is None:
            cached = _scan_path(os_type, is_wsl)
            _cache[key] = cached
            logger.debug("Available backends (%s, wsl=%s): %s", key[0] or "any", is_wsl, cached)
    return list(cached)


def reset_available_backends_cache() -> None:
    """Forget memoized detection results."""
    with _cache_lock:
        _cache.clear()


def is_manager_valid_for_os(manager: str, os_type: str | None) -> bool:
    """True unless ``manager`` is specific to an OS other than ``os_type``."""
    if not os_type or os_type not in MANAGERS_FOR_OS:
        return True
    if manager in MANAGERS_FOR_OS[os_type]:
        return True
    return not any(
        manager in managers
        for other, managers in MANAGERS_FOR_OS.items()
        if other != os_type
    )


def _scan_path(os_type: str | None, is_wsl: bool) -> list[str]:
    mounts = windows_drive_mounts() if is_wsl else []
    available = []
    for manager in KNOWN_MANAGERS:
        if not is_manager_valid_for_os(manager, os_type):
            continue
        found = _which_skipping(manager, mounts) if mounts else shutil.which(manager) is not None
        if found:
            available.append(manager)
    return available


def windows_drive_mounts(mounts_file: Path = _PROC_MOUNTS) -> list[str]:
    """Mount points of Windows drives under WSL (``9p`` with ``drvfs``)."""
    try:
        text = mounts_file.read_text(encoding="utf-8")
    except OSError:
        return []

    result = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 4:
            continue
        if fields[2] == "9p" and "drvfs" in fields[3]:
            result.append(fields[1])
    return result


def is_under_mount(directory: str, mounts: list[str]) -> bool:
    return any(directory == m or directory.startswith(m + "/") for m in mounts)


def _which_skipping(name: str, mounts: list[str]) -> bool:
    path_env = os.environ.get("PATH", "")
    for directory in path_env.split(os.pathsep):
        if not directory or is_under_mount(directory, mounts):
            continue
        candidate = Path(directory) / name
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return True
    return False
