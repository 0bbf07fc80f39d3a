"""
L3 Detection — Host attributes.

Reads OS, distribution, hostname, user, WSL and display state.
Read-only: file reads and env var reads, plus one optional
PowerShell profile lookup on Windows.
"""

from __future__ import annotations

import getpass
import logging
import os
import socket
import subprocess
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path

import distro

from hostprov.core.models.filtering import FilterContext
from hostprov.core.services.pkg_install.data.managers import OS_LINUX, OS_WINDOWS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostInfo:
    """Detected host attributes."""

    os: str
    distro: str = ""
    hostname: str = ""
    user: str = ""
    is_wsl: bool = False
    has_display: bool = False
    env_vars: dict[str, str] = field(default_factory=dict)

    def filter_context(self) -> FilterContext:
        return FilterContext(
            os=self.os,
            distro=self.distro,
            hostname=self.hostname,
            user=self.user,
        )

    def with_os(self, os_type: str) -> HostInfo:
        return replace(self, os=os_type, env_vars=dict(self.env_vars))

    def to_dict(self) -> dict:
        return {
            "os": self.os,
            "distro": self.distro,
            "hostname": self.hostname,
            "user": self.user,
            "is_wsl": self.is_wsl,
            "has_display": self.has_display,
        }


def detect_host() -> HostInfo:
    """Detect the current host."""
    os_type = detect_os()
    return HostInfo(
        os=os_type,
        distro=_detect_distro() if os_type == OS_LINUX else "",
        hostname=_detect_hostname(),
        user=_detect_user(),
        is_wsl=detect_wsl(),
        has_display=_detect_display(os_type),
        env_vars=_detect_powershell_profile() if os_type == OS_WINDOWS else {},
    )


def detect_os() -> str:
    """``windows`` on Windows (or when ``$OS`` says so), else ``linux``."""
    if sys.platform == "win32":
        return OS_WINDOWS
    if "windows" in os.environ.get("OS", "").lower():
        return OS_WINDOWS
    return OS_LINUX


def detect_wsl() -> bool:
    try:
        text = Path("/proc/version").read_text(encoding="utf-8").lower()
    except OSError:
        return False
    return "microsoft" in text or "wsl" in text


def _detect_distro() -> str:
    """Distribution ID (arch, ubuntu, fedora, ...)."""
    distro_id = distro.id()
    if not distro_id:
        logger.debug("Unable to detect linux distribution, using empty value")
    return distro_id


def _detect_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError as e:
        logger.debug("Unable to detect hostname: %s", e)
        return ""


def _detect_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        logger.debug("Unable to detect current user: %s", e)
        return ""


def _detect_display(os_type: str) -> bool:
    if os_type == OS_WINDOWS:
        return True
    if os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"):
        return True

    runtime_dir = Path(os.environ.get("XDG_RUNTIME_DIR") or f"/run/user/{os.getuid()}")
    try:
        if any(
            p.name.startswith("wayland-") and not p.name.endswith(".lock")
            for p in runtime_dir.iterdir()
        ):
            return True
    except OSError:
        pass

    try:
        return any(p.name.startswith("X") for p in Path("/tmp/.X11-unix").iterdir())
    except OSError:
        return False


def _detect_powershell_profile() -> dict[str, str]:
    """Expose the PowerShell profile location to templates."""
    try:
        result = subprocess.run(
            ["pwsh", "-NoProfile", "-Command", "echo $PROFILE"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("PowerShell profile lookup failed: %s", e)
        return {}

    profile = result.stdout.strip()
    if result.returncode != 0 or not profile:
        return {}

    path = Path(profile)
    return {
        "PWSH_PROFILE": profile,
        "PWSH_PROFILE_FILE": path.name,
        "PWSH_PROFILE_PATH": str(path.parent),
    }
