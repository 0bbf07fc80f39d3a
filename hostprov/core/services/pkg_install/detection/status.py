"""
L3 Detection — Installed-package status.

Two strategies, chosen per manager from the command table:

- Per-package check: run the manager's check argv; exit 0 ⇒ installed.
- Bulk list: run one "list everything installed" command the first
  time a manager is queried, parse it into a lowercase id set, and
  answer every later query from that set.

The bulk cache is safe under concurrent use. Each manager has its
own lock, so concurrent first queries trigger a single listing and
all callers see the same result.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

from hostprov.core.services.pkg_install.data.managers import MANAGER_COMMANDS
from hostprov.core.services.pkg_install.execution.subprocess_runner import (
    CancelScope,
    CommandResult,
    run_command,
)
from hostprov.core.services.pkg_install.resolver.command_builder import (
    check_command,
    format_command,
)

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandResult]


# ── Bulk list cache ─────────────────────────────────────────────


class BulkListCache:
    """Run-once, per-manager cache of installed package ids.

    ``reset`` drops entries but keeps the per-manager locks, and bumps a
    generation so a listing that was in flight during the reset is
    returned to its caller without being stored.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._entries: dict[str, frozenset[str]] = {}
        self._generation = 0

    def lookup_or_build(self, manager: str, builder: Callable[[], Iterable[str]]) -> frozenset[str]:
        """Return the cached id set for ``manager``, building it once."""
        with self._guard:
            lock = self._locks.setdefault(manager, threading.Lock())

        with lock:
            with self._guard:
                entry = self._entries.get(manager)
                generation = self._generation
            if entry is None:
                entry = frozenset(i.lower() for i in builder())
                with self._guard:
                    if generation == self._generation:
                        self._entries[manager] = entry
            return entry

    def reset(self) -> None:
        with self._guard:
            self._entries.clear()
            self._generation += 1

    def __contains__(self, manager: str) -> bool:
        return manager in self._entries


# ── winget output parsing ───────────────────────────────────────


def clean_winget_output(text: str) -> list[str]:
    """Split into lines, dropping spinner frames.

    When piped, winget draws its progress spinner with bare ``\\r``.
    CRLF is normalized first, then only the text after the last
    ``\\r`` on each line is kept.
    """
    lines = []
    for line in text.replace("\r\n", "\n").split("\n"):
        idx = line.rfind("\r")
        lines.append(line[idx + 1:] if idx >= 0 else line)
    return lines


def parse_winget_list_output(text: str) -> set[str]:
    """Extract lowercase package ids from ``winget list`` output.

    Column widths depend on the longest value, so the Id column is
    located from the header row above the all-dash separator.
    """
    lines = clean_winget_output(text)

    sep_idx = -1
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped and set(stripped) == {"-"}:
            sep_idx = i
            break

    if sep_idx < 1:
        logger.debug("winget list: no header separator found")
        return set()

    header = lines[sep_idx - 1]
    id_start = header.find("Id")
    if id_start < 0:
        logger.debug("winget list: no Id column in header")
        return set()

    version_start = header.find("Version")
    id_end = version_start if version_start > id_start else None

    ids = set()
    for line in lines[sep_idx + 1:]:
        if len(line) <= id_start:
            continue
        pkg_id = line[id_start:id_end].strip()
        if pkg_id:
            ids.add(pkg_id.lower())

    logger.debug("winget list: %d packages found", len(ids))
    return ids


_BULK_PARSERS: dict[str, Callable[[str], set[str]]] = {
    "winget": parse_winget_list_output,
}


# ── Status checker ──────────────────────────────────────────────


class StatusChecker:
    """Answers "is this package installed?" for every known manager."""

    def __init__(
        self,
        cache: BulkListCache | None = None,
        runner: Runner = run_command,
        scope: CancelScope | None = None,
    ) -> None:
        self.cache = cache or BulkListCache()
        self._runner = runner
        self._scope = scope

    def is_installed(self, pkg_id: str, manager: str) -> bool:
        commands = MANAGER_COMMANDS.get(manager)
        if commands is None:
            logger.debug("No check command for manager %s, assuming %s not installed", manager, pkg_id)
            return False

        if commands.bulk_list:
            ids = self.cache.lookup_or_build(manager, lambda: self._bulk_list(manager))
            found = pkg_id.lower() in ids
            logger.debug(
                "%s %s in %s bulk cache",
                pkg_id, "found" if found else "not found", manager,
            )
            return found

        argv = check_command(manager, pkg_id)
        if argv is None:
            return False

        result = self._runner(argv, scope=self._scope, capture_output=True)
        if not result.ok:
            logger.debug(
                "Check failed for %s via %s (%s): %s %s",
                pkg_id, manager, format_command(argv),
                result.describe_failure(), result.stderr.strip(),
            )
            return False
        return True

    def _bulk_list(self, manager: str) -> set[str]:
        argv = list(MANAGER_COMMANDS[manager].bulk_list)
        logger.debug("Running %s bulk list", manager)
        result = self._runner(argv, scope=self._scope, capture_output=True)
        if not result.ok:
            logger.debug(
                "%s bulk list failed: %s %s",
                manager, result.describe_failure(), result.stderr.strip(),
            )
            return set()

        parser = _BULK_PARSERS.get(manager)
        if parser is None:
            return {line.strip() for line in result.stdout.splitlines() if line.strip()}
        return parser(result.stdout)

    @staticmethod
    def is_installer_installed(binary: str) -> bool:
        """Installer packages count as installed when their binary is on PATH."""
        if not binary:
            return False
        return shutil.which(binary) is not None

    def check_many(
        self,
        requests: Iterable[tuple[str, str]],
        max_workers: int = 4,
    ) -> dict[tuple[str, str], bool]:
        """Run many ``(pkg_id, manager)`` queries concurrently."""
        pending = list(dict.fromkeys(requests))
        if not pending:
            return {}

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = pool.map(lambda req: self.is_installed(*req), pending)
            return dict(zip(pending, results))

    def reset(self) -> None:
        self.cache.reset()
