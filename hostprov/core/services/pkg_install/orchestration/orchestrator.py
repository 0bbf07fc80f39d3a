"""
L5 Orchestration — Package install orchestrator.

Drives one package at a time through:

    dependencies → method selection → command plan → execute / preview

Installs are strictly sequential. Two package manager processes
running at once (two ``pacman -S``) fight over the same lock and
database.

Every failure below catalog loading is captured in that package's
``InstallResult``; ``install_all`` never stops early.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field

from hostprov.core.config.loader import expand_path
from hostprov.core.models.package import (
    GIT,
    INSTALLER,
    InstallMethod,
    InstallResult,
    MethodKind,
    Package,
)
from hostprov.core.services.pkg_install.detection.backends import detect_available_backends
from hostprov.core.services.pkg_install.detection.status import Runner, StatusChecker
from hostprov.core.services.pkg_install.execution.subprocess_runner import (
    CancelScope,
    run_command,
)
from hostprov.core.services.pkg_install.resolver.command_builder import (
    build_command,
    build_git_clone,
    build_git_pull,
    format_command,
    manager_install_command,
)
from hostprov.core.services.pkg_install.resolver.method_selection import (
    select_method,
    select_preferred_manager,
)

logger = logging.getLogger(__name__)

NO_METHOD_MESSAGE = "No installation method available for this OS/system"
CANCELLED_MESSAGE = "Cancelled"


class PackageCatalog(BaseModel):
    """What the orchestrator needs from a catalog."""

    packages: list[Package] = Field(default_factory=list)
    default_manager: str = ""
    manager_priority: list[str] = Field(default_factory=list)


@dataclass
class _Step:
    """A planned command, or the reason there is none."""

    argv: list[str] | None = None
    label: str = ""          # "<label> failed: ..." on error
    success: str = ""        # message on success
    error: str = ""


class Orchestrator:
    """Installs canonical packages on one host."""

    def __init__(
        self,
        catalog: PackageCatalog,
        os_type: str,
        dry_run: bool = False,
        verbose: bool = False,
        *,
        available: Sequence[str] | None = None,
        status: StatusChecker | None = None,
        scope: CancelScope | None = None,
        runner: Runner = run_command,
        is_wsl: bool = False,
    ) -> None:
        self.catalog = catalog
        self.os_type = os_type
        self.dry_run = dry_run
        self.verbose = verbose
        self.scope = scope or CancelScope()
        self._runner = runner

        if available is None:
            available = detect_available_backends(os_type, is_wsl=is_wsl)
        self.available: list[str] = list(available)
        self._available_set = frozenset(self.available)

        self.status = status or StatusChecker(runner=runner, scope=self.scope)
        self.preferred = select_preferred_manager(
            self.available,
            os_type,
            catalog.manager_priority,
            catalog.default_manager,
        )
        logger.debug(
            "Orchestrator ready: os=%s available=%s preferred=%s dry_run=%s",
            os_type, self.available, self.preferred, dry_run,
        )

    def has_manager(self, manager: str) -> bool:
        return manager in self._available_set

    # ── Install ─────────────────────────────────────────────────

    def install(self, pkg: Package) -> InstallResult:
        """Install one package with the best available method."""
        if self.scope.cancelled:
            return InstallResult(package=pkg.name, success=False, message=CANCELLED_MESSAGE)

        dep_failure = self._install_deps(pkg)
        if dep_failure is not None:
            return dep_failure

        method = self.select_method(pkg)
        result = InstallResult(package=pkg.name, method=method.name)

        step = self._plan(pkg, method)
        if step.error:
            result.message = step.error
            return result

        assert step.argv is not None
        result.success, result.message = self._execute(step)
        return result

    def install_all(self, packages: Iterable[Package]) -> list[InstallResult]:
        """Install in input order. Failures never stop the batch."""
        results = []
        for pkg in packages:
            if self.scope.cancelled:
                result = InstallResult(package=pkg.name, success=False, message=CANCELLED_MESSAGE)
            else:
                result = self.install(pkg)
            level = logging.INFO if result.success else logging.WARNING
            logger.log(level, "%s via %s: %s", pkg.name, result.method or "-", result.message)
            results.append(result)
        return results

    def _install_deps(self, pkg: Package) -> InstallResult | None:
        """Install declared deps. The first failure fails the whole package."""
        for manager, value in pkg.managers.items():
            if not value.deps or manager in (GIT, INSTALLER):
                continue
            if not self.has_manager(manager):
                continue
            for dep in value.deps:
                ok, msg = self._install_with_manager(manager, dep)
                if not ok:
                    return InstallResult(
                        package=pkg.name,
                        method=manager,
                        success=False,
                        message=f"Dependency {dep} failed via {manager}: {msg}",
                    )
                logger.info("Dependency %s of %s via %s: %s", dep, pkg.name, manager, msg)
        return None

    def _install_with_manager(self, manager: str, package_name: str) -> tuple[bool, str]:
        step = self._manager_step(manager, package_name)
        if step.error:
            return False, step.error
        return self._execute(step)

    def _execute(self, step: _Step) -> tuple[bool, str]:
        assert step.argv is not None
        logger.log(logging.INFO if self.verbose else logging.DEBUG, "%s: %s", step.label, format_command(step.argv))
        if self.dry_run:
            return True, f"Would run: {format_command(step.argv)}"

        result = self._runner(step.argv, scope=self.scope)
        if result.cancelled:
            return False, CANCELLED_MESSAGE
        if not result.ok:
            return False, f"{step.label} failed: {result.describe_failure()}"
        return True, step.success

    # ── Planning ────────────────────────────────────────────────

    def select_method(self, pkg: Package) -> InstallMethod:
        return select_method(pkg, self.os_type, self.available)

    def _plan(self, pkg: Package, method: InstallMethod) -> _Step:
        kind = method.kind
        if kind == MethodKind.NONE:
            return _Step(error=NO_METHOD_MESSAGE)

        if kind == MethodKind.MANAGER:
            return self._manager_step(method.manager, pkg.managers[method.manager].package_name)

        if kind == MethodKind.GIT:
            return self._git_step(pkg)

        argv = build_command(pkg, method, self.os_type)
        if argv is None:
            return _Step(error=f"No {kind.value} command defined for OS: {self.os_type}")

        if kind == MethodKind.INSTALLER:
            return _Step(argv, "Installer command", "Installed via installer")
        if kind == MethodKind.CUSTOM:
            return _Step(argv, "Custom command", "Installed via custom command")
        return _Step(argv, "URL install", "Installed via URL")

    def _manager_step(self, manager: str, package_name: str) -> _Step:
        argv = manager_install_command(manager, package_name)
        if argv is None:
            return _Step(error=f"Unknown package manager: {manager}")
        return _Step(argv, "Installation", f"Installed via {manager}")

    def _git_step(self, pkg: Package) -> _Step:
        spec = pkg.git_spec()
        assert spec is not None
        target = self._git_target(pkg)
        if target is None:
            return _Step(error=f"No git target path defined for OS: {self.os_type}")

        if (target / ".git").is_dir():
            return _Step(build_git_pull(spec, str(target)), "Git pull", "Repository updated successfully")
        return _Step(build_git_clone(spec, str(target)), "Git clone", "Repository cloned successfully")

    def _git_target(self, pkg: Package) -> Path | None:
        spec = pkg.git_spec()
        if spec is None:
            return None
        target = spec.targets.get(self.os_type, "")
        if not target:
            return None
        return Path(expand_path(target))

    def preview(self, pkg: Package) -> str | None:
        """The command ``install`` would run for ``pkg``, or None."""
        step = self._plan(pkg, self.select_method(pkg))
        if step.argv is None:
            return None
        return format_command(step.argv)

    # ── Queries ─────────────────────────────────────────────────

    def can_install(self, pkg: Package) -> bool:
        """True when some method could install ``pkg`` on this host."""
        if any(m in pkg.managers for m in self.available):
            return True
        installer = pkg.installer_spec()
        if installer is not None and self.os_type in installer.command:
            return True
        return self.os_type in pkg.custom or self.os_type in pkg.url

    def get_install_method(self, pkg: Package) -> str:
        """Name of the method ``install`` would use (``pacman``, ``git``, ..., ``none``)."""
        return self.select_method(pkg).name

    def get_installable_packages(self) -> list[Package]:
        return [pkg for pkg in self.catalog.packages if self.can_install(pkg)]

    def is_package_installed(self, pkg: Package) -> bool:
        method = self.select_method(pkg)
        if method.kind == MethodKind.GIT:
            target = self._git_target(pkg)
            return target is not None and (target / ".git").is_dir()
        if method.kind == MethodKind.INSTALLER:
            installer = pkg.installer_spec()
            return installer is not None and self.status.is_installer_installed(installer.binary)
        if method.kind == MethodKind.MANAGER:
            return self.status.is_installed(pkg.managers[method.manager].package_name, method.manager)
        return False

    def installed_status(self, packages: Iterable[Package], max_workers: int = 4) -> dict[str, bool]:
        """Installed state of many packages; manager checks run concurrently."""
        packages = list(packages)
        requests: dict[str, tuple[str, str]] = {}
        for pkg in packages:
            method = self.select_method(pkg)
            if method.kind == MethodKind.MANAGER:
                requests[pkg.name] = (pkg.managers[method.manager].package_name, method.manager)

        checked = self.status.check_many(requests.values(), max_workers=max_workers)

        result = {}
        for pkg in packages:
            if pkg.name in requests:
                result[pkg.name] = checked.get(requests[pkg.name], False)
            else:
                result[pkg.name] = self.is_package_installed(pkg)
        return result
