"""
Package models — the canonical, normalized install contract.

Whatever shape a package had in the catalog (flat entry, nested
application, bare-string manager, legacy ``{name, deps}`` object,
git object, installer object) it ends up as a ``Package`` whose
``managers`` map holds ``ManagerValue`` variants.

``InstallResult`` is the per-package outcome. It is never persisted.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hostprov.core.models.filtering import Filter

# Reserved manager keys that are not traditional package managers
GIT = "git"
INSTALLER = "installer"


class ManagerKind(StrEnum):
    """Discriminant for ``ManagerValue``."""

    NAME = "name"            # traditional manager: a package name (+ deps)
    GIT = "git"              # repository clone
    INSTALLER = "installer"  # OS-specific shell command


class GitSpec(BaseModel):
    """Git repository to clone into an OS-specific target."""

    url: str
    branch: str = ""
    targets: dict[str, str] = Field(default_factory=dict)  # os → path
    sudo: bool = False


class InstallerSpec(BaseModel):
    """OS-specific install command, with an optional presence-check binary."""

    command: dict[str, str] = Field(default_factory=dict)  # os → shell command
    binary: str = ""


class URLInstall(BaseModel):
    """Download an artifact and run a command on it (``{file}`` placeholder)."""

    url: str
    command: str


class ManagerValue(BaseModel):
    """Per-manager payload of a package — a closed tagged variant.

    Exactly one payload is set, selected by ``kind``:

        NAME       → package_name (+ optional deps, installed first)
        GIT        → git
        INSTALLER  → installer
    """

    model_config = ConfigDict(frozen=True)

    kind: ManagerKind
    package_name: str = ""
    git: GitSpec | None = None
    installer: InstallerSpec | None = None
    deps: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_payload(self) -> ManagerValue:
        if self.kind == ManagerKind.GIT:
            if self.git is None or self.installer is not None:
                raise ValueError("git manager value must carry exactly a git spec")
        elif self.kind == ManagerKind.INSTALLER:
            if self.installer is None or self.git is not None:
                raise ValueError("installer manager value must carry exactly an installer spec")
        elif self.git is not None or self.installer is not None:
            raise ValueError("named manager value cannot carry a git or installer spec")
        if self.deps and self.kind != ManagerKind.NAME:
            raise ValueError("deps are only supported for named manager values")
        return self

    # ── Constructors ─────────────────────────────────────────────

    @classmethod
    def named(cls, package_name: str, deps: list[str] | None = None) -> ManagerValue:
        return cls(kind=ManagerKind.NAME, package_name=package_name, deps=deps or [])

    @classmethod
    def of_git(cls, spec: GitSpec) -> ManagerValue:
        return cls(kind=ManagerKind.GIT, git=spec)

    @classmethod
    def of_installer(cls, spec: InstallerSpec) -> ManagerValue:
        return cls(kind=ManagerKind.INSTALLER, installer=spec)

    # ── Queries ──────────────────────────────────────────────────

    def is_git(self) -> bool:
        return self.kind == ManagerKind.GIT

    def is_installer(self) -> bool:
        return self.kind == ManagerKind.INSTALLER

    def to_declared(self) -> Any:
        """Dump back to the shape a catalog author would write."""
        if self.kind == ManagerKind.GIT:
            assert self.git is not None
            return self.git.model_dump(exclude_defaults=True)
        if self.kind == ManagerKind.INSTALLER:
            assert self.installer is not None
            return self.installer.model_dump(exclude_defaults=True)
        if self.deps:
            return {"name": self.package_name, "deps": list(self.deps)}
        return self.package_name


class Package(BaseModel):
    """A package to install, with every way it could be installed.

    ``filters`` / ``when`` are the owning application's or entry's
    applicability, carried down so selection does not depend on the
    catalog shape the package came from.
    """

    name: str
    description: str = ""
    managers: dict[str, ManagerValue] = Field(default_factory=dict)
    custom: dict[str, str] = Field(default_factory=dict)          # os → command
    url: dict[str, URLInstall] = Field(default_factory=dict)      # os → download
    filters: list[Filter] = Field(default_factory=list)
    when: str = ""

    def git_spec(self) -> GitSpec | None:
        value = self.managers.get(GIT)
        return value.git if value is not None and value.is_git() else None

    def installer_spec(self) -> InstallerSpec | None:
        value = self.managers.get(INSTALLER)
        return value.installer if value is not None and value.is_installer() else None


class MethodKind(StrEnum):
    """Every way a package can be installed."""

    MANAGER = "manager"
    GIT = "git"
    INSTALLER = "installer"
    CUSTOM = "custom"
    URL = "url"
    NONE = "none"


class InstallMethod(BaseModel):
    """A selected install method. ``manager`` is set only for MANAGER."""

    model_config = ConfigDict(frozen=True)

    kind: MethodKind
    manager: str = ""

    @property
    def name(self) -> str:
        """Reported method name: the manager id, or the kind value."""
        if self.kind == MethodKind.MANAGER:
            return self.manager
        return self.kind.value

    @classmethod
    def for_manager(cls, manager: str) -> InstallMethod:
        return cls(kind=MethodKind.MANAGER, manager=manager)

    @classmethod
    def parse(cls, name: str) -> InstallMethod:
        """Inverse of ``name`` — anything that is not a kind is a manager."""
        for kind in MethodKind:
            if kind != MethodKind.MANAGER and kind.value == name:
                return cls(kind=kind)
        return cls.for_manager(name)

    def __str__(self) -> str:
        return self.name


NO_METHOD = InstallMethod(kind=MethodKind.NONE)


class InstallResult(BaseModel):
    """Outcome of one install attempt."""

    package: str
    method: str = ""
    success: bool = False
    message: str = ""

    def report_line(self) -> str:
        """One-line report: ``[ok] name: message`` / ``[error] name: message``."""
        tag = "ok" if self.success else "error"
        return f"[{tag}] {self.package}: {self.message}"
