"""
Catalog models — the declared, developer-facing shape of hostprov.yaml.

These mirror what a catalog author writes. Packages declared here are
converted to the canonical ``Package`` by the normalizer before
anything is installed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from hostprov.core.models.filtering import Filter
from hostprov.core.models.package import ManagerValue, URLInstall

DEFAULT_CATALOG_VERSION = 3
SUPPORTED_CATALOG_VERSIONS = (2, 3)


class EntryPackage(BaseModel):
    """Package installation block of an application or entry."""

    managers: dict[str, ManagerValue] = Field(default_factory=dict)
    custom: dict[str, str] = Field(default_factory=dict)        # os → command
    url: dict[str, URLInstall] = Field(default_factory=dict)    # os → download

    @field_validator("managers", mode="before")
    @classmethod
    def _decode_managers(cls, value: Any) -> Any:
        from hostprov.core.services.pkg_install.resolver.normalizer import decode_managers

        if value is None:
            return {}
        return decode_managers(value)

    def is_empty(self) -> bool:
        return not (self.managers or self.custom or self.url)


class Entry(BaseModel):
    """A flat or nested catalog entry.

    Classification is structural: an entry with ``backup`` is a config
    entry, one with ``repo`` is a git entry, one with ``package`` is a
    package entry. An entry may be several at once.
    """

    name: str = ""
    description: str = ""
    filters: list[Filter] = Field(default_factory=list)
    when: str = ""
    sudo: bool = False

    # Config
    files: list[str] = Field(default_factory=list)
    backup: str = ""
    targets: dict[str, str] = Field(default_factory=dict)  # os → path

    # Git
    repo: str = ""
    branch: str = ""

    # Package
    package: EntryPackage | None = None

    def is_config(self) -> bool:
        return bool(self.backup)

    def is_git(self) -> bool:
        return bool(self.repo)

    def has_package(self) -> bool:
        return self.package is not None

    def is_folder(self) -> bool:
        """A config entry that manages a whole directory (no file list)."""
        return self.is_config() and not self.files

    def get_target(self, os_type: str) -> str:
        return self.targets.get(os_type, "")


class Application(BaseModel):
    """A named group of entries with an optional package of its own."""

    name: str = ""
    description: str = ""
    filters: list[Filter] = Field(default_factory=list)
    when: str = ""
    entries: list[Entry] = Field(default_factory=list)
    package: EntryPackage | None = None

    def has_package(self) -> bool:
        return self.package is not None


class Catalog(BaseModel):
    """Root of hostprov.yaml."""

    version: int = DEFAULT_CATALOG_VERSION
    backup_root: str = ""
    default_manager: str = ""
    manager_priority: list[str] = Field(default_factory=list)
    entries: list[Entry] = Field(default_factory=list)
    applications: list[Application] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _default_version(cls, value: Any) -> Any:
        # An explicit 0 or null means "current"
        if value in (None, 0):
            return DEFAULT_CATALOG_VERSION
        return value

    @field_validator("version")
    @classmethod
    def _supported_version(cls, value: int) -> int:
        if value not in SUPPORTED_CATALOG_VERSIONS:
            supported = ", ".join(str(v) for v in SUPPORTED_CATALOG_VERSIONS)
            raise ValueError(f"unsupported catalog version {value} (supported: {supported})")
        return value

    @property
    def package_count(self) -> int:
        apps = sum(1 for a in self.applications if a.has_package())
        entries = sum(1 for e in self.entries if e.has_package())
        nested = sum(1 for a in self.applications for e in a.entries if e.has_package())
        return apps + entries + nested
