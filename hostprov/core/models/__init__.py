"""
Domain models — Pydantic types for hostprov.

All models are re-exported here for convenient access:

    from hostprov.core.models import Catalog, Package, InstallResult, FilterContext
"""

from hostprov.core.models.catalog import Application, Catalog, Entry, EntryPackage
from hostprov.core.models.filtering import Filter, FilterContext
from hostprov.core.models.package import (
    GitSpec,
    InstallerSpec,
    InstallMethod,
    InstallResult,
    ManagerKind,
    ManagerValue,
    MethodKind,
    Package,
    URLInstall,
)

__all__ = [
    # catalog.py
    "Application",
    "Catalog",
    "Entry",
    "EntryPackage",
    # filtering.py
    "Filter",
    "FilterContext",
    # package.py
    "GitSpec",
    "InstallMethod",
    "InstallResult",
    "InstallerSpec",
    "ManagerKind",
    "ManagerValue",
    "MethodKind",
    "Package",
    "URLInstall",
]
