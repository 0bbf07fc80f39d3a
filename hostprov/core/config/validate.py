"""
Catalog validation — structural checks beyond schema parsing.

Schema errors (bad types, undecodable manager values, unsupported
version) already fail in the loader. These checks catch catalogs
that parse but make no sense: unnamed or duplicate entries, entries
that do nothing, config entries without a backup or targets, and
package blocks with no way to install.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from hostprov.core.config.loader import ConfigError, find_catalog_file, load_catalog
from hostprov.core.models.catalog import Catalog, Entry, EntryPackage


def _fmt(name: str, message: str, field_name: str = "") -> str:
    if field_name:
        return f"entry '{name}': {field_name} - {message}"
    return f"entry '{name}': {message}"


def validate_entry(entry: Entry) -> str | None:
    """First problem with one entry, or None."""
    if not entry.name.strip():
        return _fmt("(unnamed)", "name is required", "name")

    if not entry.is_config() and not entry.has_package():
        return _fmt(entry.name, "entry must have either config (backup/targets) or package configuration")

    if entry.is_config():
        if not entry.backup.strip():
            return _fmt(entry.name, "backup path is required for config entries", "backup")
        if not entry.targets:
            return _fmt(entry.name, "at least one target is required for config entries", "targets")
        for os_type, target in entry.targets.items():
            if not target.strip():
                return _fmt(entry.name, "target path cannot be empty", f"targets.{os_type}")

    if entry.package is not None:
        error = _validate_package(entry.package)
        if error:
            return _fmt(entry.name, error, "package")

    return None


def _validate_package(package: EntryPackage) -> str | None:
    if package.is_empty():
        return "package must have at least one of: managers, custom, or url"
    return None


def validate_entries(entries: Iterable[Entry]) -> list[str]:
    """All entry problems. A duplicate name is reported instead of re-validating."""
    errors = []
    seen: set[str] = set()
    for entry in entries:
        if entry.name in seen:
            errors.append(_fmt(entry.name, "duplicate entry name"))
            continue
        seen.add(entry.name)
        error = validate_entry(entry)
        if error:
            errors.append(error)
    return errors


def validate_catalog(catalog: Catalog) -> list[str]:
    """Every structural problem in the catalog."""
    errors = validate_entries(catalog.entries)

    seen: set[str] = set()
    for app in catalog.applications:
        if not app.name.strip():
            errors.append("application '(unnamed)': name - name is required")
            continue
        if app.name in seen:
            errors.append(f"application '{app.name}': duplicate application name")
            continue
        seen.add(app.name)

        if app.package is not None:
            error = _validate_package(app.package)
            if error:
                errors.append(f"application '{app.name}': package - {error}")
        for error in validate_entries(app.entries):
            errors.append(f"application '{app.name}': {error}")

    return errors


# ── config check use case ───────────────────────────────────────


@dataclass
class ConfigCheckResult:
    """Result of catalog validation."""

    valid: bool = False
    catalog: Catalog | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "version": self.catalog.version if self.catalog else None,
            "application_count": len(self.catalog.applications) if self.catalog else 0,
            "entry_count": len(self.catalog.entries) if self.catalog else 0,
            "package_count": self.catalog.package_count if self.catalog else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Load and validate the catalog, collecting every issue.

    Args:
        config_path: Optional explicit path to the catalog.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_catalog_file()
    if config_path is None:
        result.errors.append("No hostprov.yaml found.")
        return result
    result.config_path = config_path

    try:
        catalog = load_catalog(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    result.catalog = catalog

    result.errors.extend(validate_catalog(catalog))

    if not catalog.applications and not catalog.entries:
        result.warnings.append("Catalog is empty. Nothing to provision.")
    elif catalog.package_count == 0:
        result.warnings.append("No packages declared. Only config entries will be managed.")

    result.valid = not result.errors
    return result
