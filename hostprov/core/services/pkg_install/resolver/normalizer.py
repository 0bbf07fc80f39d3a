"""
L2 Resolver — Catalog normalizer.

Turns declared catalog shapes into the canonical ``Package`` model.

Manager values arrive in one of four declared shapes:

    managers:
      pacman: neovim                        # bare string
      apt: {name: neovim, deps: [curl]}     # name + deps
      git: {url: ..., targets: {...}}       # git object (reserved key)
      installer: {command: {...}, binary}   # installer object (reserved key)

Decoding is keyed: the reserved keys ``git`` and ``installer`` only
ever decode to their own spec, every other key decodes to a package
name. Anything else is a ``ManagerDecodeError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from hostprov.core.models.package import (
    GIT,
    INSTALLER,
    GitSpec,
    InstallerSpec,
    ManagerValue,
    Package,
)

if TYPE_CHECKING:
    from hostprov.core.models.catalog import Application, Entry, EntryPackage


_NAMED_SHAPES = ("string", "object with name/deps")


class ManagerDecodeError(ValueError):
    """A manager value did not match any shape accepted for its key."""

    def __init__(self, manager: str, attempted: tuple[str, ...], detail: str = "") -> None:
        self.manager = manager
        self.attempted = attempted
        expected = " or ".join(attempted)
        message = f"failed to decode manager {manager!r}: expected {expected}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


def decode_manager_value(key: str, raw: Any) -> ManagerValue:
    """Decode one declared manager value.

    Args:
        key: Manager key (``pacman``, ``git``, ``installer``, ...).
        raw: The value as parsed from YAML.

    Returns:
        A ``ManagerValue`` whose kind matches the key.

    Raises:
        ManagerDecodeError: If the value has no accepted shape.
    """
    if isinstance(raw, ManagerValue):
        return raw

    if key == GIT:
        try:
            return ManagerValue.of_git(GitSpec.model_validate(raw))
        except ValidationError as e:
            raise ManagerDecodeError(key, ("git object",), _first_error(e)) from e

    if key == INSTALLER:
        try:
            return ManagerValue.of_installer(InstallerSpec.model_validate(raw))
        except ValidationError as e:
            raise ManagerDecodeError(key, ("installer object",), _first_error(e)) from e

    if isinstance(raw, str):
        return ManagerValue.named(raw)

    if isinstance(raw, Mapping):
        name = raw.get("name")
        deps = raw.get("deps") or []
        if isinstance(name, str) and name and _is_str_list(deps):
            return ManagerValue.named(name, list(deps))

    raise ManagerDecodeError(key, _NAMED_SHAPES, f"got {type(raw).__name__}")


def decode_managers(raw: Any) -> dict[str, ManagerValue]:
    """Decode a whole ``managers`` mapping (declaration order kept)."""
    if not isinstance(raw, Mapping):
        raise ValueError(f"managers must be a mapping, got {type(raw).__name__}")
    return {str(key): decode_manager_value(str(key), value) for key, value in raw.items()}


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first.get('msg', '')}" if loc else first.get("msg", "")


# ── Declared → canonical ────────────────────────────────────────


def from_package_spec(name: str, package: EntryPackage | None) -> Package | None:
    """Build a bare ``Package`` from a name and a package block."""
    if package is None:
        return None
    return Package(
        name=name,
        managers=dict(package.managers),
        custom=dict(package.custom),
        url=dict(package.url),
    )


def from_application(app: Application) -> Package | None:
    """Canonical package of an application, or None without a package block."""
    pkg = from_package_spec(app.name, app.package)
    if pkg is None:
        return None
    return pkg.model_copy(update={
        "description": app.description,
        "filters": list(app.filters),
        "when": app.when,
    })


def from_entry(entry: Entry) -> Package | None:
    """Canonical package of an entry, or None without a package block."""
    pkg = from_package_spec(entry.name, entry.package)
    if pkg is None:
        return None
    return pkg.model_copy(update={
        "description": entry.description,
        "filters": list(entry.filters),
        "when": entry.when,
    })


def from_applications(apps: Iterable[Application]) -> list[Package]:
    return [pkg for pkg in (from_application(a) for a in apps) if pkg is not None]


def from_entries(entries: Iterable[Entry]) -> list[Package]:
    return [pkg for pkg in (from_entry(e) for e in entries) if pkg is not None]
