"""
Catalog loader — reads hostprov.yaml into domain models.

This is the primary entry point for loading the catalog. It reads
YAML, validates against Pydantic schemas (decoding every manager
value on the way), and returns a typed ``Catalog``.

Any problem here is fatal: nothing is installed from a catalog that
did not load.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from hostprov.core.models.catalog import Catalog

logger = logging.getLogger(__name__)

# Default catalog filename
CATALOG_FILE = "hostprov.yaml"
CATALOG_FILE_ALIASES = (CATALOG_FILE, "hostprov.yml")


class ConfigError(Exception):
    """Raised when the catalog is invalid or missing."""


def find_catalog_file(start_dir: Path | None = None) -> Path | None:
    """Search for hostprov.yaml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the catalog, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        for name in CATALOG_FILE_ALIASES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and validate the catalog.

    Args:
        path: Explicit path to the catalog. If None, searches upward.

    Returns:
        Validated Catalog model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_catalog_file()

    if path is None:
        raise ConfigError(f"No {CATALOG_FILE} found. Specify one with --config.")

    if not path.is_file():
        raise ConfigError(f"Catalog file not found: {path}")

    logger.debug("Loading catalog from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    return parse_catalog(raw, source=str(path))


def parse_catalog(text: str, source: str = "<string>") -> Catalog:
    """Parse catalog YAML text. Split from ``load_catalog`` for tests."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {source}, got {type(data).__name__}")

    try:
        catalog = Catalog.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid catalog {source}: {e}") from e

    logger.info(
        "Loaded catalog v%d with %d applications, %d entries",
        catalog.version, len(catalog.applications), len(catalog.entries),
    )
    return catalog


def expand_path(path: str, env_vars: dict[str, str] | None = None) -> str:
    """Expand ``~``, host-provided ``$VARS`` and then the process environment."""
    if not path:
        return path
    path = os.path.expanduser(path)
    for key, value in (env_vars or {}).items():
        path = path.replace(f"${key}", value)
    return os.path.expandvars(path)
