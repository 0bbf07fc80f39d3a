"""
L5 Orchestration — ``__init__.py`` re-exports top-level coordinators.

These are the entry points that external code calls.
"""

from hostprov.core.services.pkg_install.orchestration.orchestrator import (  # noqa: F401
    Orchestrator,
    PackageCatalog,
)
