"""
Entry selection — which parts of the catalog apply to this host.

Applicability is evaluated top-down. An application whose own
filters or when-expression do not match is skipped wholesale: its
sub-entries are never evaluated and never surface.

Entries are classified structurally (presence of a field), so one
entry may show up in several views:

    config_entries()   — has ``backup``
    git_entries()      — has ``repo``
    package_entries()  — has ``package``
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from hostprov.core.models.catalog import Application, Catalog, Entry
from hostprov.core.models.filtering import Filter, FilterContext
from hostprov.core.models.package import Package
from hostprov.core.services.pkg_install.resolver.normalizer import from_application, from_entry
from hostprov.core.services.selection.matching import FilterEngine, default_engine
from hostprov.core.services.selection.when import Renderer, evaluate_when

logger = logging.getLogger(__name__)


class Matcher:
    """Filters + when-expression applicability for one host."""

    def __init__(
        self,
        context: FilterContext,
        renderer: Renderer | None = None,
        engine: FilterEngine | None = None,
    ) -> None:
        self.context = context
        self.renderer = renderer
        self.engine = engine or default_engine()

    def applies(self, filters: Iterable[Filter] | None, when: str | None) -> bool:
        if not self.engine.matches_any(filters, self.context):
            return False
        return evaluate_when(when, self.renderer)


class EntrySelector:
    """Views over the parts of a catalog that apply to this host."""

    def __init__(self, catalog: Catalog, matcher: Matcher) -> None:
        self.catalog = catalog
        self.matcher = matcher

    def applications(self) -> list[Application]:
        result = []
        for app in self.catalog.applications:
            if self.matcher.applies(app.filters, app.when):
                result.append(app)
            else:
                logger.debug("Skipping application %s (not applicable)", app.name)
        return result

    def entries(self) -> list[Entry]:
        """Matching flat entries, then matching sub-entries of matching applications."""
        result = [e for e in self.catalog.entries if self._entry_applies(e)]
        for app in self.applications():
            result.extend(e for e in app.entries if self._entry_applies(e))
        return result

    def config_entries(self) -> list[Entry]:
        return [e for e in self.entries() if e.is_config()]

    def git_entries(self) -> list[Entry]:
        return [e for e in self.entries() if e.is_git()]

    def package_entries(self) -> list[Entry]:
        return [e for e in self.entries() if e.has_package()]

    def packages(self) -> list[Package]:
        """Canonical packages: applications first, then entries, catalog order."""
        result = []
        for app in self.applications():
            pkg = from_application(app)
            if pkg is not None:
                result.append(pkg)
        for entry in self.package_entries():
            pkg = from_entry(entry)
            if pkg is not None:
                result.append(pkg)
        return result

    def _entry_applies(self, entry: Entry) -> bool:
        if self.matcher.applies(entry.filters, entry.when):
            return True
        logger.debug("Skipping entry %s (not applicable)", entry.name)
        return False


def filter_packages(packages: Iterable[Package], matcher: Matcher) -> list[Package]:
    """Packages whose own filters and when-expression apply."""
    return [pkg for pkg in packages if matcher.applies(pkg.filters, pkg.when)]
