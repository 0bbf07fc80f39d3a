"""
Tests for the entry selector — top-down applicability and structural views.
"""

from __future__ import annotations

import pytest

from hostprov.core.models.catalog import Catalog
from hostprov.core.models.filtering import FilterContext
from hostprov.core.models.package import Package
from hostprov.core.services.selection.entries import EntrySelector, Matcher, filter_packages


class _CountingRenderer:
    """Renders ``yes`` → true, anything else → false; counts calls."""

    def __init__(self) -> None:
        self.seen: list[str] = []

    def render_string(self, name: str, template: str) -> str:
        self.seen.append(template)
        return "true" if template == "yes" else "false"


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.model_validate({
        "entries": [
            {"name": "flat-config", "backup": "./a", "targets": {"linux": "~/a"}},
            {"name": "flat-both", "backup": "./b", "targets": {"linux": "~/b"},
             "package": {"managers": {"pacman": "b"}}},
            {"name": "flat-windows", "filters": [{"include": {"os": "windows"}}],
             "package": {"managers": {"winget": "W.W"}}},
        ],
        "applications": [
            {
                "name": "app-ok",
                "package": {"managers": {"pacman": "app-ok"}},
                "entries": [
                    {"name": "sub-git", "repo": "https://example.com/r.git", "when": "yes"},
                    {"name": "sub-skip", "backup": "./s", "targets": {"linux": "~/s"}, "when": "no"},
                ],
            },
            {
                "name": "app-windows",
                "filters": [{"include": {"os": "windows"}}],
                "package": {"managers": {"winget": "X.X"}},
                "entries": [
                    {"name": "never-evaluated", "when": "sub-of-skipped-app",
                     "package": {"managers": {"winget": "Y.Y"}}},
                ],
            },
            {
                "name": "app-when-false",
                "when": "no",
                "entries": [{"name": "hidden", "backup": "./h", "targets": {"linux": "~/h"}}],
            },
        ],
    })


@pytest.fixture
def renderer() -> _CountingRenderer:
    return _CountingRenderer()


@pytest.fixture
def selector(catalog: Catalog, linux_ctx: FilterContext, renderer: _CountingRenderer) -> EntrySelector:
    return EntrySelector(catalog, Matcher(linux_ctx, renderer))


class TestEntrySelector:
    def test_applications(self, selector: EntrySelector):
        assert [a.name for a in selector.applications()] == ["app-ok"]

    def test_entries_flat_then_nested(self, selector: EntrySelector):
        names = [e.name for e in selector.entries()]
        assert names == ["flat-config", "flat-both", "sub-git"]

    def test_skipped_application_sub_entries_never_evaluated(
        self, selector: EntrySelector, renderer: _CountingRenderer,
    ):
        selector.entries()
        assert "sub-of-skipped-app" not in renderer.seen

    def test_structural_views(self, selector: EntrySelector):
        assert [e.name for e in selector.config_entries()] == ["flat-config", "flat-both"]
        assert [e.name for e in selector.git_entries()] == ["sub-git"]
        assert [e.name for e in selector.package_entries()] == ["flat-both"]

    def test_packages_applications_first(self, selector: EntrySelector):
        pkgs = selector.packages()
        assert [p.name for p in pkgs] == ["app-ok", "flat-both"]
        assert pkgs[0].managers["pacman"].package_name == "app-ok"


class TestMatcher:
    def test_filters_and_when_both_required(self, linux_ctx: FilterContext, renderer: _CountingRenderer):
        from hostprov.core.models.filtering import Filter

        matcher = Matcher(linux_ctx, renderer)
        assert matcher.applies([Filter(include={"os": "linux"})], "yes")
        assert not matcher.applies([Filter(include={"os": "linux"})], "no")
        assert not matcher.applies([Filter(include={"os": "windows"})], "yes")

    def test_without_renderer_only_empty_when_applies(self, linux_ctx: FilterContext):
        matcher = Matcher(linux_ctx)
        assert matcher.applies(None, "")
        assert not matcher.applies(None, "{{ OS }}")


class TestFilterPackages:
    def test_applies_package_applicability(self, linux_ctx: FilterContext, renderer: _CountingRenderer):
        from hostprov.core.models.filtering import Filter

        packages = [
            Package(name="a"),
            Package(name="b", when="no"),
            Package(name="c", filters=[Filter(include={"distro": "ubuntu|arch"})]),
            Package(name="d", filters=[Filter(exclude={"user": "alice"})]),
        ]
        result = filter_packages(packages, Matcher(linux_ctx, renderer))
        assert [p.name for p in result] == ["a", "c"]
