"""
Tests for the filter engine — pattern matching, include/exclude, filter sets.
"""

from __future__ import annotations

import pytest

from hostprov.core.models.filtering import Filter, FilterContext
from hostprov.core.services.selection.matching import (
    FilterEngine,
    PatternCache,
    matches_any,
    matches_pattern,
)


class TestMatchesPattern:
    """Anchored regex matching with exact fallback."""

    @pytest.mark.parametrize(
        ("pattern", "value", "expected"),
        [
            ("linux", "linux", True),
            ("linux|darwin", "darwin", True),
            ("ubuntu|debian|mint", "mint", True),
            ("work-.*", "work-laptop", True),
            ("work-.*", "home-desktop", False),
            ("linux", "linux2", False),
            ("inu", "linux", False),
            ("", "", True),
            ("", "linux", False),
            ("linux", "linux\n", False),
            ("linux|darwin", "darwin\n", False),
        ],
    )
    def test_regex(self, pattern: str, value: str, expected: bool):
        assert FilterEngine().matches_pattern(pattern, value) is expected

    def test_invalid_regex_falls_back_to_exact(self):
        engine = FilterEngine()
        assert engine.matches_pattern("[linux", "[linux") is True
        assert engine.matches_pattern("[linux", "linux") is False

    def test_module_level_helper(self):
        assert matches_pattern("linux|darwin", "darwin") is True
        assert matches_pattern("work-.*", "home-desktop") is False


class TestPatternCache:
    def test_compiles_once_per_anchored_pattern(self):
        cache = PatternCache()
        engine = FilterEngine(cache)
        engine.matches_pattern("a|b", "a")
        engine.matches_pattern("a|b", "b")
        engine.matches_pattern("c", "c")
        assert cache.size == 2

    def test_invalid_pattern_is_cached_as_not_a_regex(self):
        cache = PatternCache()
        assert cache.lookup_or_compile("(?:[bad)") is None
        assert cache.lookup_or_compile("(?:[bad)") is None
        assert cache.size == 1

    def test_engines_do_not_share_caches(self):
        one, two = FilterEngine(), FilterEngine()
        one.matches_pattern("x", "x")
        assert one.pattern_cache.size == 1
        assert two.pattern_cache.size == 0


class TestMatches:
    def test_include_all_must_match(self, linux_ctx: FilterContext):
        engine = FilterEngine()
        assert engine.matches(Filter(include={"os": "linux", "distro": "arch"}), linux_ctx)
        assert not engine.matches(Filter(include={"os": "linux", "distro": "ubuntu"}), linux_ctx)

    def test_matching_exclude_flips_result(self, linux_ctx: FilterContext):
        engine = FilterEngine()
        flt = Filter(include={"os": "linux"})
        assert engine.matches(flt, linux_ctx)
        flt_excl = Filter(include={"os": "linux"}, exclude={"hostname": "work-.*"})
        assert not engine.matches(flt_excl, linux_ctx)

    def test_non_matching_exclude_keeps_result(self, linux_ctx: FilterContext):
        flt = Filter(include={"os": "linux"}, exclude={"user": "root"})
        assert FilterEngine().matches(flt, linux_ctx)

    def test_unknown_attribute_fails_include(self, linux_ctx: FilterContext):
        assert not FilterEngine().matches(Filter(include={"shell": "zsh"}), linux_ctx)

    def test_empty_filter_matches(self, linux_ctx: FilterContext):
        assert FilterEngine().matches(Filter(), linux_ctx)


class TestMatchesAny:
    def test_empty_and_none_always_match(self, linux_ctx: FilterContext):
        assert matches_any([], linux_ctx) is True
        assert matches_any(None, linux_ctx) is True

    def test_or_semantics(self, linux_ctx: FilterContext):
        filters = [Filter(include={"os": "windows"}), Filter(include={"distro": "arch"})]
        assert matches_any(filters, linux_ctx) is True

    def test_none_match(self, linux_ctx: FilterContext):
        filters = [Filter(include={"os": "windows"}), Filter(exclude={"user": "alice"})]
        assert matches_any(filters, linux_ctx) is False
