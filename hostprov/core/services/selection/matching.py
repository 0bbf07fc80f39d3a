"""
Filter engine — include/exclude pattern matching against the host.

Every pattern is evaluated as a regular expression that must match
the whole value (``re.fullmatch`` on ``(?:pattern)``; a trailing
newline is not absorbed), so plain literals and alternations
(``ubuntu|debian|mint``) work the same way. A pattern that does not
compile falls back to exact string equality: catalog authors may
write punctuation that is not meant as a regex.

Compiled patterns are cached by their grouped form. The cache is
owned by a ``FilterEngine``; tests build fresh engines instead of
sharing one.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable

from hostprov.core.models.filtering import Filter, FilterContext

logger = logging.getLogger(__name__)

# Stored for patterns that failed to compile
_NOT_A_REGEX = object()


class PatternCache:
    """Grouped pattern → compiled regex. Lazily filled, never invalidated."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._compiled: dict[str, object] = {}

    def lookup_or_compile(self, source: str) -> re.Pattern[str] | None:
        """Compiled regex for ``source``, or None if it is not a valid regex."""
        with self._lock:
            entry = self._compiled.get(source)
            if entry is None:
                try:
                    entry = re.compile(source)
                except re.error as e:
                    logger.debug("Pattern %r is not a regex (%s), using exact match", source, e)
                    entry = _NOT_A_REGEX
                self._compiled[source] = entry
        return None if entry is _NOT_A_REGEX else entry  # type: ignore[return-value]

    @property
    def size(self) -> int:
        return len(self._compiled)


class FilterEngine:
    """Evaluates filters and filter sets against a ``FilterContext``."""

    def __init__(self, pattern_cache: PatternCache | None = None) -> None:
        self.pattern_cache = pattern_cache or PatternCache()

    def matches_pattern(self, pattern: str, value: str) -> bool:
        compiled = self.pattern_cache.lookup_or_compile(f"(?:{pattern})")
        if compiled is None:
            return pattern == value
        return compiled.fullmatch(value) is not None

    def matches(self, flt: Filter, ctx: FilterContext) -> bool:
        """All include patterns match and no exclude pattern matches."""
        for attr, pattern in flt.include.items():
            if not self.matches_pattern(pattern, ctx.get_attribute(attr)):
                return False
        for attr, pattern in flt.exclude.items():
            if self.matches_pattern(pattern, ctx.get_attribute(attr)):
                return False
        return True

    def matches_any(self, filters: Iterable[Filter] | None, ctx: FilterContext) -> bool:
        """Any filter matches. No filters at all always matches."""
        if not filters:
            return True
        return any(self.matches(f, ctx) for f in filters)


# ── Process default ─────────────────────────────────────────────

_default_engine = FilterEngine()


def default_engine() -> FilterEngine:
    return _default_engine


def matches_pattern(pattern: str, value: str) -> bool:
    return _default_engine.matches_pattern(pattern, value)


def matches(flt: Filter, ctx: FilterContext) -> bool:
    return _default_engine.matches(flt, ctx)


def matches_any(filters: Iterable[Filter] | None, ctx: FilterContext) -> bool:
    return _default_engine.matches_any(filters, ctx)
