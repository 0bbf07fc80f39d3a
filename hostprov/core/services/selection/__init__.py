"""
Selection — which catalog parts apply to the current host.
"""

from hostprov.core.services.selection.entries import (  # noqa: F401
    EntrySelector,
    Matcher,
    filter_packages,
)
from hostprov.core.services.selection.matching import (  # noqa: F401
    FilterEngine,
    PatternCache,
    matches,
    matches_any,
    matches_pattern,
)
from hostprov.core.services.selection.when import (  # noqa: F401
    Renderer,
    TemplateRenderer,
    evaluate_when,
)
