"""
Filter models — host attributes and include/exclude conditions.

A ``FilterContext`` describes the host we are running on. A ``Filter``
is a declared condition over those attributes, written in the catalog
as ``{include: {...}, exclude: {...}}`` maps of attribute → pattern.

Evaluation lives in ``hostprov.core.services.selection.matching``;
these models only carry data.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Attribute names a filter may reference. Anything else resolves to "".
FILTER_ATTRIBUTES = ("os", "distro", "hostname", "user")


class FilterContext(BaseModel):
    """Current host attributes used for matching. Built once per run."""

    model_config = ConfigDict(frozen=True)

    os: str = ""
    distro: str = ""     # Linux distribution ID (arch, ubuntu, fedora, ...)
    hostname: str = ""
    user: str = ""

    def get_attribute(self, attr: str) -> str:
        """Resolve an attribute name to its value (unknown names → "")."""
        if attr == "os":
            return self.os
        if attr == "distro":
            return self.distro
        if attr == "hostname":
            return self.hostname
        if attr == "user":
            return self.user
        return ""


class Filter(BaseModel):
    """A single include/exclude condition.

    Include conditions are AND'd together — all must match.
    No exclude condition may match.
    """

    include: dict[str, str] = Field(default_factory=dict)
    exclude: dict[str, str] = Field(default_factory=dict)
