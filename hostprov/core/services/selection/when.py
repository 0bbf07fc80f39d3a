"""
When-expressions — template conditions on applications, entries and packages.

A when-expression is a template string rendered against the host.
It matches only when the trimmed output is exactly ``true``::

    when: '{{ OS == "linux" and Distro in ["arch", "manjaro"] }}'

``TRUE``, ``1``, ``yes`` or a non-empty host name are all non-matches,
so a template that renders something truthy-looking never matches by
accident.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Protocol

from jinja2 import Environment, StrictUndefined

if TYPE_CHECKING:
    from hostprov.core.services.pkg_install.detection.host import HostInfo

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Anything that can render a named template string."""

    def render_string(self, name: str, template: str) -> str: ...


def evaluate_when(when: str | None, renderer: Renderer | None) -> bool:
    """Evaluate a when-expression.

    Empty or whitespace-only → True. No renderer → False. Render
    error → False. Otherwise True iff the trimmed output is ``true``.
    """
    if not when or not when.strip():
        return True
    if renderer is None:
        return False

    try:
        rendered = renderer.render_string("when", when)
    except Exception as e:
        logger.debug("when-expression %r failed to render: %s", when, e)
        return False

    return rendered.strip() == "true"


def _finalize(value: Any) -> Any:
    # Python renders booleans as True/False; templates compare to "true"
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class TemplateRenderer:
    """Jinja2 renderer over the host attributes.

    Template variables: ``OS``, ``Distro``, ``Hostname``, ``User``,
    ``Env`` (process environment plus host-provided variables).
    Undefined names raise, which makes the expression a non-match.
    """

    def __init__(self, context: dict[str, Any]) -> None:
        self.context = dict(context)
        self._env = Environment(
            undefined=StrictUndefined,
            finalize=_finalize,
            autoescape=False,
            keep_trailing_newline=False,
        )

    @classmethod
    def from_host(cls, host: HostInfo, environ: dict[str, str] | None = None) -> TemplateRenderer:
        env = dict(os.environ if environ is None else environ)
        env.update(host.env_vars)
        return cls({
            "OS": host.os,
            "Distro": host.distro,
            "Hostname": host.hostname,
            "User": host.user,
            "Env": env,
        })

    def render_string(self, name: str, template: str) -> str:
        tmpl = self._env.from_string(template)
        return tmpl.render(**self.context)
