"""
Tests for when-expression evaluation and the Jinja2 renderer.
"""

from __future__ import annotations

import pytest

from hostprov.core.services.pkg_install.detection.host import HostInfo
from hostprov.core.services.selection.when import TemplateRenderer, evaluate_when


class _Fixed:
    """Renderer that always returns the same text."""

    def __init__(self, output: str) -> None:
        self.output = output
        self.calls = 0

    def render_string(self, name: str, template: str) -> str:
        self.calls += 1
        return self.output


class _Broken:
    def render_string(self, name: str, template: str) -> str:
        raise RuntimeError("boom")


class TestEvaluateWhen:
    @pytest.mark.parametrize("when", ["", "   ", None])
    def test_empty_is_true_without_rendering(self, when):
        renderer = _Fixed("false")
        assert evaluate_when(when, renderer) is True
        assert renderer.calls == 0

    def test_missing_renderer_is_false(self):
        assert evaluate_when("{{x}}", None) is False

    def test_render_error_is_false(self):
        assert evaluate_when("{{x}}", _Broken()) is False

    @pytest.mark.parametrize(
        ("output", "expected"),
        [
            ("true", True),
            (" true ", True),
            ("true\n", True),
            ("TRUE", False),
            ("True", False),
            ("1", False),
            ("linux", False),
            ("", False),
        ],
    )
    def test_only_literal_true_matches(self, output: str, expected: bool):
        assert evaluate_when("{{ anything }}", _Fixed(output)) is expected


@pytest.fixture
def renderer() -> TemplateRenderer:
    host = HostInfo(
        os="linux",
        distro="arch",
        hostname="work-laptop",
        user="alice",
        env_vars={"PWSH_PROFILE": "/p"},
    )
    return TemplateRenderer.from_host(host, environ={"EDITOR": "nvim"})


class TestTemplateRenderer:
    def test_boolean_renders_lowercase(self, renderer: TemplateRenderer):
        assert renderer.render_string("when", '{{ OS == "linux" }}') == "true"
        assert renderer.render_string("when", '{{ OS == "windows" }}') == "false"

    def test_host_attributes(self, renderer: TemplateRenderer):
        assert renderer.render_string("t", "{{ Distro }}/{{ Hostname }}/{{ User }}") == "arch/work-laptop/alice"

    def test_env_merges_host_variables(self, renderer: TemplateRenderer):
        assert renderer.render_string("t", "{{ Env.EDITOR }} {{ Env.PWSH_PROFILE }}") == "nvim /p"

    def test_undefined_variable_raises(self, renderer: TemplateRenderer):
        with pytest.raises(Exception):
            renderer.render_string("t", "{{ NotDefined }}")

    def test_evaluate_with_real_renderer(self, renderer: TemplateRenderer):
        assert evaluate_when('{{ OS == "linux" and Distro in ["arch", "manjaro"] }}', renderer)
        assert not evaluate_when('{{ OS == "windows" }}', renderer)
        assert not evaluate_when("{{ OS }}", renderer)
        assert not evaluate_when("{{ NotDefined }}", renderer)
        assert not evaluate_when("{% if %}", renderer)
