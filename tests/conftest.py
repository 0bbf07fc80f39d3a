"""
Shared test fixtures and configuration.

No test spawns a real package manager: everything that would run a
subprocess gets a ``FakeRunner``.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from hostprov.core.models.filtering import FilterContext
from hostprov.core.services.pkg_install.detection.backends import reset_available_backends_cache
from hostprov.core.services.pkg_install.execution.subprocess_runner import CommandResult


class FakeRunner:
    """Stands in for ``run_command``; records every argv it is given.

    ``results`` maps either a full argv tuple or a program name to the
    ``CommandResult`` to return. Anything unmatched gets ``default``.
    """

    def __init__(self, default: CommandResult | None = None) -> None:
        self.calls: list[list[str]] = []
        self.capture_flags: list[bool] = []
        self.results: dict[object, CommandResult] = {}
        self.default = default or CommandResult(returncode=0)

    def __call__(self, cmd, *, scope=None, capture_output: bool = False, cwd=None) -> CommandResult:
        argv = list(cmd)
        self.calls.append(argv)
        self.capture_flags.append(capture_output)
        if tuple(argv) in self.results:
            return self.results[tuple(argv)]
        if argv and argv[0] in self.results:
            return self.results[argv[0]]
        return self.default

    def programs(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def linux_ctx() -> FilterContext:
    return FilterContext(os="linux", distro="arch", hostname="work-laptop", user="alice")


@pytest.fixture(autouse=True)
def _fresh_backend_cache():
    reset_available_backends_cache()
    yield
    reset_available_backends_cache()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    """A small but complete hostprov.yaml."""
    content = textwrap.dedent("""\
        version: 3
        backup_root: ~/dotfiles
        manager_priority: [paru, pacman]
        applications:
          - name: neovim
            description: Text editor
            package:
              managers:
                pacman: neovim
                apt: {name: neovim, deps: [curl]}
              custom:
                windows: winget install Neovim.Neovim
            entries:
              - name: nvim-config
                backup: ./nvim
                targets:
                  linux: ~/.config/nvim
          - name: windows-only
            filters:
              - include: {os: windows}
            package:
              managers:
                winget: Some.Tool
            entries:
              - name: win-config
                backup: ./win
                targets:
                  windows: "%APPDATA%/win"
        entries:
          - name: starship
            package:
              url:
                linux:
                  url: https://starship.rs/install.sh
                  command: sh {file} -y
    """)
    path = tmp_path / "hostprov.yaml"
    path.write_text(content)
    return path
