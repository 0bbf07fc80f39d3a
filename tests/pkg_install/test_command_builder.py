"""
Tests for the pure command builder.
"""

from __future__ import annotations

import pytest

from hostprov.core.models.package import (
    GitSpec,
    InstallerSpec,
    InstallMethod,
    ManagerValue,
    MethodKind,
    Package,
    URLInstall,
)
from hostprov.core.services.pkg_install.resolver.command_builder import (
    build_command,
    build_git_clone,
    build_git_pull,
    check_command,
    format_command,
    wrap_shell,
)


@pytest.fixture
def pkg() -> Package:
    return Package(
        name="neovim",
        managers={
            "pacman": ManagerValue.named("neovim"),
            "apt": ManagerValue.named("neovim", ["curl"]),
            "winget": ManagerValue.named("Neovim.Neovim"),
            "installer": ManagerValue.of_installer(InstallerSpec(
                command={"linux": "curl -fsSL https://x | sh"},
                binary="nvim",
            )),
        },
        custom={"linux": "make install", "windows": "choco install neovim"},
        url={
            "linux": URLInstall(url="https://example.com/install.sh", command="sh {file} --yes"),
            "windows": URLInstall(url="https://example.com/it's.exe", command="& {file} /S"),
        },
    )


class TestManagers:
    @pytest.mark.parametrize(
        ("manager", "expected"),
        [
            ("pacman", ["sudo", "pacman", "-S", "--noconfirm", "neovim"]),
            ("apt", ["sudo", "apt-get", "install", "-y", "neovim"]),
            ("winget", ["winget", "install", "--accept-package-agreements",
                        "--accept-source-agreements", "Neovim.Neovim"]),
        ],
    )
    def test_install_argv(self, pkg: Package, manager: str, expected: list[str]):
        assert build_command(pkg, manager, "linux") == expected

    def test_method_object_and_name_agree(self, pkg: Package):
        assert build_command(pkg, InstallMethod.for_manager("pacman"), "linux") == \
            build_command(pkg, "pacman", "linux")

    def test_manager_not_on_package(self, pkg: Package):
        assert build_command(pkg, "dnf", "linux") is None

    def test_unknown_method(self, pkg: Package):
        assert build_command(pkg, "zypper", "linux") is None
        assert build_command(pkg, InstallMethod(kind=MethodKind.NONE), "linux") is None

    def test_check_commands(self):
        assert check_command("pacman", "neovim") == ["pacman", "-Q", "neovim"]
        assert check_command("yay", "neovim") == ["pacman", "-Q", "neovim"]
        assert check_command("apt", "neovim") == ["dpkg", "-s", "neovim"]
        assert check_command("choco", "neovim") == ["choco", "list", "--local-only", "neovim"]
        assert check_command("winget", "Neovim.Neovim") is None  # bulk-listed
        assert check_command("nope", "x") is None


class TestGit:
    def test_clone_with_branch(self):
        pkg = Package(name="r", managers={"git": ManagerValue.of_git(GitSpec(
            url="https://github.com/u/r.git", branch="dev", targets={"linux": "~/r"},
        ))})
        assert build_command(pkg, "git", "linux") == [
            "git", "clone", "-b", "dev", "https://github.com/u/r.git", "~/r",
        ]

    def test_sudo_reprefixes_whole_argv(self):
        spec = GitSpec(url="u", targets={"linux": "/opt/r"}, sudo=True)
        assert build_git_clone(spec, "/opt/r") == ["sudo", "git", "clone", "u", "/opt/r"]
        assert build_git_pull(spec, "/opt/r") == ["sudo", "git", "-C", "/opt/r", "pull"]

    def test_pull_without_sudo(self):
        assert build_git_pull(GitSpec(url="u"), "/x") == ["git", "-C", "/x", "pull"]

    def test_no_target_for_os(self):
        pkg = Package(name="r", managers={"git": ManagerValue.of_git(GitSpec(
            url="u", targets={"windows": "C:/r"},
        ))})
        assert build_command(pkg, "git", "linux") is None


class TestShellMethods:
    def test_wrap_shell(self):
        assert wrap_shell("linux", "echo hi") == ["sh", "-c", "echo hi"]
        assert wrap_shell("windows", "echo hi") == ["powershell", "-Command", "echo hi"]

    def test_installer(self, pkg: Package):
        assert build_command(pkg, "installer", "linux") == ["sh", "-c", "curl -fsSL https://x | sh"]
        assert build_command(pkg, "installer", "windows") is None

    def test_custom(self, pkg: Package):
        assert build_command(pkg, "custom", "linux") == ["sh", "-c", "make install"]
        assert build_command(pkg, "custom", "windows") == ["powershell", "-Command", "choco install neovim"]


class TestURLScript:
    def test_posix_script_is_self_cleaning(self, pkg: Package):
        argv = build_command(pkg, "url", "linux")
        assert argv is not None
        assert argv[:2] == ["sh", "-c"]
        script = argv[2]
        assert "mktemp -d" in script
        assert "trap 'rm -rf \"$tmpdir\"' EXIT" in script
        assert "INT" in script and "TERM" in script
        assert 'curl -fsSL -o "$tmpfile" https://example.com/install.sh' in script
        assert 'wait "$pid" || exit 1' in script
        assert "kill \"$pid\" 2>/dev/null; exit 143' TERM" in script
        assert 'chmod +x "$tmpfile"' in script
        assert script.rstrip().endswith('sh "$tmpfile" --yes')
        assert "{file}" not in script

    def test_posix_url_is_quoted(self):
        pkg = Package(name="x", url={"linux": URLInstall(url="https://x/a b;rm -rf ~", command="sh {file}")})
        script = build_command(pkg, "url", "linux")[2]
        assert "'https://x/a b;rm -rf ~'" in script

    def test_powershell_script(self, pkg: Package):
        argv = build_command(pkg, "url", "windows")
        assert argv is not None
        assert argv[:2] == ["powershell", "-Command"]
        script = argv[2]
        assert "[guid]::NewGuid()" in script
        assert "try {" in script and "} finally {" in script
        assert "Remove-Item -Recurse" in script
        assert "Invoke-WebRequest -Uri 'https://example.com/it''s.exe'" in script
        assert ".Replace('{file}', $tmpfile)" in script
        assert "Invoke-Expression $cmd" in script

    def test_deterministic(self, pkg: Package):
        assert build_command(pkg, "url", "linux") == build_command(pkg, "url", "linux")

    def test_no_entry_for_os(self):
        assert build_command(Package(name="x"), "url", "linux") is None


def test_format_command():
    assert format_command(["sudo", "pacman", "-S", "--noconfirm", "neovim"]) == \
        "sudo pacman -S --noconfirm neovim"
