"""
Tests for the subprocess runner and cancel scope.

These spawn the current interpreter (or sh and curl) as a harmless child.
"""

from __future__ import annotations

import os
import shutil
import socket
import sys
import threading
import time

import pytest

from hostprov.core.models.package import Package, URLInstall
from hostprov.core.services.pkg_install.execution import subprocess_runner
from hostprov.core.services.pkg_install.execution.subprocess_runner import (
    CancelScope,
    CommandResult,
    run_command,
)
from hostprov.core.services.pkg_install.resolver.command_builder import build_command

PY = sys.executable


class TestCommandResult:
    def test_ok(self):
        assert CommandResult(returncode=0).ok
        assert not CommandResult(returncode=1).ok
        assert not CommandResult(returncode=0, cancelled=True).ok
        assert not CommandResult(returncode=0, error="boom").ok

    def test_describe_failure(self):
        assert CommandResult(returncode=3).describe_failure() == "exit status 3"
        assert CommandResult(returncode=-1, cancelled=True).describe_failure() == "Cancelled"
        assert CommandResult(returncode=-1, error="not found").describe_failure() == "not found"


class TestRunCommand:
    def test_capture(self):
        result = run_command([PY, "-c", "print('hello')"], capture_output=True)
        assert result.ok
        assert result.stdout.strip() == "hello"

    def test_exit_status(self):
        result = run_command([PY, "-c", "import sys; sys.exit(4)"], capture_output=True)
        assert result.returncode == 4
        assert result.describe_failure() == "exit status 4"

    def test_spawn_failure_does_not_raise(self):
        result = run_command(["hostprov-definitely-not-a-binary"])
        assert result.returncode == -1
        assert result.error
        assert not result.ok

    def test_cancelled_before_spawn(self):
        scope = CancelScope()
        scope.cancel()
        result = run_command([PY, "-c", "print('never')"], scope=scope, capture_output=True)
        assert result.cancelled
        assert result.stdout == ""

    def test_cancel_stops_running_child(self):
        scope = CancelScope()
        timer = threading.Timer(0.3, scope.cancel)
        timer.start()
        start = time.monotonic()
        result = run_command([PY, "-c", "import time; time.sleep(30)"], scope=scope, capture_output=True)
        timer.join()
        assert result.cancelled
        assert result.describe_failure() == "Cancelled"
        assert time.monotonic() - start < 10

    @pytest.mark.skipif(
        os.name != "posix" or not shutil.which("sh") or not shutil.which("curl"),
        reason="needs a POSIX shell and curl",
    )
    def test_cancel_cleans_up_stalled_url_download(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TMPDIR", str(tmp_path))
        monkeypatch.setattr(subprocess_runner, "_TERMINATE_GRACE", 2.0)
        for var in ("http_proxy", "HTTP_PROXY", "all_proxy", "ALL_PROXY"):
            monkeypatch.delenv(var, raising=False)
        # Accepts the connection in the backlog but never answers
        with socket.socket() as server:
            server.bind(("127.0.0.1", 0))
            server.listen()
            port = server.getsockname()[1]
            pkg = Package(
                name="x",
                url={"linux": URLInstall(url=f"http://127.0.0.1:{port}/installer", command="sh {file}")},
            )
            argv = build_command(pkg, "url", "linux")

            scope = CancelScope()
            timer = threading.Timer(1.0, scope.cancel)
            timer.start()
            result = run_command(argv, scope=scope, capture_output=True)
            timer.join()

        assert result.cancelled
        assert list(tmp_path.glob("hostprov.*")) == []


class TestCancelScope:
    def test_cancel_is_idempotent(self):
        scope = CancelScope()
        assert not scope.cancelled
        scope.cancel()
        scope.cancel()
        assert scope.cancelled
        assert scope.wait(0)
