"""
L4 Execution — ``__init__.py`` re-exports the subprocess runner.

These functions WRITE to the system: every install subprocess is
spawned from here.
"""

from hostprov.core.services.pkg_install.execution.subprocess_runner import (  # noqa: F401
    CancelScope,
    CommandResult,
    run_command,
)
