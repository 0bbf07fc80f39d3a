"""
L3 Detection — ``__init__.py`` re-exports all detection functions.

These functions READ system state but never WRITE.
"""

from hostprov.core.services.pkg_install.detection.backends import (  # noqa: F401
    detect_available_backends,
    is_manager_valid_for_os,
    reset_available_backends_cache,
    windows_drive_mounts,
)
from hostprov.core.services.pkg_install.detection.host import (  # noqa: F401
    HostInfo,
    detect_host,
    detect_os,
    detect_wsl,
)
from hostprov.core.services.pkg_install.detection.status import (  # noqa: F401
    BulkListCache,
    StatusChecker,
    clean_winget_output,
    parse_winget_list_output,
)
