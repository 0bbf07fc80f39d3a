"""
Package installation service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → detection → resolver → execution →
orchestration)::

    from hostprov.core.services.pkg_install import Orchestrator, PackageCatalog
"""

# ── L0: Data ──
from hostprov.core.services.pkg_install.data.managers import (  # noqa: F401
    KNOWN_MANAGERS,
    MANAGER_COMMANDS,
)

# ── L2: Resolver ──
from hostprov.core.services.pkg_install.resolver.command_builder import (  # noqa: F401
    build_command,
    check_command,
    format_command,
)
from hostprov.core.services.pkg_install.resolver.method_selection import (  # noqa: F401
    select_method,
    select_preferred_manager,
)
from hostprov.core.services.pkg_install.resolver.normalizer import (  # noqa: F401
    ManagerDecodeError,
    from_application,
    from_applications,
    from_entries,
    from_entry,
    from_package_spec,
)

# ── L3: Detection ──
from hostprov.core.services.pkg_install.detection.backends import (  # noqa: F401
    detect_available_backends,
    reset_available_backends_cache,
)
from hostprov.core.services.pkg_install.detection.host import (  # noqa: F401
    HostInfo,
    detect_host,
)
from hostprov.core.services.pkg_install.detection.status import (  # noqa: F401
    BulkListCache,
    StatusChecker,
    parse_winget_list_output,
)

# ── L4: Execution ──
from hostprov.core.services.pkg_install.execution.subprocess_runner import (  # noqa: F401
    CancelScope,
    CommandResult,
    run_command,
)

# ── L5: Orchestration ──
from hostprov.core.services.pkg_install.orchestration.orchestrator import (  # noqa: F401
    Orchestrator,
    PackageCatalog,
)
