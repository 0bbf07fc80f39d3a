"""
L2 Resolver — ``__init__.py`` re-exports resolver functions.

Pure decisions: catalog decoding, method selection, command building.
Nothing here spawns a process.
"""

from hostprov.core.services.pkg_install.resolver.command_builder import (  # noqa: F401
    build_command,
    build_git_clone,
    build_git_pull,
    build_url_script,
    check_command,
    format_command,
    manager_install_command,
    wrap_shell,
)
from hostprov.core.services.pkg_install.resolver.method_selection import (  # noqa: F401
    select_method,
    select_preferred_manager,
)
from hostprov.core.services.pkg_install.resolver.normalizer import (  # noqa: F401
    ManagerDecodeError,
    decode_manager_value,
    decode_managers,
    from_application,
    from_applications,
    from_entries,
    from_entry,
    from_package_spec,
)
