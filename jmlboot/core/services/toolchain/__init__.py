"""
Toolchain services — package re-exports.

    from jmlboot.core.services.toolchain import fetch_release, extract_archive

Each stage lives in its own module and gates on one filesystem
predicate:

    fetch       → archive file exists
    extract     → toolchain home directory exists
    launcher    → launcher script exists
    substitute  → backup-named original exists
"""

from jmlboot.core.services.toolchain.errors import (  # noqa: F401
    ArchiveError,
    BootstrapError,
    FilesystemError,
    IntegrityError,
    TransportError,
)
from jmlboot.core.services.toolchain.extract import (  # noqa: F401
    archive_format,
    extract_archive,
)
from jmlboot.core.services.toolchain.fetch import (  # noqa: F401
    fetch_release,
    render_url,
    verify_checksum,
)
from jmlboot.core.services.toolchain.launcher import (  # noqa: F401
    DEFAULT_TEMPLATE,
    PRELUDE,
    ForwardingBody,
    LauncherTemplate,
    compiler_forwarding_body,
    expand_arguments,
    generate_launcher,
    runtime_forwarding_body,
    split_arguments,
)
from jmlboot.core.services.toolchain.substitute import (  # noqa: F401
    DEFAULT_BACKUP_SUFFIX,
    backup_path_for,
    is_substituted,
    restore_executable,
    substitute_executable,
)
