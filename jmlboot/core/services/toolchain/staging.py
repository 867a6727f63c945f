"""
Staging helpers — write next to the final path, rename into place.

Every stage gates on the existence of its output.  To keep that check
honest, outputs only ever appear at their final name through a rename
of a fully written sibling.
"""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path


def staging_file(target: Path) -> Path:
    """Create an empty hidden temp file in ``target``'s directory."""
    fd, tmp = tempfile.mkstemp(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".part",
    )
    os.close(fd)
    return Path(tmp)


def staging_dir(target: Path) -> Path:
    """Create an empty hidden temp directory next to ``target``."""
    return Path(
        tempfile.mkdtemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".partial",
        )
    )


def discard(path: Path) -> None:
    """Remove a leftover staging file or directory, ignoring absence."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    else:
        path.unlink(missing_ok=True)


def make_owner_executable(path: Path) -> None:
    """Add the owner-execute bit, leaving the other bits alone."""
    mode = path.stat().st_mode
    path.chmod(stat.S_IMODE(mode) | stat.S_IXUSR)


def is_owner_executable(path: Path) -> bool:
    return bool(path.stat().st_mode & stat.S_IXUSR)
