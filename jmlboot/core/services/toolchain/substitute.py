"""
Executable substitutor — put a replacement in place of an executable.

The original is kept by *renaming* it to ``<name><suffix>``; there is no
copy-based backup.  Whether a substitution has been applied is read
from the filesystem alone:

    backup exists  ⇒  already substituted, do nothing
    backup absent  ⇒  rename original to backup, install replacement

The backup's presence is trusted even when the file at the original
name is not the replacement.  ``restore_executable`` reverses the swap.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from jmlboot.core.services.toolchain.errors import FilesystemError
from jmlboot.core.services.toolchain.staging import (
    discard,
    make_owner_executable,
    staging_file,
)

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_SUFFIX = ".bak"


def backup_path_for(target: Path, backup_suffix: str = DEFAULT_BACKUP_SUFFIX) -> Path:
    """``target``'s sibling with ``backup_suffix`` appended to the full name.

    ``bin/javac`` with ``.orig`` becomes ``bin/javac.orig``; an existing
    extension is kept, not replaced.
    """
    return target.with_name(target.name + backup_suffix)


def is_substituted(target: Path, backup_suffix: str = DEFAULT_BACKUP_SUFFIX) -> bool:
    return backup_path_for(target, backup_suffix).exists()


def substitute_executable(
    target: Path,
    replacement: Path,
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
) -> bool:
    """Swap ``target`` for a copy of ``replacement``.

    The replacement is staged next to ``target`` before anything is
    renamed, so the window in which ``target`` is missing is a single
    rename wide.

    Returns:
        True if the swap happened, False if the backup already existed.

    Raises:
        FilesystemError: ``target`` or ``replacement`` is missing, or a
            copy/rename/chmod failed.
    """
    name = target.name
    backup = backup_path_for(target, backup_suffix)

    if backup.exists():
        logger.info("%s has already been replaced; no need to copy", name)
        return False

    if not target.is_file():
        raise FilesystemError(f"Nothing to replace: {target} does not exist", path=target)
    if not replacement.is_file():
        raise FilesystemError(f"Replacement not found: {replacement}", path=replacement)

    logger.info("Replacing %s at %s with %s...", name, target, replacement)

    try:
        staged = staging_file(target)
    except OSError as e:
        raise FilesystemError(f"Cannot stage replacement next to {target}: {e}", path=target) from e

    try:
        shutil.copyfile(replacement, staged)
        make_owner_executable(staged)
    except OSError as e:
        discard(staged)
        raise FilesystemError(f"Cannot copy {replacement} to {target}: {e}", path=target) from e

    try:
        os.rename(target, backup)
    except OSError as e:
        discard(staged)
        raise FilesystemError(f"Cannot rename {target} to {backup}: {e}", path=target) from e

    try:
        os.replace(staged, target)
    except OSError as e:
        # The original is safe at the backup name; target is missing.
        discard(staged)
        raise FilesystemError(
            f"Cannot install replacement at {target} (original kept at {backup}): {e}",
            path=target,
        ) from e

    logger.info("%s replaced (original is %s)", name, backup)
    return True


def restore_executable(target: Path, backup_suffix: str = DEFAULT_BACKUP_SUFFIX) -> bool:
    """Move the backup back over ``target``, undoing ``substitute_executable``.

    Returns:
        True if the original was restored, False if there was no backup.

    Raises:
        FilesystemError: The rename failed.
    """
    backup = backup_path_for(target, backup_suffix)

    if not backup.exists():
        logger.info("%s has no backup at %s; nothing to restore", target.name, backup)
        return False

    try:
        os.replace(backup, target)
    except OSError as e:
        raise FilesystemError(f"Cannot restore {target} from {backup}: {e}", path=target) from e

    logger.info("%s restored from %s", target.name, backup)
    return True
