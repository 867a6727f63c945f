"""
Archive extractor — unpack the release archive into the toolchain home.

The toolchain home directory is its own idempotency marker.  Entries
are unpacked into a hidden staging directory beside it, and only a
complete unpack is renamed to the final name.

Supports zip (what OpenJML ships) plus tar, tar.gz and tgz.
Executable bits recorded in the archive are restored: ``bin/javac``
has to stay runnable.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

from jmlboot.core.services.toolchain.errors import ArchiveError, FilesystemError
from jmlboot.core.services.toolchain.staging import discard, staging_dir

logger = logging.getLogger(__name__)

_TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar", ".tar.bz2", ".tar.xz")


def archive_format(archive: Path) -> str:
    """Return ``"zip"`` or ``"tar"`` for ``archive``.

    Goes by file name first, then by sniffing the content.

    Raises:
        ArchiveError: Neither format applies.
    """
    name = archive.name.lower()
    if name.endswith(".zip"):
        return "zip"
    if name.endswith(_TAR_SUFFIXES):
        return "tar"
    if zipfile.is_zipfile(archive):
        return "zip"
    if tarfile.is_tarfile(archive):
        return "tar"
    raise ArchiveError(f"Unsupported archive format: {archive}", path=archive)


def extract_archive(archive: Path, dest: Path) -> bool:
    """Unpack ``archive`` into ``dest``.

    Returns:
        True if the archive was unpacked, False if ``dest`` already existed.

    Raises:
        ArchiveError: The archive is corrupt, unsupported or unsafe.
        FilesystemError: The archive is missing or ``dest`` cannot be created.
    """
    if dest.exists():
        logger.info("OpenJML home is present at %s; no need to unpack", dest)
        return False

    if not archive.is_file():
        raise FilesystemError(f"Archive not found: {archive}", path=archive)

    fmt = archive_format(archive)
    logger.info("Unpacking %s archive %s to %s", fmt, archive, dest)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        staging = staging_dir(dest)
    except OSError as e:
        raise FilesystemError(f"Cannot create {dest}: {e}", path=dest) from e

    try:
        if fmt == "zip":
            count = _extract_zip(archive, staging)
        else:
            count = _extract_tar(archive, staging)

        try:
            # mkdtemp creates 0700
            staging.chmod(0o755)
            os.rename(staging, dest)
        except OSError as e:
            raise FilesystemError(f"Cannot move unpacked tree to {dest}: {e}", path=dest) from e
    except BaseException:
        discard(staging)
        raise

    logger.info("OpenJML unpacked to %s (%d entries)", dest, count)
    return True


def _safe_member_path(root: Path, name: str, archive: Path) -> Path:
    """Resolve an archive member name under ``root``, rejecting escapes."""
    member = PurePosixPath(name)
    if member.is_absolute() or ".." in member.parts:
        raise ArchiveError(f"Refusing unsafe archive entry {name!r}", path=archive)
    return root.joinpath(*member.parts)


def _reject_symlinked_path(root: Path, target: Path, archive: Path) -> None:
    """Refuse to write through a symlink created by an earlier entry."""
    p = target
    while p != root:
        if p.is_symlink():
            raise ArchiveError(
                f"Refusing archive entry through symlink {p.relative_to(root)}", path=archive,
            )
        p = p.parent


def _check_link_target(root: Path, target: Path, link: str, archive: Path) -> None:
    """A symlink entry must point somewhere inside the unpacked tree."""
    if os.path.isabs(link):
        raise ArchiveError(f"Refusing absolute symlink {target.name} -> {link}", path=archive)
    resolved = (target.parent / link).resolve()
    if not resolved.is_relative_to(root.resolve()):
        raise ArchiveError(f"Refusing symlink escaping the archive: {target.name} -> {link}", path=archive)


def _extract_zip(archive: Path, root: Path) -> int:
    try:
        zf = zipfile.ZipFile(archive)
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveError(f"Cannot read zip archive {archive}: {e}", path=archive) from e

    count = 0
    with zf:
        for info in zf.infolist():
            target = _safe_member_path(root, info.filename, archive)
            mode = info.external_attr >> 16
            _reject_symlinked_path(root, target, archive)

            try:
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                elif stat.S_ISLNK(mode):
                    target.parent.mkdir(parents=True, exist_ok=True)
                    link = zf.read(info).decode("utf-8")
                    _check_link_target(root, target, link, archive)
                    os.symlink(link, target)
                else:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as src, open(target, "wb") as out:
                        shutil.copyfileobj(src, out)
                    perms = stat.S_IMODE(mode)
                    if perms:
                        target.chmod(perms)
            except (zipfile.BadZipFile, EOFError, UnicodeDecodeError) as e:
                raise ArchiveError(
                    f"Corrupt entry {info.filename!r} in {archive}: {e}", path=archive,
                ) from e
            except OSError as e:
                raise FilesystemError(f"Cannot write {target}: {e}", path=target) from e
            count += 1
    return count


def _extract_tar(archive: Path, root: Path) -> int:
    try:
        with tarfile.open(archive, "r:*") as tf:
            members = tf.getmembers()
            tf.extractall(root, filter="data")
    except tarfile.TarError as e:
        raise ArchiveError(f"Cannot unpack tar archive {archive}: {e}", path=archive) from e
    except (EOFError, ValueError) as e:
        raise ArchiveError(f"Corrupt tar archive {archive}: {e}", path=archive) from e
    except OSError as e:
        raise FilesystemError(f"Cannot unpack into {root}: {e}", path=root) from e
    return len(members)
