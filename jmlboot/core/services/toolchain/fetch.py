"""
Release fetcher — download a versioned OpenJML archive.

The only idempotency marker is the archive file itself: if it exists,
nothing is downloaded.  The body is streamed into a hidden sibling and
renamed onto the target only once the whole stream (and the optional
checksum) checked out, so an interrupted download never masquerades as
a finished one.
"""

from __future__ import annotations

import hashlib
import http.client
import logging
import os
import urllib.error
import urllib.request
from pathlib import Path

from jmlboot.core.services.toolchain.errors import (
    FilesystemError,
    IntegrityError,
    TransportError,
)
from jmlboot.core.services.toolchain.staging import discard, staging_file

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_USER_AGENT = "jmlboot/0.1"


def fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"


def render_url(url_template: str, version: str) -> str:
    """Substitute ``{version}`` into the release URL template."""
    return url_template.replace("{version}", version)


def verify_checksum(path: Path, expected: str) -> bool:
    """Check a file against ``algo:hex`` (sha256, sha1, md5, ...)."""
    algo, expected_hash = expected.split(":", 1)
    try:
        h = hashlib.new(algo.lower())
    except ValueError as e:
        raise IntegrityError(f"Unsupported checksum algorithm: {algo}", path=path) from e
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest() == expected_hash.lower()


def fetch_release(
    version: str,
    target: Path,
    *,
    url_template: str,
    checksum: str | None = None,
    timeout: int = 60,
) -> bool:
    """Download the release archive for ``version`` to ``target``.

    Args:
        version: Release tag substituted into ``url_template``.
        target: Where the archive should end up.
        url_template: URL with a ``{version}`` placeholder.
        checksum: Optional ``algo:hex`` digest the archive must match.
        timeout: Socket timeout in seconds.

    Returns:
        True if the archive was downloaded, False if it was already there.

    Raises:
        TransportError: The URL could not be opened or the stream broke.
        IntegrityError: The checksum did not match.
        FilesystemError: The destination could not be written.
    """
    if target.exists():
        logger.info("OpenJML release archive is present in %s; no need to download", target)
        return False

    url = render_url(url_template, version)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = staging_file(target)
    except OSError as e:
        raise FilesystemError(f"Cannot create {target.parent}: {e}", path=target) from e

    logger.info("Downloading OpenJML %s from %s", version, url)
    try:
        downloaded = _stream(url, tmp, timeout=timeout)

        if checksum and not verify_checksum(tmp, checksum):
            raise IntegrityError(
                f"Checksum mismatch for {url} (expected {checksum})", path=target,
            )

        try:
            os.replace(tmp, target)
        except OSError as e:
            raise FilesystemError(f"Cannot move archive into {target}: {e}", path=target) from e
    except BaseException:
        discard(tmp)
        raise

    logger.info("OpenJML downloaded to %s (%s)", target, fmt_size(downloaded))
    return True


def _stream(url: str, dest: Path, *, timeout: int) -> int:
    """Copy the whole response body of ``url`` into ``dest``."""
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        resp = urllib.request.urlopen(req, timeout=timeout)
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise TransportError(f"Cannot open {url}: {e}", path=dest) from e

    with resp:
        total = int(resp.headers.get("Content-Length") or 0)
        downloaded = 0
        last_progress = -1
        with open(dest, "wb") as out:
            while True:
                try:
                    chunk = resp.read(_CHUNK_SIZE)
                except (OSError, http.client.HTTPException) as e:
                    raise TransportError(f"Download of {url} interrupted: {e}", path=dest) from e
                if not chunk:
                    break
                try:
                    out.write(chunk)
                except OSError as e:
                    raise FilesystemError(f"Cannot write {dest}: {e}", path=dest) from e
                downloaded += len(chunk)

                if total > 0:
                    pct = int(downloaded * 100 / total)
                    if pct >= last_progress + 10:
                        last_progress = pct
                        logger.debug(
                            "Download progress: %d%% (%s / %s)",
                            pct, fmt_size(downloaded), fmt_size(total),
                        )

    if total and downloaded < total:
        raise TransportError(
            f"Download of {url} truncated: got {downloaded} of {total} bytes", path=dest,
        )
    return downloaded
