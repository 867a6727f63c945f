"""
Bootstrap error taxonomy.

Every stage raises one of these and nothing else.  None of them is
recovered inside the pipeline: they propagate to the caller, which
decides how to report them.
"""

from __future__ import annotations

from pathlib import Path


class BootstrapError(Exception):
    """Base class for all bootstrap failures."""

    def __init__(self, message: str, *, path: Path | str | None = None, step: str = ""):
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        self.step = step


class TransportError(BootstrapError):
    """The release archive could not be downloaded."""


class IntegrityError(TransportError):
    """The downloaded archive does not match the expected checksum."""


class FilesystemError(BootstrapError):
    """Creating, renaming, copying or chmod-ing a file failed."""


class ArchiveError(BootstrapError):
    """The archive is malformed, unsupported, or unsafe to unpack."""
