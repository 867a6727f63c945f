"""
Toolchain model — where the OpenJML distribution lives and how it is wired.

Loaded from jmlboot.yml (plus environment overrides), this is the single
object handed to the bootstrap sequence.  Every literal the pipeline
needs (URL template, backup suffix, executable names) is a field here
rather than a module-level constant, so tests can inject their own.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_VERSION = "0.17.0-alpha-15"
DEFAULT_URL_TEMPLATE = (
    "https://github.com/OpenJML/OpenJML/releases/download/"
    "{version}/openjml-ubuntu-20.04-{version}.zip"
)

# Suffix reserved for "the original, pre-substitution binary"
ORIGINAL_EXECUTABLE_SUFFIX = ".orig"


class ToolchainConfig(BaseModel):
    """Everything the bootstrap sequence needs to know.

    ``root`` and ``archive`` are relative to the project directory;
    ``home`` (the extraction target) is relative to ``root`` and
    ``java_home`` to ``home``.  The defaults follow the OpenJML release
    layout, which ships the JDK under ``jdk/`` next to ``jmlruntime.jar``:

        build/tmp/download/openjml.zip   archive
        .openjml/                        unpacked release
        .openjml/jdk/bin/javac           substituted compiler

    The archive must not live inside ``home``: fetching would create
    the directory and the extraction step would then be skipped.
    """

    # ── Release ──────────────────────────────────────────────────
    version: str = DEFAULT_VERSION
    url_template: str = DEFAULT_URL_TEMPLATE
    checksum: str | None = None     # "sha256:<hex>"
    timeout: int = 60               # seconds, per network read

    # ── Layout ───────────────────────────────────────────────────
    root: Path = Path(".openjml")
    archive: Path = Path("build/tmp/download/openjml.zip")
    home: Path = Path(".")
    java_home: Path = Path("jdk")

    # ── Executables ──────────────────────────────────────────────
    compiler: str = "javac"
    runtime: str = "java"
    compiler_launcher: str = "jmlavac"
    runtime_launcher: str = "jmlava"
    backup_suffix: str = ORIGINAL_EXECUTABLE_SUFFIX

    # ── Compile options (consumed by the surrounding build) ─────
    mode: Literal["rac", "esc"] = "rac"
    check_timeout: int = 30
    specs_path: str = "specs/"
    nullable_by_default: bool = True
    rac_behavior: str = "exception"

    # ── History ──────────────────────────────────────────────────
    audit_file: Path | None = None

    @field_validator("url_template")
    @classmethod
    def _template_has_version(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("url_template must contain a '{version}' placeholder")
        return value

    @field_validator("backup_suffix")
    @classmethod
    def _suffix_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("backup_suffix must not be empty")
        return value

    @field_validator("checksum")
    @classmethod
    def _checksum_format(cls, value: str | None) -> str | None:
        if value is not None and ":" not in value:
            raise ValueError("checksum must look like 'algo:hex'")
        return value

    # ── Resolved layout ──────────────────────────────────────────

    def resolve(self, base: Path) -> ToolchainConfig:
        """Return a copy with ``root``, ``archive`` and ``audit_file`` anchored at ``base``."""
        updates: dict = {}
        if not self.root.is_absolute():
            updates["root"] = (base / self.root).resolve()
        if not self.archive.is_absolute():
            updates["archive"] = (base / self.archive).resolve()
        if self.audit_file is not None and not self.audit_file.is_absolute():
            updates["audit_file"] = (base / self.audit_file).resolve()
        return self.model_copy(update=updates)

    @property
    def archive_path(self) -> Path:
        return self.archive

    @property
    def archive_inside_home(self) -> bool:
        return self.archive_path.absolute().is_relative_to(self.home_dir.absolute())

    @property
    def home_dir(self) -> Path:
        return self.root / self.home

    @property
    def java_home_dir(self) -> Path:
        return self.home_dir / self.java_home

    @property
    def bin_dir(self) -> Path:
        return self.java_home_dir / "bin"

    @property
    def compiler_path(self) -> Path:
        return self.bin_dir / self.compiler

    @property
    def runtime_path(self) -> Path:
        return self.bin_dir / self.runtime

    @property
    def compiler_launcher_path(self) -> Path:
        return self.bin_dir / self.compiler_launcher

    @property
    def runtime_launcher_path(self) -> Path:
        return self.bin_dir / self.runtime_launcher

    @property
    def download_url(self) -> str:
        return self.url_template.replace("{version}", self.version)
