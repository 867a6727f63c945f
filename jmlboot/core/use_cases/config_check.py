"""
Config check use case — validate jmlboot.yml and report issues.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from jmlboot.core.config.loader import ConfigError, find_config_file, load_config
from jmlboot.core.models.toolchain import ToolchainConfig
from jmlboot.core.services.toolchain import DEFAULT_BACKUP_SUFFIX

# Oldest release whose archive layout and launchers this tool understands
MIN_SUPPORTED_VERSION = "0.17.0-alpha-9"

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:-([a-z]+)-?(\d+)?)?$", re.IGNORECASE)


def parse_version(version: str) -> tuple | None:
    """``0.17.0-alpha-15`` → ``(0, 17, 0, 0, 15)``; None if unrecognised.

    Pre-release tags sort before the final release.
    """
    m = _VERSION_RE.match(version.strip())
    if not m:
        return None
    major, minor, patch, tag, num = m.groups()
    # final release sorts after any pre-release of the same number
    tag_rank = 1 if tag is None else 0
    return (int(major), int(minor), int(patch), tag_rank, int(num or 0))


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: ToolchainConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "version": self.config.version if self.config else None,
            "root": str(self.config.root) if self.config else None,
            "mode": self.config.mode if self.config else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the toolchain configuration and report issues."""
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            result.warnings.append("No jmlboot.yml found; using built-in defaults.")
    result.config_path = config_path

    try:
        config = load_config(config_path, search=False)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    result.config = config

    parsed = parse_version(config.version)
    if parsed is None:
        result.warnings.append(
            f"Cannot parse OpenJML version '{config.version}'; "
            f"only {MIN_SUPPORTED_VERSION} and later are supported."
        )
    elif parsed < parse_version(MIN_SUPPORTED_VERSION):
        result.warnings.append(
            f"OpenJML {config.version} is older than {MIN_SUPPORTED_VERSION}; "
            "its launchers may not work with javac/java substitution."
        )

    if config.backup_suffix == DEFAULT_BACKUP_SUFFIX:
        result.warnings.append(
            f"backup_suffix '{DEFAULT_BACKUP_SUFFIX}' is the generic backup suffix; "
            "use a dedicated one such as '.orig'."
        )

    if config.url_template.startswith("http://"):
        result.warnings.append("url_template uses plain http; prefer https.")

    if config.compiler_launcher == config.compiler or config.runtime_launcher == config.runtime:
        result.errors.append("Launcher names must differ from the executables they replace.")

    if config.archive_inside_home:
        result.errors.append(
            f"archive {config.archive_path} lies inside the extraction directory "
            f"{config.home_dir}; downloading it would make extraction look finished."
        )

    result.valid = not result.errors
    return result
