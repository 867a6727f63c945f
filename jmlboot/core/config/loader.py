"""
Configuration loader — reads jmlboot.yml into a ToolchainConfig.

Precedence, lowest to highest:

    built-in defaults  <  jmlboot.yml  <  environment  <  CLI flags

The file is optional: without one, defaults apply and relative paths
resolve against the current directory.  Relative paths inside a file
resolve against the file's directory; a relative root from the
environment or a CLI flag resolves against the current directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from jmlboot.core.models.toolchain import ToolchainConfig
from jmlboot.core.services.compile_options import MODE_ENV_VAR, resolve_mode

logger = logging.getLogger(__name__)

CONFIG_FILE = "jmlboot.yml"

# Environment variable → config field
ENV_OVERRIDES = {
    "OPENJML_VERSION": "version",
    "JMLBOOT_ROOT": "root",
}


class ConfigError(Exception):
    """Raised when the toolchain configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for jmlboot.yml starting from ``start_dir``, walking up.

    Returns:
        Path to the file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a config file into a plain mapping.

    Raises:
        ConfigError: The file is missing, unreadable, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading toolchain config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "toolchain" key or be flat
    section = data.get("toolchain", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'toolchain' in {path} must be a mapping")
    return dict(section)


def env_overrides(env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Config fields set through environment variables."""
    env = os.environ if env is None else env
    overrides: dict[str, Any] = {}
    for var, key in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            overrides[key] = value
    if env.get(MODE_ENV_VAR):
        overrides["mode"] = resolve_mode(env)
    return overrides


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    search: bool = True,
) -> ToolchainConfig:
    """Load, merge and validate the toolchain configuration.

    Args:
        path: Explicit config file.  If None and ``search`` is set,
            jmlboot.yml is searched upward from the current directory.
        env: Environment to read overrides from (default: os.environ).
        overrides: Highest-precedence values (CLI flags); None values
            are ignored.
        search: Whether to look for a config file when ``path`` is None.

    Returns:
        A validated config with ``root`` made absolute.

    Raises:
        ConfigError: The file is invalid or the merged values don't validate.
    """
    if path is None and search:
        path = find_config_file()

    data: dict[str, Any] = {}
    base = Path.cwd()
    if path is not None:
        data = read_config_file(path)
        base = path.parent.resolve()

    # Paths given on the command line or in the environment are relative
    # to where the user is, not to the config file
    late = env_overrides(env)
    if overrides:
        late.update({k: v for k, v in overrides.items() if v is not None})
    if "root" in late:
        late["root"] = Path.cwd() / Path(late["root"])
    data.update(late)

    try:
        config = ToolchainConfig.model_validate(data)
    except ValidationError as e:
        where = f" in {path}" if path else ""
        raise ConfigError(f"Invalid toolchain configuration{where}: {e}") from e

    config = config.resolve(base)
    logger.info("Toolchain config: OpenJML %s at %s", config.version, config.root)
    return config
