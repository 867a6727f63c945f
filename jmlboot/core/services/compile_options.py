"""
Compile options — the arguments the build hands to the substituted tools.

The launchers themselves are mode-agnostic.  Choosing between runtime
assertion checking (``rac``) and extended static checking (``esc``)
happens here, from the ``JML_MODE`` environment signal, and ends up as
ordinary compiler arguments.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from jmlboot.core.models.toolchain import ToolchainConfig

MODE_ENV_VAR = "JML_MODE"


def resolve_mode(env: Mapping[str, str] | None = None) -> str:
    """``esc`` when JML_MODE says so, ``rac`` for anything else."""
    env = os.environ if env is None else env
    return "esc" if env.get(MODE_ENV_VAR, "").strip().lower() == "esc" else "rac"


def compiler_args(config: ToolchainConfig) -> list[str]:
    """Arguments for javac when it is OpenJML in disguise."""
    args = ["-jml", f"-{config.mode}", "-timeout", str(config.check_timeout)]
    if config.nullable_by_default:
        args.append("--nullable-by-default")
    if config.specs_path:
        args.extend(["--specs-path", config.specs_path])
    return args


def runtime_jvm_args(config: ToolchainConfig) -> list[str]:
    """JVM arguments controlling what a failed runtime assertion does."""
    return [f"-Dorg.jmlspecs.openjml.rac={config.rac_behavior}"]
