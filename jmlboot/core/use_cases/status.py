"""
Status use case — which bootstrap steps are complete, read-only.

Evaluates exactly the predicates the pipeline stages gate on, so the
answer matches what ``init`` would do next.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from jmlboot.core.models.toolchain import ToolchainConfig
from jmlboot.core.services.toolchain import is_substituted


@dataclass
class StepStatus:
    name: str
    path: Path
    complete: bool


@dataclass
class ToolchainStatus:
    """Completion state of every bootstrap step."""

    version: str = ""
    root: Path | None = None
    steps: list[StepStatus] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return bool(self.steps) and all(s.complete for s in self.steps)

    @property
    def next_step(self) -> str | None:
        """First step ``init`` would perform, or None."""
        for s in self.steps:
            if not s.complete:
                return s.name
        return None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "root": str(self.root) if self.root else None,
            "complete": self.complete,
            "next_step": self.next_step,
            "steps": [
                {"name": s.name, "path": str(s.path), "complete": s.complete}
                for s in self.steps
            ],
        }


def get_status(config: ToolchainConfig) -> ToolchainStatus:
    suffix = config.backup_suffix
    return ToolchainStatus(
        version=config.version,
        root=config.root,
        steps=[
            StepStatus("fetch", config.archive_path, config.archive_path.exists()),
            StepStatus("extract", config.home_dir, config.home_dir.exists()),
            StepStatus(
                "generate-compiler-launcher",
                config.compiler_launcher_path,
                config.compiler_launcher_path.exists(),
            ),
            StepStatus(
                "substitute-compiler",
                config.compiler_path,
                is_substituted(config.compiler_path, suffix),
            ),
            StepStatus(
                "generate-runtime-launcher",
                config.runtime_launcher_path,
                config.runtime_launcher_path.exists(),
            ),
            StepStatus(
                "substitute-runtime",
                config.runtime_path,
                is_substituted(config.runtime_path, suffix),
            ),
        ],
    )
