"""
StepReceipt and BootstrapReport — what one bootstrap invocation did.

Receipts live only as long as the invocation that produced them.  No
pipeline stage ever reads a receipt to decide whether to act: the
filesystem is the only state.  They exist for reporting (CLI output,
audit ledger).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepReceipt(BaseModel):
    """Outcome of a single pipeline step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    path: str = ""                  # the artifact the step gates on

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    detail: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class BootstrapReport(BaseModel):
    """All receipts of one bootstrap (or restore) invocation, in order."""

    operation: str = "bootstrap"
    version: str = ""
    root: str = ""
    receipts: list[StepReceipt] = Field(default_factory=list)

    @property
    def performed(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def status(self) -> str:
        if self.failed:
            return "failed"
        if self.performed == 0:
            return "unchanged"
        return "ok"

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "version": self.version,
            "root": self.root,
            "status": self.status,
            "performed": self.performed,
            "skipped": self.skipped,
            "failed": self.failed,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }
