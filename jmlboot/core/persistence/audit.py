"""
Audit ledger — append-only history of bootstrap runs.

One NDJSON line per ``init`` / ``restore`` invocation.  The ledger is
opt-in (``audit_file`` in jmlboot.yml): a bootstrap that finds
everything in place must not write anything by default.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from jmlboot.core.models.receipt import BootstrapReport

logger = logging.getLogger(__name__)


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation: str = ""            # bootstrap, restore
    version: str = ""
    root: str = ""

    status: str = ""               # ok, unchanged, failed
    steps_performed: list[str] = Field(default_factory=list)
    steps_skipped: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    errors: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: BootstrapReport) -> AuditEntry:
        return cls(
            operation=report.operation,
            version=report.version,
            root=report.root,
            status=report.status,
            steps_performed=[r.step for r in report.receipts if r.ok],
            steps_skipped=[r.step for r in report.receipts if r.skipped],
            duration_ms=sum(r.duration_ms for r in report.receipts),
            errors=[r.error for r in report.receipts if r.error],
        )


class AuditWriter:
    """Append-only audit ledger writer."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append an entry.  Failures are logged, never raised."""
        data = entry.model_dump(mode="json")
        line = json.dumps(data, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s (%s)", entry.operation, entry.status)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries, oldest first.  Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first (none for ``n <= 0``)."""
        if n <= 0:
            return []
        return self.read_all()[-n:]
