"""
Bootstrap use case — the fixed OpenJML initialization sequence.

Flow:
    fetch → extract → compiler launcher → substitute javac
                    → runtime launcher  → substitute java

Every step decides for itself, from the filesystem, whether it has
work to do.  Re-running after a failure resumes at the first
incomplete step; re-running after success touches nothing.

The first failure is recorded, logged, and re-raised.  Completed steps
are not rolled back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from jmlboot.core.models.receipt import BootstrapReport, StepReceipt
from jmlboot.core.models.toolchain import ToolchainConfig
from jmlboot.core.persistence.audit import AuditEntry, AuditWriter
from jmlboot.core.services.toolchain import (
    BootstrapError,
    compiler_forwarding_body,
    extract_archive,
    fetch_release,
    generate_launcher,
    restore_executable,
    runtime_forwarding_body,
    substitute_executable,
)

logger = logging.getLogger(__name__)

Step = tuple[str, Path, Callable[[], bool]]


def plan_steps(config: ToolchainConfig) -> list[Step]:
    """The bootstrap sequence as ``(name, gated path, action)`` triples."""
    java_home = config.java_home_dir.absolute()
    suffix = config.backup_suffix

    return [
        (
            "fetch",
            config.archive_path,
            lambda: fetch_release(
                config.version,
                config.archive_path,
                url_template=config.url_template,
                checksum=config.checksum,
                timeout=config.timeout,
            ),
        ),
        (
            "extract",
            config.home_dir,
            lambda: extract_archive(config.archive_path, config.home_dir),
        ),
        (
            "generate-compiler-launcher",
            config.compiler_launcher_path,
            lambda: generate_launcher(
                config.compiler_launcher_path,
                compiler_forwarding_body(java_home, config.compiler, suffix),
            ),
        ),
        (
            "substitute-compiler",
            config.compiler_path,
            lambda: substitute_executable(
                config.compiler_path, config.compiler_launcher_path, suffix,
            ),
        ),
        (
            "generate-runtime-launcher",
            config.runtime_launcher_path,
            lambda: generate_launcher(
                config.runtime_launcher_path,
                runtime_forwarding_body(java_home, config.runtime, suffix),
            ),
        ),
        (
            "substitute-runtime",
            config.runtime_path,
            lambda: substitute_executable(
                config.runtime_path, config.runtime_launcher_path, suffix,
            ),
        ),
    ]


def _run_step(report: BootstrapReport, name: str, path: Path, action: Callable[[], bool]) -> None:
    start = time.monotonic()
    receipt = StepReceipt(step=name, path=str(path))

    try:
        performed = action()
    except BootstrapError as e:
        e.step = e.step or name
        receipt.status = "failed"
        receipt.error = str(e)
        receipt.metadata["error_type"] = type(e).__name__
        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        report.receipts.append(receipt)
        logger.error("Step %s failed: %s", name, e)
        raise

    receipt.status = "ok" if performed else "skipped"
    receipt.detail = "done" if performed else "already present"
    receipt.duration_ms = int((time.monotonic() - start) * 1000)
    report.receipts.append(receipt)


def _run(
    operation: str,
    config: ToolchainConfig,
    steps: list[Step],
    audit: AuditWriter | None,
) -> BootstrapReport:
    report = BootstrapReport(operation=operation, version=config.version, root=str(config.root))
    try:
        for name, path, action in steps:
            _run_step(report, name, path, action)
    finally:
        if audit is not None:
            audit.write(AuditEntry.from_report(report))
    return report


def bootstrap(config: ToolchainConfig, *, audit: AuditWriter | None = None) -> BootstrapReport:
    """Run the whole initialization sequence.

    Args:
        config: Resolved toolchain configuration.
        audit: Optional ledger that gets one entry for this run.

    Returns:
        Report with one receipt per step, in order.

    Raises:
        BootstrapError: The first step that failed (``.step`` names it).
    """
    report = _run("bootstrap", config, plan_steps(config), audit)

    if report.performed:
        logger.info("OpenJML successfully initialized in %s", config.root)
    else:
        logger.info("OpenJML already initialized in %s; nothing to do", config.root)
    return report


def restore(config: ToolchainConfig, *, audit: AuditWriter | None = None) -> BootstrapReport:
    """Put the original javac and java back in place."""
    suffix = config.backup_suffix
    steps: list[Step] = [
        (
            "restore-compiler",
            config.compiler_path,
            lambda: restore_executable(config.compiler_path, suffix),
        ),
        (
            "restore-runtime",
            config.runtime_path,
            lambda: restore_executable(config.runtime_path, suffix),
        ),
    ]
    return _run("restore", config, steps, audit)
