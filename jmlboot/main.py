"""
jmlboot — CLI entrypoint.

Usage:
    python -m jmlboot.main --help
    python -m jmlboot.main init
    python -m jmlboot.main status
    python -m jmlboot.main config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from jmlboot import __version__
from jmlboot.core.observability.logging_config import setup_logging_from_env


@click.group()
@click.version_option(version=__version__, prog_name="jmlboot")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to jmlboot.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """jmlboot — install OpenJML in place of javac and java."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(debug=debug, verbose=verbose, quiet=quiet)


def _load_config(ctx: click.Context, **overrides):
    """Load the toolchain config or exit with a red error line."""
    from jmlboot.core.config.loader import ConfigError, load_config

    try:
        return load_config(ctx.obj.get("config_path"), overrides=overrides)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _audit_writer(config):
    if config.audit_file is None:
        return None
    from jmlboot.core.persistence.audit import AuditWriter

    return AuditWriter(config.audit_file)


_STEP_ICONS = {
    "ok": ("✓", "green"),
    "skipped": ("⊘", "yellow"),
    "failed": ("✗", "red"),
}


def _print_report(ctx: click.Context, report) -> None:
    for receipt in report.receipts:
        icon, color = _STEP_ICONS.get(receipt.status, ("?", "white"))
        click.secho(f"   {icon} {receipt.step}", fg=color, nl=False)
        timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
        click.echo(f"{timing}")
        if ctx.obj.get("verbose") and receipt.path:
            click.echo(f"     │ {receipt.path}")
        if receipt.error:
            click.echo(f"     │ {receipt.error}")


@cli.command()
@click.option("--version-tag", "version", default=None, help="OpenJML release to install.")
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="Toolchain root directory (relative to the current directory).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def init(ctx: click.Context, version: str | None, root: str | None, as_json: bool) -> None:
    """Download, unpack and wire OpenJML in place of javac/java.

    Safe to run any number of times: finished steps are skipped.
    """
    from jmlboot.core.services.toolchain import BootstrapError
    from jmlboot.core.use_cases.bootstrap import bootstrap

    config = _load_config(ctx, version=version, root=root)

    try:
        report = bootstrap(config, audit=_audit_writer(config))
    except BootstrapError as e:
        if as_json:
            click.echo(json.dumps({"status": "failed", "step": e.step, "error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e.step or 'bootstrap'}: {e}", fg="red")
            click.echo("   Fix the cause (or remove the partial artifact) and run 'jmlboot init' again.")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        click.secho(f"\n☕ OpenJML {config.version} → {config.root}", fg="cyan", bold=True)
        _print_report(ctx, report)
        click.echo()

    if report.performed:
        click.secho("✅ OpenJML successfully initialized", fg="green", bold=True)
    else:
        click.secho("👌 OpenJML already initialized; nothing to do", fg="green")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show which bootstrap steps are complete (read-only)."""
    from jmlboot.core.use_cases.status import get_status

    config = _load_config(ctx)
    result = get_status(config)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.secho(f"\n☕ OpenJML {result.version}", fg="cyan", bold=True)
    click.echo(f"   Root: {result.root}")
    click.echo()
    for step in result.steps:
        if step.complete:
            click.secho(f"   ✓ {step.name}", fg="green")
        else:
            click.secho(f"   ✗ {step.name}", fg="red")
        if ctx.obj.get("verbose"):
            click.echo(f"     │ {step.path}")

    click.echo()
    if result.complete:
        click.secho("   Toolchain ready", fg="green", bold=True)
    else:
        click.secho(f"   Next step: {result.next_step}", fg="yellow", bold=True)
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def restore(ctx: click.Context, as_json: bool) -> None:
    """Put the original javac and java back."""
    from jmlboot.core.services.toolchain import BootstrapError
    from jmlboot.core.use_cases.bootstrap import restore as restore_originals

    config = _load_config(ctx)

    try:
        report = restore_originals(config, audit=_audit_writer(config))
    except BootstrapError as e:
        click.secho(f"❌ {e.step or 'restore'}: {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    _print_report(ctx, report)
    if report.performed:
        click.secho("✅ Original executables restored", fg="green", bold=True)
    else:
        click.secho("👌 Nothing to restore", fg="green")


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("arguments", nargs=-1, type=click.UNPROCESSED)
@click.option("--split", is_flag=True, help="Print one forwarded argument per line.")
def expand(arguments: tuple[str, ...], split: bool) -> None:
    """Expand @file arguments exactly like the generated launchers do.

    Example:

        jmlboot expand -d out @sources.txt
    """
    from jmlboot.core.services.toolchain import expand_arguments, split_arguments

    # Response files may hold bytes that are not UTF-8; write them back as-is
    expanded = expand_arguments(arguments)
    if split:
        for arg in split_arguments(expanded):
            click.echo(os.fsencode(arg))
    else:
        click.echo(os.fsencode(expanded))


@cli.command("compiler-args")
@click.option("--runtime", is_flag=True, help="Print the JVM arguments for java instead.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def compiler_args_cmd(ctx: click.Context, runtime: bool, as_json: bool) -> None:
    """Print the arguments the build should pass to javac (or java).

    The checking mode follows JML_MODE: 'esc' for extended static
    checking, anything else for runtime assertion checking.
    """
    from jmlboot.core.services.compile_options import compiler_args, runtime_jvm_args

    config = _load_config(ctx)
    args = runtime_jvm_args(config) if runtime else compiler_args(config)

    if as_json:
        click.echo(json.dumps(args))
    else:
        click.echo(" ".join(args))


@cli.command()
@click.option("-n", "count", default=20, type=int, help="Number of entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent bootstrap runs from the audit ledger."""
    from jmlboot.core.persistence.audit import AuditWriter

    config = _load_config(ctx)
    if config.audit_file is None:
        click.secho("No audit_file configured in jmlboot.yml.", fg="yellow")
        return

    entries = AuditWriter(config.audit_file).read_recent(count)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No bootstrap runs recorded yet.")
        return

    status_color = {"ok": "green", "unchanged": "white", "failed": "red"}
    for entry in entries:
        click.echo(f"   {entry.timestamp}  {entry.operation} {entry.version} — ", nl=False)
        click.secho(entry.status, fg=status_color.get(entry.status, "white"))
        for err in entry.errors:
            click.echo(f"     │ {err}")


@cli.group()
def config() -> None:
    """Toolchain configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate jmlboot.yml."""
    from jmlboot.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   OpenJML: {result.config.version}")
        click.echo(f"   Root:    {result.config.root}")
        click.echo(f"   Mode:    {result.config.mode}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
