"""
Launcher generator — forwarding scripts for the substituted executables.

A launcher is a POSIX ``sh`` script made of two parts:

1. a fixed prelude that walks ``"$@"`` and accumulates the expanded
   arguments in ``$args``.  Tokens starting with ``@`` name a response
   file: when the file exists each of its lines becomes an argument,
   otherwise the token is kept verbatim.  This is javac's ``@argfile``
   convention, so callers that pass ``@file`` arguments see the same
   behaviour with or without the launcher in between;
2. a forwarding body that hands ``$args`` to the real executable.

``expand_arguments`` is the same protocol in Python, used by the CLI's
``expand`` command and by the tests as the reference behaviour.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from jmlboot.core.services.toolchain.errors import FilesystemError
from jmlboot.core.services.toolchain.staging import (
    discard,
    make_owner_executable,
    staging_file,
)

logger = logging.getLogger(__name__)

RESPONSE_FILE_SENTINEL = "@"

PRELUDE = """\
#!/bin/sh -euC

args=
for p in "$@"; do
  case "$p" in
  @*)
    # Try to slurp arguments from file at path after `@' sign
    args_file=${p#@}
    if [ -f "$args_file" ]; then
        while IFS= read -r line || [ -n "$line" ]; do
            args="$args $line"
        done < "$args_file"
    else
        args="$args $p"
    fi
    ;;

  *)
    # Regular parameter
    args="$args $p"
    ;;
  esac
done
"""


@dataclass(frozen=True)
class ForwardingBody:
    """The tail of a launcher: run ``executable`` with the expanded ``$args``.

    ``extra_args`` go before the forwarded ones.  Everything except
    ``$args`` is shell-quoted.
    """

    executable: Path
    extra_args: tuple[str, ...] = ()

    def render(self) -> str:
        parts = [shlex.quote(str(self.executable))]
        parts.extend(shlex.quote(a) for a in self.extra_args)
        # $args stays unquoted: it must word-split into separate arguments
        parts.append("$args")
        return " ".join(parts)


@dataclass(frozen=True)
class LauncherTemplate:
    """Prelude + forwarding body."""

    prelude: str = field(default=PRELUDE)

    def render(self, body: ForwardingBody) -> str:
        return self.prelude + "\n" + body.render() + "\n"


DEFAULT_TEMPLATE = LauncherTemplate()


def compiler_forwarding_body(java_home: Path, compiler: str = "javac", suffix: str = ".orig") -> ForwardingBody:
    """Body forwarding to the backed-up original compiler."""
    return ForwardingBody(java_home / "bin" / f"{compiler}{suffix}")


def runtime_forwarding_body(java_home: Path, runtime: str = "java", suffix: str = ".orig") -> ForwardingBody:
    """Body forwarding to the backed-up original runtime launcher."""
    return ForwardingBody(java_home / "bin" / f"{runtime}{suffix}")


def generate_launcher(
    target: Path,
    body: ForwardingBody,
    template: LauncherTemplate = DEFAULT_TEMPLATE,
) -> bool:
    """Write a launcher script to ``target`` unless one is already there.

    Returns:
        True if the script was written, False if ``target`` existed.

    Raises:
        FilesystemError: The script could not be written or made executable.
    """
    name = target.name

    if target.exists():
        logger.info("%s present in %s; no need to generate", name, target)
        return False

    logger.info("Generating %s...", name)
    content = template.render(body)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = staging_file(target)
    except OSError as e:
        raise FilesystemError(f"Cannot create {target.parent}: {e}", path=target) from e

    try:
        tmp.write_text(content, encoding="utf-8")
        make_owner_executable(tmp)
        os.replace(tmp, target)
    except OSError as e:
        discard(tmp)
        raise FilesystemError(f"Cannot write launcher {target}: {e}", path=target) from e

    logger.info("%s generated at %s", name, target)
    return True


# ── Python rendition of the prelude ─────────────────────────────


def expand_arguments(argv: Iterable[str], cwd: Path | None = None) -> str:
    """Expand ``@file`` tokens the way the launcher prelude does.

    Args:
        argv: The positional arguments the launcher was given.
        cwd: Directory relative response-file paths resolve against
            (default: the current directory).

    Returns:
        The accumulated argument string, pieces joined by single spaces.
    """
    base = cwd or Path.cwd()
    pieces: list[str] = []

    for arg in argv:
        if not arg.startswith(RESPONSE_FILE_SENTINEL):
            pieces.append(arg)
            continue

        args_file = Path(arg[len(RESPONSE_FILE_SENTINEL):])
        if not args_file.is_absolute():
            args_file = base / args_file

        if args_file.is_file():
            pieces.extend(_read_lines(args_file))
        else:
            pieces.append(arg)

    return " ".join(pieces)


def split_arguments(expanded: str) -> list[str]:
    """What the forwarded executable receives after ``$args`` word-splits."""
    return expanded.split()


def _read_lines(path: Path) -> Sequence[str]:
    # Same as `read -r` with empty IFS: split on \n only, keep the rest.
    # The shell passes bytes through; surrogateescape keeps undecodable ones.
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        text = f.read()
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines
