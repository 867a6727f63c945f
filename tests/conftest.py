"""
Shared test fixtures and configuration.

Releases are served from ``file://`` URLs, so the full bootstrap runs
without network access.
"""

import io
import stat
import tarfile
import zipfile
from pathlib import Path

import pytest

from jmlboot.core.models.toolchain import ToolchainConfig

# What the fake "real" javac/java do: print each argument on its own line
FAKE_JAVAC = b'#!/bin/sh\nfor a in "$@"; do printf \'%s\\n\' "$a"; done\n'
FAKE_JAVA = b'#!/bin/sh\necho "java $*"\n'


def _add_zip_entry(zf: zipfile.ZipFile, name: str, data: bytes, mode: int) -> None:
    info = zipfile.ZipInfo(name)
    info.external_attr = (stat.S_IFREG | mode) << 16
    zf.writestr(info, data)


def build_release_zip(path: Path, jdk_dir: str = "jdk") -> Path:
    """Write a miniature OpenJML release as a zip archive.

    Like the real release, the JDK sits under ``jdk_dir`` next to
    ``jmlruntime.jar``; pass ``""`` for a bare JDK with ``bin/`` on top.
    """
    prefix = f"{jdk_dir}/" if jdk_dir else ""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(f"{prefix}bin/", "")
        _add_zip_entry(zf, f"{prefix}bin/javac", FAKE_JAVAC, 0o755)
        _add_zip_entry(zf, f"{prefix}bin/java", FAKE_JAVA, 0o755)
        _add_zip_entry(zf, f"{prefix}lib/modules", b"modules", 0o644)
        _add_zip_entry(zf, "jmlruntime.jar", b"PK-not-really", 0o644)
    return path


def build_release_tar(path: Path) -> Path:
    """A bare JDK (``bin/`` on top) as a gzipped tarball."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tf:
        for name, data, mode in (
            ("bin/javac", FAKE_JAVAC, 0o755),
            ("bin/java", FAKE_JAVA, 0o755),
            ("lib/modules", b"modules", 0o644),
        ):
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tf.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def release_dir(tmp_path: Path) -> Path:
    """Directory standing in for the GitHub releases server."""
    d = tmp_path / "releases"
    build_release_zip(d / "openjml-v1.zip")
    return d


@pytest.fixture
def flat_release_dir(tmp_path: Path) -> Path:
    """Releases server whose archives have ``bin/`` at the top level."""
    d = tmp_path / "flat-releases"
    build_release_zip(d / "openjml-v1.zip", jdk_dir="")
    return d


@pytest.fixture
def url_template(release_dir: Path) -> str:
    return release_dir.as_uri() + "/openjml-{version}.zip"


@pytest.fixture
def toolchain_config(tmp_path: Path, url_template: str) -> ToolchainConfig:
    """Config with an empty toolchain root and a local release.

    Anchored at ``tmp_path`` as if jmlboot.yml lived there, so the
    archive goes to ``tmp_path/build/tmp/download``.
    """
    return ToolchainConfig(
        version="v1",
        url_template=url_template,
        root=tmp_path / "root",
    ).resolve(tmp_path)


@pytest.fixture
def fake_javac() -> bytes:
    return FAKE_JAVAC


@pytest.fixture
def release_tar(tmp_path: Path) -> Path:
    return build_release_tar(tmp_path / "releases" / "openjml-v1.tar.gz")


@pytest.fixture
def snapshot():
    """Return a function mapping every path under a root to (mtime_ns, size, mode)."""

    def _snapshot(root: Path) -> dict[str, tuple[int, int, int]]:
        result = {}
        for p in sorted(root.rglob("*")):
            st = p.lstat()
            result[str(p.relative_to(root))] = (st.st_mtime_ns, st.st_size, st.st_mode)
        return result

    return _snapshot


@pytest.fixture
def no_network(monkeypatch):
    """Make any download attempt fail the test."""

    def _refuse(*args, **kwargs):
        raise AssertionError("unexpected network access")

    monkeypatch.setattr("urllib.request.urlopen", _refuse)
