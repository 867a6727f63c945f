"""
Tests for the archive extractor — zip/tar unpacking, gate, safety.
"""

import os
import stat
import zipfile
from pathlib import Path

import pytest

from jmlboot.core.services.toolchain.errors import ArchiveError, FilesystemError
from jmlboot.core.services.toolchain.extract import archive_format, extract_archive


def _leftovers(directory: Path) -> list[Path]:
    return list(directory.glob(".*.partial"))


class TestArchiveFormat:
    def test_zip_by_name(self, tmp_path: Path):
        assert archive_format(tmp_path / "openjml.zip") == "zip"

    @pytest.mark.parametrize("name", ["a.tar.gz", "a.tgz", "a.tar"])
    def test_tar_by_name(self, tmp_path: Path, name: str):
        assert archive_format(tmp_path / name) == "tar"

    def test_zip_by_content(self, tmp_path: Path, release_dir: Path):
        renamed = tmp_path / "download.bin"
        renamed.write_bytes((release_dir / "openjml-v1.zip").read_bytes())
        assert archive_format(renamed) == "zip"

    def test_unknown_format(self, tmp_path: Path):
        junk = tmp_path / "download.bin"
        junk.write_bytes(b"definitely not an archive")
        with pytest.raises(ArchiveError, match="Unsupported"):
            archive_format(junk)


class TestExtractZip:
    def test_unpacks_structure(self, tmp_path: Path, release_dir: Path, fake_javac: bytes):
        dest = tmp_path / "root" / "jdk"
        assert extract_archive(release_dir / "openjml-v1.zip", dest) is True
        assert (dest / "jdk" / "bin" / "javac").read_bytes() == fake_javac
        assert (dest / "jdk" / "bin" / "java").is_file()
        assert (dest / "jdk" / "lib" / "modules").read_bytes() == b"modules"
        assert (dest / "jmlruntime.jar").is_file()

    def test_preserves_executable_bits(self, tmp_path: Path, release_dir: Path):
        dest = tmp_path / "jdk"
        extract_archive(release_dir / "openjml-v1.zip", dest)
        assert os.access(dest / "jdk" / "bin" / "javac", os.X_OK)
        assert os.access(dest / "jdk" / "bin" / "java", os.X_OK)
        assert not os.access(dest / "jdk" / "lib" / "modules", os.X_OK)

    def test_existing_dest_is_left_alone(self, tmp_path: Path):
        dest = tmp_path / "jdk"
        dest.mkdir()
        (dest / "marker").write_text("mine")
        # The archive is not even looked at
        assert extract_archive(tmp_path / "missing.zip", dest) is False
        assert sorted(p.name for p in dest.iterdir()) == ["marker"]

    def test_missing_archive(self, tmp_path: Path):
        with pytest.raises(FilesystemError, match="not found"):
            extract_archive(tmp_path / "missing.zip", tmp_path / "jdk")

    def test_corrupt_zip_leaves_no_home(self, tmp_path: Path):
        bad = tmp_path / "openjml.zip"
        bad.write_bytes(b"PK\x03\x04 this is not a zip")
        dest = tmp_path / "jdk"
        with pytest.raises(ArchiveError):
            extract_archive(bad, dest)
        assert not dest.exists()
        assert _leftovers(tmp_path) == []

    def test_path_traversal_rejected(self, tmp_path: Path):
        evil = tmp_path / "evil.zip"
        with zipfile.ZipFile(evil, "w") as zf:
            zf.writestr("bin/javac", "ok")
            zf.writestr("../escaped", "boom")
        dest = tmp_path / "out" / "jdk"
        with pytest.raises(ArchiveError, match="unsafe"):
            extract_archive(evil, dest)
        assert not dest.exists()
        assert not (tmp_path / "out" / "escaped").exists()
        assert _leftovers(tmp_path / "out") == []

    def test_retry_after_failure_extracts(self, tmp_path: Path, release_dir: Path):
        bad = tmp_path / "openjml.zip"
        bad.write_bytes(b"garbage")
        dest = tmp_path / "jdk"
        with pytest.raises(ArchiveError):
            extract_archive(bad, dest)

        bad.write_bytes((release_dir / "openjml-v1.zip").read_bytes())
        assert extract_archive(bad, dest) is True
        assert (dest / "jdk" / "bin" / "javac").is_file()


def _zip_with_symlink(path: Path, link_name: str, link_target: str, *after: str) -> Path:
    """A zip holding one symlink entry followed by regular files."""
    with zipfile.ZipFile(path, "w") as zf:
        info = zipfile.ZipInfo(link_name)
        info.external_attr = (stat.S_IFLNK | 0o777) << 16
        zf.writestr(info, link_target)
        for name in after:
            zf.writestr(name, "payload")
    return path


class TestZipSymlinks:
    def test_absolute_link_rejected(self, tmp_path: Path):
        outside = tmp_path / "outside"
        outside.mkdir()
        evil = _zip_with_symlink(tmp_path / "evil.zip", "bin", str(outside), "bin/pwned")
        dest = tmp_path / "out" / "home"

        with pytest.raises(ArchiveError, match="symlink"):
            extract_archive(evil, dest)
        assert not (outside / "pwned").exists()
        assert not dest.exists()
        assert _leftovers(tmp_path / "out") == []

    def test_relative_link_escaping_rejected(self, tmp_path: Path):
        outside = tmp_path / "outside"
        outside.mkdir()
        evil = _zip_with_symlink(tmp_path / "evil.zip", "bin", "../../outside", "bin/pwned")
        dest = tmp_path / "out" / "home"

        with pytest.raises(ArchiveError, match="symlink"):
            extract_archive(evil, dest)
        assert not (outside / "pwned").exists()

    def test_write_through_inner_link_rejected(self, tmp_path: Path):
        archive = _zip_with_symlink(tmp_path / "a.zip", "lib", "jdk", "lib/modules")
        dest = tmp_path / "home"

        with pytest.raises(ArchiveError, match="through symlink"):
            extract_archive(archive, dest)
        assert not dest.exists()

    def test_inner_link_kept(self, tmp_path: Path):
        with zipfile.ZipFile(tmp_path / "a.zip", "w") as zf:
            zf.writestr("jdk/lib/modules", "modules")
            info = zipfile.ZipInfo("jdk/modules")
            info.external_attr = (stat.S_IFLNK | 0o777) << 16
            zf.writestr(info, "lib/modules")
        dest = tmp_path / "home"

        assert extract_archive(tmp_path / "a.zip", dest) is True
        link = dest / "jdk" / "modules"
        assert link.is_symlink()
        assert link.read_text() == "modules"


class TestExtractTar:
    def test_unpacks_tarball(self, tmp_path: Path, release_tar: Path, fake_javac: bytes):
        dest = tmp_path / "jdk"
        assert extract_archive(release_tar, dest) is True
        assert (dest / "bin" / "javac").read_bytes() == fake_javac
        assert os.access(dest / "bin" / "javac", os.X_OK)

    def test_corrupt_tarball(self, tmp_path: Path):
        bad = tmp_path / "openjml.tar.gz"
        bad.write_bytes(b"\x1f\x8b broken gzip")
        dest = tmp_path / "jdk"
        with pytest.raises(ArchiveError):
            extract_archive(bad, dest)
        assert not dest.exists()
