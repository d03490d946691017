"""Tests for archive building, hashing and verification."""

import hashlib
import zipfile
from pathlib import Path

import pytest

from db_backup.backup.archive import (
    CHUNK_SIZE,
    build_archive,
    calculate_sha256,
    verify_archive,
)
from db_backup.errors import CompressionError


def _write(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


class TestBuildArchive:
    def test_empty_entry_list(self, tmp_path):
        dest = tmp_path / "empty.zip"
        size = build_archive([], dest)

        assert size == dest.stat().st_size
        with zipfile.ZipFile(dest) as zf:
            assert zf.namelist() == []

    def test_single_zero_byte_entry(self, tmp_path):
        src = _write(tmp_path / "a.sql", b"")
        dest = tmp_path / "one.zip"
        build_archive([(src, "a.sql")], dest)

        with zipfile.ZipFile(dest) as zf:
            assert zf.namelist() == ["a.sql"]
            assert zf.read("a.sql") == b""

    def test_entries_named_and_deflated(self, tmp_path):
        first = _write(tmp_path / "x.sql", b"SELECT 1;\n" * 1000)
        second = _write(tmp_path / "y.sql", b"-- y\n")
        dest = tmp_path / "out.zip"

        build_archive([(first, "orders_1.sql"), (second, "users_1.sql")], dest)

        with zipfile.ZipFile(dest) as zf:
            assert zf.namelist() == ["orders_1.sql", "users_1.sql"]
            info = zf.getinfo("orders_1.sql")
            assert info.compress_type == zipfile.ZIP_DEFLATED
            assert info.compress_size < info.file_size
            assert zf.read("orders_1.sql") == first.read_bytes()

    def test_larger_than_chunk_size(self, tmp_path):
        payload = bytes(range(256)) * (CHUNK_SIZE // 256 * 3 + 7)
        src = _write(tmp_path / "big.sql", payload)
        dest = tmp_path / "big.zip"
        build_archive([(src, "big.sql")], dest)

        with zipfile.ZipFile(dest) as zf:
            assert zf.read("big.sql") == payload

    def test_creates_parent_directories(self, tmp_path):
        dest = tmp_path / "nested" / "dir" / "out.zip"
        build_archive([], dest)
        assert dest.exists()

    def test_missing_entry_raises_compression_error(self, tmp_path):
        dest = tmp_path / "out.zip"
        with pytest.raises(CompressionError):
            build_archive([(tmp_path / "missing.sql", "missing.sql")], dest)


class TestCalculateSha256:
    def test_known_digest(self, tmp_path):
        path = _write(tmp_path / "hello.txt", b"hello world")
        assert calculate_sha256(path) == (
            "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
        )

    def test_matches_hashlib_for_multi_chunk_file(self, tmp_path):
        payload = b"z" * (CHUNK_SIZE * 2 + 5)
        path = _write(tmp_path / "data.bin", payload)
        assert calculate_sha256(path) == hashlib.sha256(payload).hexdigest()


class TestVerifyArchive:
    def test_valid_archive(self, tmp_path):
        src = _write(tmp_path / "a.sql", b"-- dump\n")
        dest = tmp_path / "a.zip"
        build_archive([(src, "a.sql")], dest)

        report = verify_archive(dest, expected_hash=calculate_sha256(dest))
        assert report["valid"] is True
        assert report["errors"] == []
        assert report["entries"] == ["a.sql"]

    def test_hash_mismatch(self, tmp_path):
        dest = tmp_path / "a.zip"
        build_archive([], dest)
        report = verify_archive(dest, expected_hash="0" * 64)
        assert report["valid"] is False
        assert "SHA-256 mismatch" in report["errors"][0]

    def test_empty_archive_warns(self, tmp_path):
        dest = tmp_path / "a.zip"
        build_archive([], dest)
        report = verify_archive(dest)
        assert report["valid"] is True
        assert report["warnings"] == ["Archive contains no entries"]

    def test_not_a_zip(self, tmp_path):
        path = _write(tmp_path / "junk.zip", b"not a zip")
        report = verify_archive(path)
        assert report["valid"] is False
        assert "Not a valid zip archive" in report["errors"][0]

    def test_missing_file(self, tmp_path):
        report = verify_archive(tmp_path / "nope.zip")
        assert report["valid"] is False
        assert "Archive not found" in report["errors"][0]
