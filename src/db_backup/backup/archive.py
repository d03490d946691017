"""Zip archive building, hashing and verification.

Usage:
    from db_backup.backup.archive import build_archive, calculate_sha256

    size = build_archive(
        [(Path("orders_20260101_000000.sql"), "orders_20260101_000000.sql")],
        Path("backup_prod_20260101_000000.zip"),
    )
    digest = calculate_sha256(Path("backup_prod_20260101_000000.zip"))
"""

import hashlib
import logging
import shutil
import zipfile
from pathlib import Path

from db_backup.errors import CompressionError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
COMPRESSION_LEVEL = 6


def build_archive(entries: list[tuple[Path, str]], dest_path: Path) -> int:
    """Compress files into a single deflate zip archive.

    Each entry is streamed in ``CHUNK_SIZE`` chunks so memory use does not
    depend on dump size.  Any failure aborts the whole archive; the caller
    must discard whatever was written to ``dest_path``.

    Args:
        entries: ``(source_path, archive_name)`` pairs, written in order.
        dest_path: Archive to create (parent directories are created).

    Returns:
        Size of the finished archive in bytes.

    Raises:
        CompressionError: If any entry cannot be read or written.
    """
    logger.info("Compressing %d files to %s", len(entries), dest_path)

    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            dest_path,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=COMPRESSION_LEVEL,
        ) as zf:
            for source_path, archive_name in entries:
                logger.debug("Adding %s as %s", source_path, archive_name)
                # zip64 must be decided before streaming an entry
                force_zip64 = source_path.stat().st_size >= zipfile.ZIP64_LIMIT
                with open(source_path, "rb") as src, zf.open(
                    archive_name, "w", force_zip64=force_zip64
                ) as dst:
                    shutil.copyfileobj(src, dst, CHUNK_SIZE)
        size = dest_path.stat().st_size
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise CompressionError(f"Failed to create archive {dest_path.name}: {e}") from e

    logger.info(
        "Combined compression complete: %d files, %d bytes", len(entries), size
    )
    return size


def calculate_sha256(file_path: Path) -> str:
    """SHA-256 of a file as lowercase hex, read in ``CHUNK_SIZE`` chunks."""
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hasher.update(chunk)
    return hasher.hexdigest()


def verify_archive(archive_path: Path, expected_hash: str | None = None) -> dict:
    """Check that an archive opens, every entry passes its CRC, and the hash matches.

    This function only reads a local file.

    Args:
        archive_path: Zip archive to check.
        expected_hash: Optional SHA-256 hex digest to compare against.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        ``warnings`` (list[str]) and ``entries`` (list[str]).

    Example:
        report = verify_archive(Path("backups/prod/backup_prod_20260101_000000.zip"))
        if not report["valid"]:
            raise ValueError("; ".join(report["errors"]))
    """
    errors: list[str] = []
    warnings: list[str] = []
    entries: list[str] = []

    if not archive_path.exists():
        errors.append(f"Archive not found: {archive_path}")
        return {"valid": False, "errors": errors, "warnings": warnings, "entries": entries}

    try:
        with zipfile.ZipFile(archive_path) as zf:
            entries = zf.namelist()
            bad_entry = zf.testzip()
            if bad_entry is not None:
                errors.append(f"CRC check failed for entry: {bad_entry}")
    except zipfile.BadZipFile as e:
        errors.append(f"Not a valid zip archive: {e}")
        return {"valid": False, "errors": errors, "warnings": warnings, "entries": entries}

    if not entries:
        warnings.append("Archive contains no entries")

    for name in entries:
        if not name.endswith(".sql"):
            warnings.append(f"Unexpected entry: {name}")

    if expected_hash is not None:
        actual = calculate_sha256(archive_path)
        if actual != expected_hash.strip().lower():
            errors.append(f"SHA-256 mismatch: expected {expected_hash}, got {actual}")

    valid = len(errors) == 0
    return {"valid": valid, "errors": errors, "warnings": warnings, "entries": entries}
