"""Output artifact discovery.

After a successful build the flashable zip is looked up in
``out/target/product/<codename>/`` (top level only) by a filename glob.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from lineage_builder.types import ArtifactInfo

logger = logging.getLogger(__name__)

# Default chunk size for hashing
HASH_CHUNK_SIZE = 64 * 1024  # 64KB

SIZE_UNITS = ["B", "K", "M", "G", "T"]


def find_output_artifact(product_out: Path, pattern: str) -> Path | None:
    """Find the first file in ``product_out`` matching ``pattern``.

    Args:
        product_out: Device output directory.
        pattern: Filename glob, e.g. ``lineage-*.zip``.

    Returns:
        Path of the first match in sorted order, or None.
    """
    if not product_out.is_dir():
        logger.warning("Build output directory does not exist: %s", product_out)
        return None

    matches = sorted(p for p in product_out.glob(pattern) if p.is_file())
    if not matches:
        logger.warning("No file matching %s in %s", pattern, product_out)
        return None
    if len(matches) > 1:
        logger.debug("Multiple artifacts match %s, using %s", pattern, matches[0])
    return matches[0]


def compute_file_hash(
    file_path: Path,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute SHA-256 hash of a file.

    Args:
        file_path: Path to the file.
        chunk_size: Size of chunks for streaming hash.

    Returns:
        SHA-256 hex digest.
    """
    sha256 = hashlib.sha256()
    with file_path.open("rb") as f:
        while chunk := f.read(chunk_size):
            sha256.update(chunk)
    return sha256.hexdigest()


def format_size(size_bytes: int) -> str:
    """Format a byte count the way ``ls -lh`` does (e.g. ``1.2G``)."""
    size = float(size_bytes)
    for unit in SIZE_UNITS:
        if size < 1024 or unit == SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)}{unit}"
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size_bytes}B"


def describe_artifact(path: Path) -> ArtifactInfo:
    """Collect size and checksum for an artifact."""
    return ArtifactInfo(
        filename=path.name,
        path=str(path),
        size_bytes=path.stat().st_size,
        sha256=compute_file_hash(path),
    )


__all__ = [
    "compute_file_hash",
    "describe_artifact",
    "find_output_artifact",
    "format_size",
]
