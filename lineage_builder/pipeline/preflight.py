"""Preflight checks run before touching the build root."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

GIB = 1024**3


def find_missing_tools(tools: list[str] | tuple[str, ...]) -> list[str]:
    """Return the tools from ``tools`` that are not on PATH."""
    missing = [tool for tool in tools if shutil.which(tool) is None]
    for tool in missing:
        logger.debug("Required tool not found on PATH: %s", tool)
    return missing


def nearest_existing_dir(path: Path) -> Path:
    """Return ``path`` or its closest existing ancestor."""
    candidate = path.expanduser().absolute()
    while not candidate.exists() and candidate != candidate.parent:
        candidate = candidate.parent
    return candidate


def free_space_gb(path: Path) -> int:
    """Return free space in whole GiB on the filesystem holding ``path``.

    The path need not exist yet; its nearest existing ancestor is measured.
    """
    usage = shutil.disk_usage(nearest_existing_dir(path))
    return usage.free // GIB


__all__ = ["find_missing_tools", "free_space_gb", "nearest_existing_dir"]
