"""Repository set resolution.

Walks the descriptor's ``repositories`` mapping in its own order and
yields one plan per entry. Validation is interleaved with traversal: a
required entry without a URL or a usable path raises at the point it is
reached, so entries earlier in the mapping may already have been acted
upon.

Destination paths are relative to the build root and must stay inside
it; absolute paths and ``..`` components are refused.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from lineage_builder.devices.schema import DeviceDescriptor, RepositoryEntry

logger = logging.getLogger(__name__)


class RepositoryEntryError(Exception):
    """Base class for a repository entry that cannot be acted upon."""

    def __init__(self, message: str, key: str | None, code: str) -> None:
        super().__init__(message)
        self.key = key
        self.code = code


class MissingRepositoryURLError(RepositoryEntryError):
    """Raised when a required repository has no URL."""

    def __init__(self, key: str, code: str = "missing_repository_url") -> None:
        super().__init__(f"Required repository missing URL: {key}", key, code)


class MissingRepositoryPathError(RepositoryEntryError):
    """Raised when a required repository has no destination path."""

    def __init__(self, key: str, code: str = "missing_repository_path") -> None:
        super().__init__(f"Required repository missing path: {key}", key, code)


class UnsafeRepositoryPathError(RepositoryEntryError):
    """Raised when a destination path would leave the build root."""

    def __init__(
        self,
        path: str,
        key: str | None = None,
        code: str = "unsafe_repository_path",
    ) -> None:
        label = f"{key}: " if key else ""
        super().__init__(
            f"Repository path outside the build root: {label}{path}", key, code
        )
        self.path = path


def is_relative_path(path: str) -> bool:
    """Return True if ``path`` is relative and has no ``..`` component."""
    pure = PurePosixPath(path)
    if pure.is_absolute() or Path(path).is_absolute():
        return False
    return ".." not in pure.parts and pure.parts != ()


def repository_destination(
    build_root: Path, path: str, key: str | None = None
) -> Path:
    """Return ``build_root / path``, refusing paths that escape the root.

    Symlinks are followed when checking, so a link pointing outside the
    build root is refused too.

    Raises:
        UnsafeRepositoryPathError: If the destination is not strictly
            inside ``build_root``.
    """
    if not is_relative_path(path):
        raise UnsafeRepositoryPathError(path, key)
    root = build_root.expanduser().resolve()
    target = (root / path).resolve()
    if root not in target.parents:
        raise UnsafeRepositoryPathError(path, key)
    return build_root / path


@dataclass(frozen=True)
class RepositoryPlan:
    """A resolved repository entry.

    Attributes:
        key: Repository key in the descriptor.
        url: Clone URL, or None when the entry is skipped.
        branch: Branch to clone (None clones the default branch).
        path: Destination relative to the build root; may be None for a
            skipped entry.
        optional: Whether failures for this entry are tolerated.
    """

    key: str
    url: str | None
    branch: str | None
    path: str | None
    optional: bool = False

    @property
    def skipped(self) -> bool:
        """True for an optional entry that will not be cloned."""
        return self.url is None

    def destination(self, build_root: Path) -> Path:
        if self.path is None:
            raise MissingRepositoryPathError(self.key)
        return repository_destination(build_root, self.path, self.key)


def _skip(key: str, entry: RepositoryEntry, reason: str) -> RepositoryPlan:
    logger.debug("Optional repository %s %s", key, reason)
    return RepositoryPlan(
        key=key, url=None, branch=entry.branch, path=entry.path, optional=True
    )


def iter_repositories(descriptor: DeviceDescriptor) -> Iterator[RepositoryPlan]:
    """Yield repository plans in descriptor order.

    Optional entries without a URL, or with a missing or unsafe path, are
    yielded with ``url=None`` so the caller can report the skip.

    Raises:
        MissingRepositoryURLError: When a required entry without a URL is
            reached. Entries before it have already been yielded.
        MissingRepositoryPathError: When a required entry without a path
            is reached.
        UnsafeRepositoryPathError: When a required entry's path is
            absolute or contains ``..``.
    """
    for key, entry in descriptor.repositories.items():
        if not entry.has_url:
            if entry.optional:
                yield _skip(key, entry, "has no URL")
                continue
            raise MissingRepositoryURLError(key)

        if entry.path is None or not entry.has_path:
            if entry.optional:
                yield _skip(key, entry, "has no path")
                continue
            raise MissingRepositoryPathError(key)

        if not is_relative_path(entry.path):
            if entry.optional:
                yield _skip(key, entry, "has a path outside the build root")
                continue
            raise UnsafeRepositoryPathError(entry.path, key)

        yield RepositoryPlan(
            key=key,
            url=entry.url,
            branch=entry.branch,
            path=entry.path,
            optional=entry.optional,
        )


def repository_paths(descriptor: DeviceDescriptor) -> list[str]:
    """Return every declared destination path, URL or not.

    Entries without a path are left out.
    """
    return [
        entry.path
        for entry in descriptor.repositories.values()
        if entry.path is not None and entry.has_path
    ]


__all__ = [
    "MissingRepositoryPathError",
    "MissingRepositoryURLError",
    "RepositoryEntryError",
    "RepositoryPlan",
    "UnsafeRepositoryPathError",
    "is_relative_path",
    "iter_repositories",
    "repository_destination",
    "repository_paths",
]
