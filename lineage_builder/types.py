"""Shared type definitions for lineage_builder.

This module contains enums and dataclasses shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum


class BuildVariant(str, Enum):
    """Build flavor passed to lunch."""

    USER = "user"
    USERDEBUG = "userdebug"
    ENG = "eng"


class Stage(str, Enum):
    """Pipeline stages in execution order."""

    PREFLIGHT = "preflight"
    SETUP = "setup"
    SYNC = "sync"
    CLEAN_REPOS = "clean_repos"
    CLONE = "clone"
    BUILD = "build"
    REPORT = "report"


class StageStatus(str, Enum):
    """Outcome of a single stage."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ToolResult:
    """Result of a single external tool invocation."""

    success: bool
    exit_code: int
    command: str
    error_message: str | None = None


@dataclass
class ArtifactInfo:
    """Information about the flashable build output."""

    filename: str
    path: str
    size_bytes: int
    sha256: str


__all__ = ["ArtifactInfo", "BuildVariant", "Stage", "StageStatus", "ToolResult"]
