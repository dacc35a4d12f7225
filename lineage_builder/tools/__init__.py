"""Adapters for the external tools driven by the build pipeline."""

from lineage_builder.tools.adapters import (
    SubprocessToolAdapter,
    ToolAdapter,
    ToolExecutionError,
)

__all__ = ["SubprocessToolAdapter", "ToolAdapter", "ToolExecutionError"]
