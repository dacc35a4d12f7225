"""Build pipeline module.

This module handles:
- The immutable run configuration
- Preflight checks
- Stage functions (sync, clean, clone, build, report)
- The controller sequencing them
"""

from lineage_builder.pipeline.models import PipelineResult, RunConfig, StageResult

__all__ = ["PipelineResult", "RunConfig", "StageResult"]
