"""LineageOS Builder - device-descriptor driven ROM build orchestration.

This package sequences the steps of building a LineageOS-derived ROM:
source sync via repo, cloning device-specific repositories, invoking
the vendor build system, and reporting the resulting artifact.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
