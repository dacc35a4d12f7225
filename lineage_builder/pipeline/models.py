"""Data structures for the build pipeline.

RunConfig is built once from the CLI and the loaded device, then passed
explicitly to every stage. Stages report back through StageResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lineage_builder.devices.io import LoadedDevice
from lineage_builder.devices.schema import DeviceDescriptor
from lineage_builder.types import ArtifactInfo, BuildVariant, Stage, StageStatus


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for one pipeline run.

    Attributes:
        device: Loaded device descriptor and effective variant.
        build_root: Build root directory.
        manifest_url: Manifest URL for repo init.
        manifest_branch: Manifest branch for repo init.
        sync_jobs: Parallel jobs for repo sync.
        build_jobs: Parallel jobs for compilation.
        skip_sync: Reuse an existing synced tree.
        skip_clone: Reuse existing device repositories.
        clean_repos: Remove device repositories before cloning.
        clean_first: Run installclean before compiling.
        rom_name: ROM display name.
        artifact_pattern: Glob for the flashable output file.
        required_tools: Executables checked during preflight.
        min_free_space_gb: Recommended free space on the build root's disk.
    """

    device: LoadedDevice
    build_root: Path
    manifest_url: str
    manifest_branch: str
    sync_jobs: int
    build_jobs: int
    skip_sync: bool = False
    skip_clone: bool = False
    clean_repos: bool = False
    clean_first: bool = False
    rom_name: str = "LineageOS"
    artifact_pattern: str = "lineage-*.zip"
    required_tools: tuple[str, ...] = ("repo", "git", "python3", "make", "gcc")
    min_free_space_gb: int = 500

    @property
    def descriptor(self) -> DeviceDescriptor:
        return self.device.descriptor

    @property
    def codename(self) -> str:
        return self.device.descriptor.codename

    @property
    def variant(self) -> BuildVariant:
        return self.device.variant

    @property
    def product_out(self) -> Path:
        """Directory the build system writes device images to."""
        return self.build_root / "out" / "target" / "product" / self.codename

    def summary(self) -> list[tuple[str, str]]:
        """Return (label, value) rows describing this run."""
        descriptor = self.descriptor
        return [
            ("ROM", self.rom_name),
            ("Device", f"{descriptor.codename} ({descriptor.full_name})"),
            ("Manufacturer", descriptor.manufacturer),
            ("Config File", str(self.device.config_path)),
            ("Build Directory", str(self.build_root)),
            ("Manifest Branch", self.manifest_branch),
            ("Sync Jobs", str(self.sync_jobs)),
            ("Build Jobs", str(self.build_jobs)),
            ("Build Variant", self.variant.value),
            ("Skip Sync", str(self.skip_sync).lower()),
            ("Clean First", str(self.clean_first).lower()),
            ("Clean Repos", str(self.clean_repos).lower()),
            ("Skip Clone", str(self.skip_clone).lower()),
        ]


@dataclass
class StageResult:
    """Outcome of one pipeline stage.

    Attributes:
        stage: The stage that ran.
        status: Succeeded, skipped, or failed.
        message: Human-readable summary.
        code: Stable error code when failed.
        warnings: Non-fatal problems encountered (e.g. optional clone failures).
        details: Stage-specific data (e.g. the artifact found by reporting).
    """

    stage: Stage
    status: StageStatus
    message: str = ""
    code: str | None = None
    warnings: list[str] = field(default_factory=list)
    details: dict[str, object] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status == StageStatus.FAILED

    @classmethod
    def ok(cls, stage: Stage, message: str = "", **details: object) -> StageResult:
        return cls(
            stage=stage,
            status=StageStatus.SUCCEEDED,
            message=message,
            details=details,
        )

    @classmethod
    def skip(cls, stage: Stage, message: str = "") -> StageResult:
        return cls(stage=stage, status=StageStatus.SKIPPED, message=message)

    @classmethod
    def fail(cls, stage: Stage, message: str, code: str) -> StageResult:
        return cls(stage=stage, status=StageStatus.FAILED, message=message, code=code)


@dataclass(frozen=True)
class ElapsedTime:
    """Wall-clock duration split into hours, minutes and seconds."""

    hours: int
    minutes: int
    seconds: int

    @classmethod
    def from_seconds(cls, total: float) -> ElapsedTime:
        total_seconds = max(0, int(total))
        return cls(
            hours=total_seconds // 3600,
            minutes=(total_seconds % 3600) // 60,
            seconds=total_seconds % 60,
        )

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes}m {self.seconds}s"


@dataclass
class PipelineResult:
    """Outcome of a whole pipeline run.

    Attributes:
        stages: Results of the stages that ran, in order.
        elapsed: Duration from timing start to the end of the build stage
            (or the failing stage); None if timing never started.
        artifact: Output artifact path, if one was found.
        artifact_info: Size and checksum of the artifact.
        cancelled: True if the user declined the start confirmation.
    """

    stages: list[StageResult] = field(default_factory=list)
    elapsed: ElapsedTime | None = None
    artifact: Path | None = None
    artifact_info: ArtifactInfo | None = None
    cancelled: bool = False

    @property
    def success(self) -> bool:
        if self.cancelled or not self.stages:
            return False
        return not any(s.failed for s in self.stages)

    @property
    def failure(self) -> StageResult | None:
        """Return the failing stage result, if any."""
        for result in self.stages:
            if result.failed:
                return result
        return None

    @property
    def warnings(self) -> list[str]:
        return [w for s in self.stages for w in s.warnings]


__all__ = ["ElapsedTime", "PipelineResult", "RunConfig", "StageResult"]
