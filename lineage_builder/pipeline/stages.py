"""Pipeline stage functions.

Every stage takes the RunConfig (plus the tool adapter where it calls
out) and returns a StageResult. Stages never exit the process; the
controller decides what a failure means.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable

from lineage_builder.devices.repositories import (
    RepositoryEntryError,
    UnsafeRepositoryPathError,
    iter_repositories,
    repository_destination,
    repository_paths,
)
from lineage_builder.devices.schema import DEVICE_TREE_KEY
from lineage_builder.pipeline.artifacts import describe_artifact, find_output_artifact
from lineage_builder.pipeline.models import RunConfig, StageResult
from lineage_builder.pipeline.preflight import find_missing_tools, free_space_gb
from lineage_builder.tools.adapters import ToolAdapter, ToolExecutionError
from lineage_builder.types import Stage

logger = logging.getLogger(__name__)

# Directory created by repo init; its presence marks a synced tree
SYNC_MARKER = ".repo"

Confirm = Callable[[str], bool]


def run_preflight(config: RunConfig, confirm: Confirm) -> StageResult:
    """Check required tools and free disk space.

    Low disk space is only a warning; ``confirm`` decides whether to go on.
    """
    logger.info("Checking system requirements...")
    missing = find_missing_tools(config.required_tools)
    if missing:
        return StageResult.fail(
            Stage.PREFLIGHT,
            f"Command '{missing[0]}' not found. Please install it first."
            if len(missing) == 1
            else f"Commands not found: {', '.join(missing)}. Please install them.",
            code="tool_not_found",
        )

    result = StageResult.ok(Stage.PREFLIGHT, "System requirements check completed")
    try:
        available = free_space_gb(config.build_root)
    except OSError as e:
        return StageResult.fail(
            Stage.PREFLIGHT,
            f"Could not determine free disk space for {config.build_root}: {e}",
            code="disk_check_failed",
        )
    if available < config.min_free_space_gb:
        warning = (
            f"Available disk space: {available}GB. Minimum "
            f"{config.min_free_space_gb}GB recommended for Android builds."
        )
        logger.warning(warning)
        if not confirm("Continue anyway?"):
            return StageResult.fail(
                Stage.PREFLIGHT,
                "Aborted due to insufficient disk space",
                code="insufficient_disk_space",
            )
        result.warnings.append(warning)
    return result


def setup_build_root(config: RunConfig) -> StageResult:
    """Create the build root if needed."""
    logger.info("Setting up build directory %s", config.build_root)
    try:
        config.build_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return StageResult.fail(
            Stage.SETUP,
            f"Failed to create build directory {config.build_root}: {e}",
            code="setup_failed",
        )
    return StageResult.ok(Stage.SETUP, "Build directory setup completed")


def verify_device_tree(config: RunConfig) -> StageResult | None:
    """Check that the device tree exists on disk when cloning is skipped.

    Returns:
        A failed CLONE result, or None if the device tree is present.
    """
    entry = config.descriptor.device_tree
    if entry is None:
        return StageResult.fail(
            Stage.CLONE,
            f"No '{DEVICE_TREE_KEY}' repository declared. "
            "Cannot skip cloning without a device tree.",
            code="no_device_tree",
        )
    if entry.path is None or not entry.has_path:
        return StageResult.fail(
            Stage.CLONE,
            f"The '{DEVICE_TREE_KEY}' repository has no path. "
            "Cannot skip cloning without a device tree.",
            code="no_device_tree",
        )
    try:
        tree = repository_destination(config.build_root, entry.path, DEVICE_TREE_KEY)
    except UnsafeRepositoryPathError as e:
        return StageResult.fail(Stage.CLONE, str(e), code=e.code)
    if not tree.is_dir():
        return StageResult.fail(
            Stage.CLONE,
            f"Device tree not found at {entry.path}. "
            "Cannot skip cloning without existing device repos.",
            code="device_tree_missing",
        )
    return None


def sync_sources(config: RunConfig, adapter: ToolAdapter) -> StageResult:
    """Initialize and sync the source tree, or verify an existing sync."""
    if config.skip_sync:
        logger.warning("Skipping source sync as requested")
        if not (config.build_root / SYNC_MARKER).is_dir():
            return StageResult.fail(
                Stage.SYNC,
                f"No existing repo found in {config.build_root}. Cannot skip sync.",
                code="no_synced_tree",
            )
        return StageResult.skip(Stage.SYNC, "Source sync skipped")

    logger.info("Initializing repository...")
    try:
        init = adapter.init(config.manifest_url, config.manifest_branch)
        if not init.success:
            return StageResult.fail(
                Stage.SYNC, "Failed to initialize repository", code="repo_init_failed"
            )

        logger.info("Syncing sources (this may take a while)...")
        sync = adapter.sync(config.sync_jobs)
        if not sync.success:
            return StageResult.fail(
                Stage.SYNC, "Failed to sync sources", code="repo_sync_failed"
            )
    except ToolExecutionError as e:
        return StageResult.fail(Stage.SYNC, str(e), code=e.code)

    return StageResult.ok(Stage.SYNC, "ROM sources synced successfully")


def clean_repositories(config: RunConfig) -> StageResult:
    """Remove device repository checkouts, best effort.

    Paths that resolve outside the build root are never removed; they are
    reported as warnings.
    """
    if not config.clean_repos:
        return StageResult.skip(Stage.CLEAN_REPOS)

    logger.info("Cleaning existing device repositories...")
    result = StageResult.ok(Stage.CLEAN_REPOS, "Device repositories cleaned")
    for path in repository_paths(config.descriptor):
        try:
            target = repository_destination(config.build_root, path)
        except UnsafeRepositoryPathError as e:
            warning = f"Not removing {path}: {e}"
            logger.warning(warning)
            result.warnings.append(warning)
            continue
        if not target.is_dir():
            continue
        logger.info("Removing %s", path)
        try:
            shutil.rmtree(target)
        except OSError as e:
            warning = f"Could not fully remove {path}: {e}"
            logger.warning(warning)
            result.warnings.append(warning)
    return result


def clone_repositories(config: RunConfig, adapter: ToolAdapter) -> StageResult:
    """Clone device repositories in descriptor order.

    A required entry without a URL, or a failed required clone, stops the
    stage immediately. Repositories already cloned are left in place.
    """
    if config.skip_clone:
        logger.warning("Skipping device repository cloning as requested")
        missing = verify_device_tree(config)
        if missing is not None:
            return missing
        return StageResult.skip(Stage.CLONE, "Device repository cloning skipped")

    logger.info("Cloning device-specific repositories...")
    warnings: list[str] = []
    cloned: list[str] = []
    try:
        for plan in iter_repositories(config.descriptor):
            if plan.url is None:
                warning = f"Skipping optional repository: {plan.key}"
                logger.warning(warning)
                warnings.append(warning)
                continue

            try:
                destination = plan.destination(config.build_root)
            except UnsafeRepositoryPathError:
                if not plan.optional:
                    raise
                warning = f"Skipping optional repository: {plan.key}"
                logger.warning(warning)
                warnings.append(warning)
                continue

            logger.info("Cloning %s...", plan.key)
            try:
                clone = adapter.clone(plan.url, plan.branch, destination)
                success = clone.success
            except ToolExecutionError as e:
                logger.error("%s", e)
                success = False

            if success:
                cloned.append(plan.key)
            elif plan.optional:
                warning = f"Failed to clone optional repository: {plan.key}"
                logger.warning(warning)
                warnings.append(warning)
            else:
                result = StageResult.fail(
                    Stage.CLONE,
                    f"Failed to clone required repository: {plan.key}",
                    code="clone_failed",
                )
                result.warnings.extend(warnings)
                result.details["cloned"] = cloned
                return result
    except RepositoryEntryError as e:
        result = StageResult.fail(Stage.CLONE, str(e), code=e.code)
        result.warnings.extend(warnings)
        result.details["cloned"] = cloned
        return result

    result = StageResult.ok(
        Stage.CLONE, "All device repositories cloned successfully", cloned=cloned
    )
    result.warnings.extend(warnings)
    return result


def build_rom(config: RunConfig, adapter: ToolAdapter) -> StageResult:
    """Select the lunch target, optionally installclean, then compile."""
    logger.info("Setting up device configuration...")
    try:
        target = adapter.select_target(config.codename, config.variant)
        if not target.success:
            return StageResult.fail(
                Stage.BUILD,
                "Failed to setup device configuration",
                code="target_selection_failed",
            )

        if config.clean_first:
            logger.info("Running installclean for clean build...")
            clean = adapter.clean()
            if not clean.success:
                return StageResult.fail(
                    Stage.BUILD, "installclean failed", code="clean_failed"
                )

        logger.info(
            "Building ROM with %d parallel jobs (this will take several hours)...",
            config.build_jobs,
        )
        compiled = adapter.compile(config.build_jobs)
        if not compiled.success:
            return StageResult.fail(
                Stage.BUILD, "ROM build failed!", code="build_failed"
            )
    except ToolExecutionError as e:
        return StageResult.fail(Stage.BUILD, str(e), code=e.code)

    return StageResult.ok(Stage.BUILD, "ROM build completed successfully!")


def report_artifact(config: RunConfig) -> StageResult:
    """Locate the output artifact and read its size and checksum.

    Finding no artifact is not an error; an artifact that cannot be read
    is.
    """
    artifact = find_output_artifact(config.product_out, config.artifact_pattern)
    if artifact is None:
        return StageResult.ok(Stage.REPORT, "Build finished; no output artifact found")
    try:
        info = describe_artifact(artifact)
    except OSError as e:
        return StageResult.fail(
            Stage.REPORT,
            f"Could not read output artifact {artifact}: {e}",
            code="artifact_unreadable",
        )
    return StageResult.ok(
        Stage.REPORT, f"ROM file created: {artifact}", artifact=artifact, info=info
    )


__all__ = [
    "SYNC_MARKER",
    "build_rom",
    "clean_repositories",
    "clone_repositories",
    "report_artifact",
    "run_preflight",
    "setup_build_root",
    "sync_sources",
    "verify_device_tree",
]
