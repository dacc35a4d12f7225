"""External tool adapters.

This module wraps the three collaborators the pipeline drives:
- repo (manifest init and source sync)
- git (device repository clones)
- the Android build system (envsetup.sh, lunch, make/mka)

Each call is a single blocking subprocess invocation whose exit status
is translated into a ToolResult. Output is either inherited from the
terminal or captured to a per-step log file.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from lineage_builder.types import BuildVariant, ToolResult

logger = logging.getLogger(__name__)

ENVSETUP_SCRIPT = "build/envsetup.sh"


class ToolExecutionError(Exception):
    """Raised when an external tool cannot be started at all."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "execution_error",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.code = code


class ToolAdapter(Protocol):
    """Operations the pipeline needs from external tools."""

    def init(self, manifest_url: str, branch: str) -> ToolResult: ...

    def sync(self, jobs: int) -> ToolResult: ...

    def clone(self, url: str, branch: str | None, destination: Path) -> ToolResult: ...

    def select_target(self, codename: str, variant: BuildVariant) -> ToolResult: ...

    def clean(self) -> ToolResult: ...

    def compile(self, jobs: int) -> ToolResult: ...


def compose_repo_init_command(manifest_url: str, branch: str) -> list[str]:
    """Compose the ``repo init`` command."""
    return ["repo", "init", "-u", manifest_url, "-b", branch, "--git-lfs"]


def compose_repo_sync_command(jobs: int) -> list[str]:
    """Compose the ``repo sync`` command."""
    return [
        "repo",
        "sync",
        "-c",
        "--force-sync",
        "--optimized-fetch",
        "--no-tags",
        "--no-clone-bundle",
        "--prune",
        f"-j{jobs}",
    ]


def compose_clone_command(url: str, branch: str | None, destination: Path) -> list[str]:
    """Compose the ``git clone`` command.

    Without a branch the remote's default branch is cloned.
    """
    cmd = ["git", "clone", url]
    if branch:
        cmd.extend(["-b", branch])
    cmd.append(str(destination))
    return cmd


def compose_lunch_target(prefix: str, codename: str, variant: BuildVariant) -> str:
    """Compose a lunch target, e.g. ``lineage_alioth-userdebug``."""
    return f"{prefix}_{codename}-{BuildVariant(variant).value}"


def compose_build_shell_command(lunch_target: str, *steps: str) -> list[str]:
    """Compose a bash invocation running envsetup, lunch, then ``steps``.

    envsetup.sh defines shell functions (lunch, mka), so everything has to
    run inside one shell.
    """
    parts = [f"source {ENVSETUP_SCRIPT}", f"lunch {shlex.quote(lunch_target)}"]
    parts.extend(steps)
    return ["bash", "-c", " && ".join(parts)]


class SubprocessToolAdapter:
    """Runs the real external tools with the build root as working directory.

    Args:
        build_root: Working directory for every command.
        lunch_prefix: Product prefix for lunch targets.
        build_target: Make target passed to mka.
        log_dir: If set, each step's output is captured to ``<step>.log``.
    """

    def __init__(
        self,
        build_root: Path,
        lunch_prefix: str = "lineage",
        build_target: str = "bacon",
        log_dir: Path | None = None,
    ) -> None:
        self.build_root = build_root
        self.lunch_prefix = lunch_prefix
        self.build_target = build_target
        self.log_dir = log_dir
        self.lunch_target: str | None = None

    def init(self, manifest_url: str, branch: str) -> ToolResult:
        return self._run("repo-init", compose_repo_init_command(manifest_url, branch))

    def sync(self, jobs: int) -> ToolResult:
        return self._run("repo-sync", compose_repo_sync_command(jobs))

    def clone(self, url: str, branch: str | None, destination: Path) -> ToolResult:
        step = f"clone-{destination.name}"
        return self._run(step, compose_clone_command(url, branch, destination))

    def select_target(self, codename: str, variant: BuildVariant) -> ToolResult:
        target = compose_lunch_target(self.lunch_prefix, codename, variant)
        result = self._run("lunch", compose_build_shell_command(target))
        if result.success:
            self.lunch_target = target
        return result

    def clean(self) -> ToolResult:
        return self._run(
            "installclean",
            compose_build_shell_command(self._require_target(), "make installclean"),
        )

    def compile(self, jobs: int) -> ToolResult:
        step = f"mka {shlex.quote(self.build_target)} -j{jobs}"
        return self._run(
            "build", compose_build_shell_command(self._require_target(), step)
        )

    def _require_target(self) -> str:
        if self.lunch_target is None:
            raise ToolExecutionError(
                "No build target selected; select_target must succeed first",
                code="no_target",
            )
        return self.lunch_target

    def _run(self, step: str, cmd: list[str]) -> ToolResult:
        """Run one command to completion and translate its exit status."""
        cmd_str = shlex.join(cmd)
        logger.info("Executing: %s", cmd_str)
        logger.debug("Working directory: %s", self.build_root)

        try:
            if self.log_dir is None:
                completed = subprocess.run(cmd, cwd=self.build_root, check=False)
            else:
                completed = self._run_logged(self.log_dir, step, cmd, cmd_str)
        except OSError as e:
            message = f"Failed to execute {cmd[0]}: {e}"
            logger.error(message)
            raise ToolExecutionError(message, code="execution_error") from e

        exit_code = completed.returncode
        if exit_code == 0:
            return ToolResult(success=True, exit_code=0, command=cmd_str)

        error_message = f"{cmd[0]} exited with code {exit_code}"
        logger.error("%s: %s", error_message, cmd_str)
        return ToolResult(
            success=False,
            exit_code=exit_code,
            command=cmd_str,
            error_message=error_message,
        )

    def _run_logged(
        self,
        log_dir: Path,
        step: str,
        cmd: list[str],
        cmd_str: str,
    ) -> subprocess.CompletedProcess[bytes]:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"{step}.log"
        started_at = datetime.now(timezone.utc)
        logger.info("Output captured to %s", log_path)

        with log_path.open("w") as log_file:
            log_file.write(f"# Command: {cmd_str}\n")
            log_file.write(f"# Started: {started_at.isoformat()}\n")
            log_file.write(f"# CWD: {self.build_root}\n")
            log_file.write("# " + "=" * 70 + "\n\n")
            log_file.flush()

            completed = subprocess.run(
                cmd,
                cwd=self.build_root,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                check=False,
            )

        finished_at = datetime.now(timezone.utc)
        with log_path.open("a") as log_file:
            log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
            log_file.write(f"# Exit code: {completed.returncode}\n")
            duration = (finished_at - started_at).total_seconds()
            log_file.write(f"# Duration: {duration:.1f}s\n")
        return completed


__all__ = [
    "ENVSETUP_SCRIPT",
    "SubprocessToolAdapter",
    "ToolAdapter",
    "ToolExecutionError",
    "compose_build_shell_command",
    "compose_clone_command",
    "compose_lunch_target",
    "compose_repo_init_command",
    "compose_repo_sync_command",
]
