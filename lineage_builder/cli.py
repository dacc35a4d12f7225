"""Thin CLI wrapper for lineage_builder.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from lineage_builder import __version__
from lineage_builder.config import Settings, get_settings, print_settings_json
from lineage_builder.devices.io import (
    DeviceConfigError,
    DeviceConfigNotFoundError,
    list_available_devices,
    load_device,
)
from lineage_builder.pipeline.artifacts import format_size
from lineage_builder.pipeline.controller import BuildPipeline
from lineage_builder.pipeline.models import PipelineResult, RunConfig
from lineage_builder.tools.adapters import SubprocessToolAdapter
from lineage_builder.types import BuildVariant, StageStatus

app = typer.Typer(
    name="lineage-build",
    help="LineageOS ROM builder - sync, clone device repos, and build",
    add_completion=False,
    context_settings={"help_option_names": []},
)
console = Console()

EXIT_INTERRUPTED = 130

EXAMPLES = [
    ("--device <device_name>", "Build for device"),
    ("-d <device_name> --variant user", "User variant build"),
    ("-d <device_name> --skip-sync", "Rebuild without syncing"),
    ("-d /path/to/custom.json", "Build with custom config"),
]


def _print_labeled(label: str, color: str, message: str) -> None:
    console.print(f"[{color}]\\[{label}][/{color}] ", end="")
    console.print(message, markup=False, highlight=False, soft_wrap=True)


def print_status(message: str) -> None:
    _print_labeled("INFO", "blue", message)


def print_success(message: str) -> None:
    _print_labeled("SUCCESS", "green", message)


def print_warning(message: str) -> None:
    _print_labeled("WARNING", "yellow", message)


def print_error(message: str) -> None:
    _print_labeled("ERROR", "red", message)


def print_plain(text: str) -> None:
    """Print text verbatim, without markup or wrapping."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def print_available_devices(devices_dir: Path) -> None:
    """Print the device names found in ``devices_dir``."""
    console.print("Available devices:")
    devices = list_available_devices(devices_dir)
    if not devices:
        console.print("  No devices configured")
    for name in devices:
        print_plain(f"  {name}")


def configure_logging(level: str) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_path=False,
                markup=False,
            )
        ],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"lineage-builder version {__version__}")
        raise typer.Exit()


def print_help(ctx: typer.Context, devices_dir: Path) -> None:
    """Print usage, available devices and examples."""
    help_text = ctx.get_help()
    if help_text:
        print_plain(help_text)
    console.print()
    print_available_devices(devices_dir)
    console.print()
    console.print("Examples:")
    for args, description in EXAMPLES:
        print_plain(f"  lineage-build {args:<36} # {description}")


def show_summary(config: RunConfig) -> None:
    """Print the resolved run configuration before confirmation."""
    console.print("[yellow]Build Configuration:[/yellow]")
    for label, value in config.summary():
        print_plain(f"  {label}: {value}")
    console.print()


def confirm(prompt: str) -> bool:
    """Ask a yes/no question; Ctrl-C or end of input raises typer.Abort."""
    return typer.confirm(prompt, default=False)


def apply_overrides(
    settings: Settings,
    build_dir: Path | None,
    devices_dir: Path | None,
    log_dir: Path | None,
    jobs: int | None,
    sync_jobs: int | None,
) -> Settings:
    """Return settings with CLI overrides applied."""
    update: dict[str, object] = {}
    if build_dir is not None:
        update["build_dir"] = build_dir
    if devices_dir is not None:
        update["devices_dir"] = devices_dir
    if log_dir is not None:
        update["log_dir"] = log_dir
    if jobs is not None:
        update["build_jobs"] = jobs
    if sync_jobs is not None:
        update["sync_jobs"] = sync_jobs
    if not update:
        return settings
    return settings.model_copy(update=update)


def print_result(result: PipelineResult) -> None:
    """Print warnings, the artifact, and elapsed time."""
    for warning in result.warnings:
        print_warning(warning)

    failure = result.failure
    if failure is not None:
        print_error(failure.message)
        if result.elapsed is not None:
            console.print(f"[red]Time before failure: {result.elapsed}[/red]")
        return

    for stage in result.stages:
        if not stage.message:
            continue
        if stage.status == StageStatus.SKIPPED:
            print_status(stage.message)
        else:
            print_success(stage.message)

    info = result.artifact_info
    if info is not None:
        print_plain(f"  Path:   {info.path}")
        print_plain(f"  Size:   {format_size(info.size_bytes)}")
        print_plain(f"  SHA256: {info.sha256}")

    console.print()
    console.print("[green]================================[/green]")
    console.print("[green]       BUILD COMPLETED!         [/green]")
    console.print("[green]================================[/green]")
    if result.elapsed is not None:
        console.print(f"[green]Total build time: {result.elapsed}[/green]")
    console.print()


@app.command(context_settings={"help_option_names": []})
def main(
    ctx: typer.Context,
    device: Annotated[
        str | None,
        typer.Option(
            "--device",
            "-d",
            help="Device to build: device name or path to a JSON config file",
        ),
    ] = None,
    variant: Annotated[
        BuildVariant | None,
        typer.Option(
            "--variant",
            help="Build variant (overrides the device config; default: userdebug)",
            case_sensitive=True,
        ),
    ] = None,
    skip_sync: Annotated[
        bool,
        typer.Option("--skip-sync", help="Skip source sync (useful for rebuilds)"),
    ] = False,
    skip_clone: Annotated[
        bool,
        typer.Option("--skip-clone", help="Skip cloning device repositories"),
    ] = False,
    clean: Annotated[
        bool,
        typer.Option("--clean", help="Run installclean before building"),
    ] = False,
    clean_repos: Annotated[
        bool,
        typer.Option("--clean-repos", help="Clean and re-clone device repositories"),
    ] = False,
    build_dir: Annotated[
        Path | None,
        typer.Option("--build-dir", help="Build root (default: ~/lineage)"),
    ] = None,
    devices_dir: Annotated[
        Path | None,
        typer.Option("--devices-dir", help="Directory of device config files"),
    ] = None,
    jobs: Annotated[
        int | None,
        typer.Option(
            "--jobs", "-j", min=1, help="Parallel build jobs (default: CPU count)"
        ),
    ] = None,
    sync_jobs: Annotated[
        int | None,
        typer.Option("--sync-jobs", min=1, max=128, help="Parallel repo sync jobs"),
    ] = None,
    log_dir: Annotated[
        Path | None,
        typer.Option("--log-dir", help="Capture tool output to log files here"),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option("--show-config", help="Show effective settings as JSON and exit"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    help_: Annotated[
        bool,
        typer.Option("--help", "-h", help="Show this help message and exit"),
    ] = False,
) -> None:
    """Build a LineageOS ROM for a device described by a JSON config."""
    settings = apply_overrides(
        get_settings(), build_dir, devices_dir, log_dir, jobs, sync_jobs
    )
    if help_:
        print_help(ctx, settings.devices_dir)
        raise typer.Exit()
    if show_config:
        print_plain(print_settings_json(settings))
        raise typer.Exit()

    configure_logging(settings.log_level)

    if device is None:
        print_error("No device specified. Use --device <name> to specify a device.")
        console.print()
        print_available_devices(settings.devices_dir)
        console.print()
        console.print("Use --help for more information.")
        raise typer.Exit(code=1)

    try:
        loaded = load_device(device, settings.devices_dir, variant_override=variant)
    except DeviceConfigNotFoundError as e:
        print_error(str(e))
        console.print("Available devices:")
        if not e.available:
            console.print("  No devices configured")
        for name in e.available:
            print_plain(f"  {name}")
        raise typer.Exit(code=1) from None
    except DeviceConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    descriptor = loaded.descriptor
    console.print("[blue]================================[/blue]")
    console.print(f"[blue]  {settings.rom_name} Custom ROM Builder  [/blue]")
    display_name = descriptor.full_name or descriptor.codename
    console.print(f"[blue]  Device: {display_name}[/blue]", highlight=False)
    console.print("[blue]================================[/blue]")
    console.print()

    config = RunConfig(
        device=loaded,
        build_root=settings.build_dir.expanduser(),
        manifest_url=settings.manifest_url,
        manifest_branch=settings.manifest_branch,
        sync_jobs=settings.sync_jobs,
        build_jobs=settings.build_jobs or os.cpu_count() or 1,
        skip_sync=skip_sync,
        skip_clone=skip_clone,
        clean_repos=clean_repos,
        clean_first=clean,
        rom_name=settings.rom_name,
        artifact_pattern=settings.artifact_pattern,
        required_tools=tuple(settings.required_tools),
        min_free_space_gb=settings.min_free_space_gb,
    )
    adapter = SubprocessToolAdapter(
        build_root=config.build_root,
        lunch_prefix=settings.lunch_prefix,
        build_target=settings.build_target,
        log_dir=settings.log_dir,
    )
    pipeline = BuildPipeline(
        config, adapter, confirm=confirm, show_summary=show_summary
    )

    try:
        result = pipeline.run()
    except (KeyboardInterrupt, typer.Abort):
        console.print()
        console.print("[red]Build interrupted by user[/red]")
        raise typer.Exit(code=EXIT_INTERRUPTED) from None

    if result.cancelled:
        print_status("Build cancelled by user")
        raise typer.Exit()

    print_result(result)
    if not result.success:
        raise typer.Exit(code=1)


__all__ = ["app"]
