"""Configuration settings for lineage_builder.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_build_dir() -> Path:
    """Return the default build root."""
    return Path.home() / "lineage"


def _default_devices_dir() -> Path:
    """Return the default device descriptor directory."""
    return Path.cwd() / "devices"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the LINEAGE_BUILD_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="LINEAGE_BUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rom_name: str = Field(default="LineageOS", description="ROM display name")

    # Paths
    build_dir: Path = Field(
        default_factory=_default_build_dir,
        description="Build root holding the synced tree and build output",
    )
    devices_dir: Path = Field(
        default_factory=_default_devices_dir,
        description="Directory containing device descriptor files",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory for per-step tool logs (terminal output if unset)",
    )

    # Source sync
    manifest_url: str = Field(
        default="https://github.com/SM8250-Common/android.git",
        description="Manifest repository URL for repo init",
    )
    manifest_branch: str = Field(
        default="lineage-23.0",
        description="Manifest branch for repo init",
    )
    sync_jobs: int = Field(
        default=24,
        ge=1,
        le=128,
        description="Parallel jobs for repo sync",
    )

    # Build
    build_jobs: int | None = Field(
        default=None,
        ge=1,
        description="Parallel jobs for compilation (uses CPU count if not set)",
    )
    lunch_prefix: str = Field(
        default="lineage",
        description="Product prefix for lunch targets (<prefix>_<codename>-<variant>)",
    )
    build_target: str = Field(default="bacon", description="Make target to build")
    artifact_pattern: str = Field(
        default="lineage-*.zip",
        description="Glob for the flashable output in out/target/product/<codename>",
    )

    # Preflight
    required_tools: list[str] = Field(
        default_factory=lambda: ["repo", "git", "python3", "make", "gcc"],
        description="Executables that must be on PATH",
    )
    min_free_space_gb: int = Field(
        default=500,
        ge=0,
        description="Recommended free disk space in GB",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
