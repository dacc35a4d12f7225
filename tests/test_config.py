"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

from lineage_builder.config import Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        settings = Settings()

        assert settings.build_dir == Path.home() / "lineage"
        assert settings.devices_dir == Path.cwd() / "devices"
        assert settings.rom_name == "LineageOS"
        assert settings.manifest_branch == "lineage-23.0"
        assert settings.sync_jobs == 24
        assert settings.build_jobs is None
        assert settings.min_free_space_gb == 500
        assert settings.required_tools == ["repo", "git", "python3", "make", "gcc"]
        assert settings.artifact_pattern == "lineage-*.zip"
        assert settings.log_dir is None
        assert settings.log_level == "INFO"

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "LINEAGE_BUILD_SYNC_JOBS": "8",
                "LINEAGE_BUILD_LOG_LEVEL": "DEBUG",
                "LINEAGE_BUILD_MANIFEST_BRANCH": "lineage-22.2",
            },
        ):
            settings = Settings()
            assert settings.sync_jobs == 8
            assert settings.log_level == "DEBUG"
            assert settings.manifest_branch == "lineage-22.2"

    def test_build_dir_from_env(self) -> None:
        """Build dir should be configurable via env."""
        with patch.dict(os.environ, {"LINEAGE_BUILD_BUILD_DIR": "/tmp/test-lineage"}):
            settings = Settings()
            assert settings.build_dir == Path("/tmp/test-lineage")

    def test_required_tools_from_env(self) -> None:
        """List settings should accept JSON from env."""
        with patch.dict(
            os.environ, {"LINEAGE_BUILD_REQUIRED_TOOLS": '["repo", "git"]'}
        ):
            settings = Settings()
            assert settings.required_tools == ["repo", "git"]


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings()
        parsed = json.loads(print_settings_json(settings))

        assert "build_dir" in parsed
        assert "devices_dir" in parsed
        assert "manifest_url" in parsed
        assert "sync_jobs" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        parsed = json.loads(print_settings_json())
        assert "build_dir" in parsed
