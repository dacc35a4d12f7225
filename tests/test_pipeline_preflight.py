"""Tests for pipeline/preflight.py."""

from collections import namedtuple
from unittest.mock import patch

from lineage_builder.pipeline.preflight import (
    GIB,
    find_missing_tools,
    free_space_gb,
    nearest_existing_dir,
)

Usage = namedtuple("Usage", "total used free")


class TestFindMissingTools:
    """Tests for find_missing_tools."""

    def test_reports_missing(self):
        with patch(
            "lineage_builder.pipeline.preflight.shutil.which",
            side_effect=lambda tool: None if tool == "repo" else f"/usr/bin/{tool}",
        ):
            assert find_missing_tools(["repo", "git", "make"]) == ["repo"]

    def test_all_present(self):
        with patch(
            "lineage_builder.pipeline.preflight.shutil.which", return_value="/bin/x"
        ):
            assert find_missing_tools(("git",)) == []


class TestDiskSpace:
    """Tests for disk space helpers."""

    def test_nearest_existing_dir(self, tmp_path):
        assert nearest_existing_dir(tmp_path / "a" / "b") == tmp_path

    def test_free_space_gb(self, tmp_path):
        with patch(
            "lineage_builder.pipeline.preflight.shutil.disk_usage",
            return_value=Usage(1000 * GIB, 500 * GIB, 499 * GIB + 10),
        ) as mock_usage:
            assert free_space_gb(tmp_path / "lineage") == 499
        mock_usage.assert_called_once_with(tmp_path)
