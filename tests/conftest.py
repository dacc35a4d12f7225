"""Shared fixtures for the test suite."""

import json
from pathlib import Path

import pytest

from lineage_builder.devices.io import LoadedDevice, load_device
from lineage_builder.pipeline.models import RunConfig
from lineage_builder.types import BuildVariant, ToolResult


class FakeAdapter:
    """Tool adapter double recording every call.

    ``failures`` maps an operation name (or ``clone:<destination name>``)
    to the exit code it should report.
    """

    def __init__(self, failures: dict[str, int] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[tuple] = []

    def _result(self, key: str, command: str) -> ToolResult:
        exit_code = self.failures.get(key, 0)
        return ToolResult(
            success=exit_code == 0,
            exit_code=exit_code,
            command=command,
            error_message=None if exit_code == 0 else f"{key} failed",
        )

    def init(self, manifest_url: str, branch: str) -> ToolResult:
        self.calls.append(("init", manifest_url, branch))
        return self._result("init", "repo init")

    def sync(self, jobs: int) -> ToolResult:
        self.calls.append(("sync", jobs))
        return self._result("sync", "repo sync")

    def clone(self, url: str, branch: str | None, destination: Path) -> ToolResult:
        self.calls.append(("clone", url, branch, destination))
        result = self._result(f"clone:{destination.name}", "git clone")
        if result.success:
            destination.mkdir(parents=True, exist_ok=True)
        return result

    def select_target(self, codename: str, variant: BuildVariant) -> ToolResult:
        self.calls.append(("select_target", codename, variant))
        return self._result("select_target", "lunch")

    def clean(self) -> ToolResult:
        self.calls.append(("clean",))
        return self._result("clean", "make installclean")

    def compile(self, jobs: int) -> ToolResult:
        self.calls.append(("compile", jobs))
        return self._result("compile", "mka bacon")

    @property
    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def descriptor_data() -> dict:
    """Return a descriptor with required and optional repositories."""
    return {
        "device": {
            "codename": "alioth",
            "full_name": "POCO F3",
            "manufacturer": "Xiaomi",
        },
        "build": {"variant": "userdebug"},
        "repositories": {
            "device_tree": {
                "url": "https://example.com/device_xiaomi_alioth.git",
                "branch": "lineage-23.0",
                "path": "device/xiaomi/alioth",
            },
            "vendor_tree": {
                "url": "https://example.com/vendor_xiaomi_alioth.git",
                "branch": "lineage-23.0",
                "path": "vendor/xiaomi/alioth",
            },
            "firmware": {
                "url": None,
                "branch": "lineage-23.0",
                "path": "vendor/xiaomi/firmware",
                "optional": True,
            },
        },
    }


@pytest.fixture
def devices_dir(tmp_path: Path, descriptor_data: dict) -> Path:
    """Create a devices directory holding alioth.json."""
    directory = tmp_path / "devices"
    directory.mkdir()
    (directory / "alioth.json").write_text(json.dumps(descriptor_data))
    return directory


@pytest.fixture
def loaded_device(devices_dir: Path) -> LoadedDevice:
    return load_device("alioth", devices_dir)


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    return tmp_path / "lineage"


@pytest.fixture
def make_config(loaded_device: LoadedDevice, build_root: Path):
    """Factory for RunConfig with test-friendly defaults."""

    def _make(**overrides) -> RunConfig:
        values = {
            "device": loaded_device,
            "build_root": build_root,
            "manifest_url": "https://example.com/manifest.git",
            "manifest_branch": "lineage-23.0",
            "sync_jobs": 4,
            "build_jobs": 8,
            "required_tools": (),
            "min_free_space_gb": 0,
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def make_adapter():
    """Factory for FakeAdapter with scripted failures."""
    return FakeAdapter
