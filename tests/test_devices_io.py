"""Tests for device descriptor resolution and loading."""

import json

import pytest
import yaml

from lineage_builder.devices.io import (
    DeviceConfigError,
    DeviceConfigNotFoundError,
    list_available_devices,
    load_data,
    load_descriptor,
    load_device,
    resolve_device_config,
    resolve_variant,
)
from lineage_builder.devices.schema import DeviceDescriptor
from lineage_builder.types import BuildVariant


class TestListAvailableDevices:
    """Tests for list_available_devices."""

    def test_lists_json_stems_sorted(self, tmp_path):
        (tmp_path / "zeta.json").write_text("{}")
        (tmp_path / "alioth.json").write_text("{}")
        (tmp_path / "README.md").write_text("docs")

        assert list_available_devices(tmp_path) == ["alioth", "zeta"]

    def test_missing_directory(self, tmp_path):
        """A missing directory has no devices."""
        assert list_available_devices(tmp_path / "nope") == []


class TestResolveDeviceConfig:
    """Tests for resolve_device_config precedence."""

    def test_bare_name_resolves_json(self, devices_dir):
        assert resolve_device_config("alioth", devices_dir) == devices_dir / "alioth.json"

    def test_json_preferred_over_extensionless(self, devices_dir):
        """<name>.json wins over a same-named file without extension."""
        (devices_dir / "alioth").write_text("{}")
        assert resolve_device_config("alioth", devices_dir) == devices_dir / "alioth.json"

    def test_verbatim_name_in_devices_dir(self, devices_dir):
        """Falls back to <devices_dir>/<reference> as given."""
        (devices_dir / "custom.yaml").write_text("device: {codename: custom}\n")
        assert (
            resolve_device_config("custom.yaml", devices_dir)
            == devices_dir / "custom.yaml"
        )

    def test_absolute_path(self, tmp_path, devices_dir):
        """An existing path is used regardless of the devices dir."""
        other = tmp_path / "elsewhere" / "alioth.json"
        other.parent.mkdir()
        other.write_text("{}")
        assert resolve_device_config(str(other), devices_dir) == other

    def test_not_found_lists_available(self, devices_dir):
        with pytest.raises(DeviceConfigNotFoundError) as exc_info:
            resolve_device_config("pixel7", devices_dir)

        assert exc_info.value.reference == "pixel7"
        assert exc_info.value.available == ["alioth"]
        assert exc_info.value.code == "device_not_found"
        assert "pixel7" in str(exc_info.value)


class TestLoadData:
    """Tests for load_data."""

    def test_load_yaml(self, tmp_path, descriptor_data):
        path = tmp_path / "alioth.yaml"
        path.write_text(yaml.safe_dump(descriptor_data))
        assert load_data(path)["device"]["codename"] == "alioth"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DeviceConfigError) as exc_info:
            load_data(tmp_path / "missing.json")
        assert exc_info.value.code == "file_not_found"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(DeviceConfigError) as exc_info:
            load_data(path)
        assert exc_info.value.code == "invalid_config"

    def test_extensionless_parsed_as_json(self, tmp_path, descriptor_data):
        path = tmp_path / "alioth"
        path.write_text(json.dumps(descriptor_data))
        assert load_data(path)["device"]["codename"] == "alioth"

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(DeviceConfigError, match="Expected an object"):
            load_data(path)


class TestLoadDescriptor:
    """Tests for load_descriptor."""

    def test_valid(self, devices_dir):
        descriptor = load_descriptor(devices_dir / "alioth.json")
        assert isinstance(descriptor, DeviceDescriptor)
        assert descriptor.codename == "alioth"

    def test_schema_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"device": {}}))
        with pytest.raises(DeviceConfigError, match="Invalid device configuration"):
            load_descriptor(path)


class TestResolveVariant:
    """Tests for variant precedence."""

    @pytest.mark.parametrize("file_variant", ["user", "userdebug", "eng"])
    @pytest.mark.parametrize("override", list(BuildVariant))
    def test_override_always_wins(self, file_variant, override):
        descriptor = DeviceDescriptor.model_validate(
            {"device": {"codename": "x"}, "build": {"variant": file_variant}}
        )
        assert resolve_variant(descriptor, override) == override

    def test_descriptor_value_without_override(self):
        descriptor = DeviceDescriptor.model_validate(
            {"device": {"codename": "x"}, "build": {"variant": "eng"}}
        )
        assert resolve_variant(descriptor) == BuildVariant.ENG

    def test_default_without_build_section(self):
        descriptor = DeviceDescriptor.model_validate({"device": {"codename": "x"}})
        assert resolve_variant(descriptor) == BuildVariant.USERDEBUG


class TestLoadDevice:
    """Tests for load_device."""

    def test_load_by_name(self, devices_dir):
        loaded = load_device("alioth", devices_dir)
        assert loaded.descriptor.codename == "alioth"
        assert loaded.config_path == devices_dir / "alioth.json"
        assert loaded.variant == BuildVariant.USERDEBUG

    def test_variant_override(self, devices_dir):
        loaded = load_device("alioth", devices_dir, variant_override=BuildVariant.USER)
        assert loaded.variant == BuildVariant.USER
        # descriptor itself is untouched
        assert loaded.descriptor.build.variant == BuildVariant.USERDEBUG

    def test_invalid_file_content(self, devices_dir):
        (devices_dir / "broken.json").write_text("{")
        with pytest.raises(DeviceConfigError):
            load_device("broken", devices_dir)

    def test_sparse_repository_entries_load(self, devices_dir, descriptor_data):
        """Entries missing url, path or branch do not fail the whole load."""
        descriptor_data["repositories"]["extras"] = {"url": None, "optional": True}
        descriptor_data["repositories"]["vendor"] = {"url": None}
        (devices_dir / "sparse.json").write_text(json.dumps(descriptor_data))

        loaded = load_device("sparse", devices_dir)

        assert loaded.descriptor.repositories["extras"].path is None
        assert loaded.descriptor.repositories["vendor"].has_url is False
