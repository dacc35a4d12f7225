"""Device descriptor resolution and loading.

This module turns a ``--device`` reference into exactly one descriptor
file, parses it, and applies the command-line variant override.

Resolution order for a reference ``ref``:

1. ``ref`` as a literal path, if that file exists
2. ``<devices_dir>/<ref>.json``
3. ``<devices_dir>/<ref>`` verbatim
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from lineage_builder.devices.schema import DeviceDescriptor
from lineage_builder.types import BuildVariant

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = ".json"
YAML_SUFFIXES = (".yaml", ".yml")


class DeviceConfigNotFoundError(Exception):
    """Raised when a device reference resolves to no descriptor file."""

    def __init__(
        self,
        reference: str,
        available: list[str],
        code: str = "device_not_found",
    ) -> None:
        super().__init__(f"Device configuration not found: {reference}")
        self.reference = reference
        self.available = available
        self.code = code


class DeviceConfigError(Exception):
    """Raised when a descriptor file is unreadable or invalid."""

    def __init__(self, message: str, path: Path, code: str = "invalid_config") -> None:
        super().__init__(message)
        self.path = path
        self.code = code


@dataclass(frozen=True)
class LoadedDevice:
    """A parsed descriptor together with its source and effective variant.

    Attributes:
        descriptor: Validated device descriptor.
        config_path: File the descriptor was loaded from.
        variant: Effective build variant (CLI override or descriptor value).
    """

    descriptor: DeviceDescriptor
    config_path: Path
    variant: BuildVariant


def list_available_devices(devices_dir: Path) -> list[str]:
    """List device names available in a descriptor directory.

    Args:
        devices_dir: Directory containing ``<codename>.json`` files.

    Returns:
        Sorted device names with the extension stripped; empty if the
        directory does not exist.
    """
    if not devices_dir.is_dir():
        return []
    return sorted(
        p.stem for p in devices_dir.glob(f"*{DESCRIPTOR_SUFFIX}") if p.is_file()
    )


def resolve_device_config(reference: str, devices_dir: Path) -> Path:
    """Resolve a device reference to a descriptor file.

    Args:
        reference: Bare device name or path to a descriptor file.
        devices_dir: Directory searched for bare names.

    Returns:
        Path to the descriptor file.

    Raises:
        DeviceConfigNotFoundError: If no candidate exists.
    """
    candidates = [
        Path(reference).expanduser(),
        devices_dir / f"{reference}{DESCRIPTOR_SUFFIX}",
        devices_dir / reference,
    ]
    for candidate in candidates:
        if candidate.is_file():
            logger.debug("Resolved device %r to %s", reference, candidate)
            return candidate

    raise DeviceConfigNotFoundError(reference, list_available_devices(devices_dir))


def load_data(path: Path) -> dict[str, Any]:
    """Load a descriptor file into a dict.

    ``.yaml``/``.yml`` files are parsed as YAML, anything else as JSON.

    Raises:
        DeviceConfigError: If the file is missing, unparsable, or not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except FileNotFoundError as e:
        raise DeviceConfigError(
            f"Device configuration file not found: {path}", path, code="file_not_found"
        ) from e
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise DeviceConfigError(f"Failed to parse {path}: {e}", path) from e
    except OSError as e:
        raise DeviceConfigError(f"Failed to read {path}: {e}", path) from e

    if not isinstance(data, dict):
        raise DeviceConfigError(
            f"Expected an object in {path}, got {type(data).__name__}", path
        )
    return data


def load_descriptor(path: Path) -> DeviceDescriptor:
    """Load and validate a device descriptor.

    Args:
        path: Path to the descriptor file.

    Returns:
        Validated DeviceDescriptor.

    Raises:
        DeviceConfigError: If the file cannot be read or fails validation.
    """
    data = load_data(path)
    try:
        return DeviceDescriptor.model_validate(data)
    except ValidationError as e:
        raise DeviceConfigError(
            f"Invalid device configuration {path}:\n{e}", path
        ) from e


def resolve_variant(
    descriptor: DeviceDescriptor,
    override: BuildVariant | None = None,
) -> BuildVariant:
    """Return the effective build variant.

    An explicit override always wins; otherwise the descriptor's value,
    which itself defaults to userdebug.
    """
    if override is not None:
        return override
    return descriptor.build.variant


def load_device(
    reference: str,
    devices_dir: Path,
    variant_override: BuildVariant | None = None,
) -> LoadedDevice:
    """Resolve, parse and finalize a device configuration.

    Args:
        reference: Bare device name or descriptor path.
        devices_dir: Directory searched for bare names.
        variant_override: Variant given on the command line, if any.

    Returns:
        LoadedDevice with the effective variant applied.

    Raises:
        DeviceConfigNotFoundError: If the reference cannot be resolved.
        DeviceConfigError: If the descriptor is unreadable or invalid.
    """
    path = resolve_device_config(reference, devices_dir)
    logger.info("Loading device configuration from %s", path)
    descriptor = load_descriptor(path)
    variant = resolve_variant(descriptor, variant_override)
    logger.info(
        "Device configuration loaded: %s (%s)",
        descriptor.codename,
        descriptor.full_name,
    )
    return LoadedDevice(descriptor=descriptor, config_path=path, variant=variant)


__all__ = [
    "DeviceConfigError",
    "DeviceConfigNotFoundError",
    "LoadedDevice",
    "list_available_devices",
    "load_data",
    "load_descriptor",
    "load_device",
    "resolve_device_config",
    "resolve_variant",
]
