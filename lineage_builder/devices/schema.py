"""Pydantic models for device descriptor validation.

A device descriptor is a JSON (or YAML) document describing one device:
its identity, the build variant to use, and the device-specific
repositories to clone on top of the synced source tree.

Example::

    {
      "device": {"codename": "alioth", "full_name": "POCO F3",
                 "manufacturer": "Xiaomi"},
      "build": {"variant": "userdebug"},
      "repositories": {
        "device_tree": {"url": "https://...", "branch": "lineage-23.0",
                        "path": "device/xiaomi/alioth"}
      }
    }
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from lineage_builder.types import BuildVariant

DEFAULT_VARIANT = BuildVariant.USERDEBUG

# Repository key checked when cloning is skipped
DEVICE_TREE_KEY = "device_tree"


class DeviceInfo(BaseModel):
    """Schema for the ``device`` section.

    Attributes:
        codename: Device codename, used for lunch targets and output paths.
        full_name: Marketing name (display only).
        manufacturer: Vendor name (display only).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    codename: str = Field(min_length=1, description="Device codename")
    full_name: str = Field(default="", description="Human-readable device name")
    manufacturer: str = Field(default="", description="Device manufacturer")

    @field_validator("full_name", "manufacturer", mode="before")
    @classmethod
    def default_null_display(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("codename")
    @classmethod
    def validate_codename(cls, v: str) -> str:
        """Reject codenames containing whitespace or path separators."""
        if any(c.isspace() for c in v) or "/" in v:
            raise ValueError(f"codename must be a single path-safe token, got '{v}'")
        return v


class BuildSection(BaseModel):
    """Schema for the ``build`` section."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    variant: BuildVariant = Field(default=DEFAULT_VARIANT)

    @field_validator("variant", mode="before")
    @classmethod
    def default_null_variant(cls, v: object) -> object:
        """Treat an explicit null the same as an absent variant."""
        return DEFAULT_VARIANT if v is None else v


class RepositoryEntry(BaseModel):
    """Schema for one entry of the ``repositories`` mapping.

    Attributes:
        url: Clone URL; may be null for optional repositories.
        branch: Branch to check out.
        path: Destination relative to the build root; checked only when
            the entry is reached during cloning.
        optional: Whether a missing URL or failed clone is tolerated.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str | None = Field(default=None, description="Repository clone URL")
    branch: str | None = Field(default=None, description="Branch to clone")
    path: str | None = Field(
        default=None, description="Destination relative to build root"
    )
    optional: bool = Field(default=False)

    @property
    def has_url(self) -> bool:
        """True when a usable clone URL is present."""
        return bool(self.url and self.url.strip() and self.url != "null")

    @property
    def has_path(self) -> bool:
        """True when a non-blank destination path is present."""
        return bool(self.path and self.path.strip())


class DeviceDescriptor(BaseModel):
    """Complete device descriptor.

    Loaded once per run and never mutated afterwards.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    device: DeviceInfo
    build: BuildSection = Field(default_factory=BuildSection)
    repositories: dict[str, RepositoryEntry] = Field(default_factory=dict)

    @field_validator("build", "repositories", mode="before")
    @classmethod
    def default_null_sections(cls, v: object, info: ValidationInfo) -> object:
        """Treat null sections as absent."""
        if v is None:
            return BuildSection() if info.field_name == "build" else {}
        return v

    @property
    def codename(self) -> str:
        return self.device.codename

    @property
    def full_name(self) -> str:
        return self.device.full_name

    @property
    def manufacturer(self) -> str:
        return self.device.manufacturer

    @property
    def device_tree(self) -> RepositoryEntry | None:
        """Return the device tree repository entry, if declared."""
        return self.repositories.get(DEVICE_TREE_KEY)


__all__ = [
    "DEFAULT_VARIANT",
    "DEVICE_TREE_KEY",
    "BuildSection",
    "DeviceDescriptor",
    "DeviceInfo",
    "RepositoryEntry",
]
