"""Pydantic models for kernel configuration files.

Two files are read:
- The per-project artifact config (``.out-of-tree.toml``) listing the
  kernel masks a project supports.
- The kernel inventory (``kernels.toml``) listing kernels already
  available for test runs.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kernel_imagegen.types import DistroTarget, DistroType

# Releases name a directory under the root and part of an image tag
RELEASE_PATTERN = re.compile(r"^[A-Za-z0-9._-]*$")


def _parse_distro(v: object) -> DistroType:
    if isinstance(v, (str, DistroType)):
        return DistroType.parse(v)
    raise ValueError(f"distro_type must be a string, got {type(v).__name__}")


class KernelMask(BaseModel):
    """Kernel versions a project wants for one distribution release.

    Attributes:
        distro_type: Distribution family (case-insensitive, e.g. 'Ubuntu').
        distro_release: Distribution release (e.g. '18.04'). Loaded as-is;
            an empty value is rejected when provisioning starts.
        release_mask: Regular expression fragment matched against kernel
            package names after the package prefix.
        generic_only: Only keep generic kernel flavours.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    distro_type: DistroType = Field(description="Distribution family")
    distro_release: str = Field(default="", description="Distribution release")
    release_mask: str = Field(default=".*", description="Kernel release regex")
    generic_only: bool = Field(default=True, description="Only generic kernels")

    @field_validator("distro_type", mode="before")
    @classmethod
    def validate_distro_type(cls, v: object) -> DistroType:
        return _parse_distro(v)

    @field_validator("distro_release")
    @classmethod
    def validate_release(cls, v: str) -> str:
        v = v.strip()
        if not RELEASE_PATTERN.match(v) or v in (".", ".."):
            raise ValueError(
                f"distro_release '{v}' may only contain letters, digits, "
                "'.', '_' and '-'"
            )
        return v

    @property
    def target(self) -> DistroTarget:
        return DistroTarget(distro_type=self.distro_type, release=self.distro_release)


class ArtifactConfig(BaseModel):
    """Per-project artifact configuration."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", description="Artifact name")
    type: str = Field(default="module", description="Artifact type")
    supported_kernels: list[KernelMask] = Field(
        default_factory=list, description="Kernel masks to provision"
    )


class KernelInfo(BaseModel):
    """A kernel available for test runs."""

    model_config = ConfigDict(extra="ignore")

    distro_type: DistroType
    distro_release: str
    kernel_release: str
    container_name: str | None = None
    kernel_path: str | None = None
    initrd_path: str | None = None
    root_fs: str | None = None

    @field_validator("distro_type", mode="before")
    @classmethod
    def validate_distro_type(cls, v: object) -> DistroType:
        return _parse_distro(v)


class KernelConfig(BaseModel):
    """Inventory of available kernels."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    kernels: list[KernelInfo] = Field(default_factory=list, alias="Kernels")


__all__ = ["ArtifactConfig", "KernelConfig", "KernelInfo", "KernelMask"]
