"""Shared type definitions for kernel_imagegen.

This module contains enums and dataclasses shared across subpackages to
avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class DistroType(str, Enum):
    """Distribution family of a kernel target."""

    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    CENTOS = "centos"

    @classmethod
    def parse(cls, value: "str | DistroType") -> "DistroType":
        """Parse a distribution name case-insensitively.

        Args:
            value: Distribution name (e.g., 'Ubuntu', 'ubuntu').

        Returns:
            Matching DistroType.

        Raises:
            ValueError: If the name is not a known distribution.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(d.value for d in cls)
            raise ValueError(
                f"Unknown distro type '{value}' (valid: {valid})"
            ) from None


class ProvisionStage(str, Enum):
    """Pipeline stage an outcome belongs to."""

    BASE = "base"
    RESOLVE = "resolve"
    ADD_KERNEL = "add_kernel"
    EXTRACT = "extract"


@dataclass(frozen=True)
class DistroTarget:
    """Distribution and release pair identifying a cached image.

    Attributes:
        distro_type: Distribution family.
        release: Distribution release (e.g., '18.04').
    """

    distro_type: DistroType
    release: str

    @property
    def image_tag(self) -> str:
        """Container image tag for this target (e.g., 'ubuntu-18.04')."""
        return f"{self.distro_type.value}-{self.release}"

    @property
    def base_image(self) -> str:
        """Upstream image reference (e.g., 'ubuntu:18.04')."""
        return f"{self.distro_type.value}:{self.release}"

    def __str__(self) -> str:
        return f"{self.distro_type.value}:{self.release}"


@dataclass
class BootArtifact:
    """Information about a boot file in the artifact store."""

    filename: str
    kind: str
    size_bytes: int
    sha256: str
    kernel_release: str | None = None


@dataclass
class ProvisionOutcome:
    """Result of one pipeline step for one item.

    Attributes:
        stage: Pipeline stage.
        subject: What the step acted on (tag, package name).
        target: Target identity (e.g., 'ubuntu:18.04').
        success: Whether the step succeeded.
        installed: For add_kernel, whether a new kernel was appended.
        message: Human-readable message.
        code: Stable error code when the step failed.
    """

    stage: ProvisionStage
    subject: str
    target: str
    success: bool
    installed: bool = False
    message: str = ""
    code: str | None = None


@dataclass
class ProvisionReport:
    """Aggregated outcomes of a provisioning run."""

    outcomes: list[ProvisionOutcome] = field(default_factory=list)
    touched_tags: list[str] = field(default_factory=list)

    @property
    def failures(self) -> list[ProvisionOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def installed(self) -> list[ProvisionOutcome]:
        return [o for o in self.outcomes if o.installed]

    @property
    def success(self) -> bool:
        return not self.failures

    def by_stage(self, stage: ProvisionStage) -> list[ProvisionOutcome]:
        return [o for o in self.outcomes if o.stage == stage]


__all__ = [
    "BootArtifact",
    "DistroTarget",
    "DistroType",
    "ProvisionOutcome",
    "ProvisionReport",
    "ProvisionStage",
]
