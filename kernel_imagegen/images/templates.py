"""Per-distribution image templates.

A template knows how to write the base image instructions for a target,
how to install kernel packages into it and how to list the kernel packages
its package index offers. Distributions without a registered template are
rejected with UnsupportedDistroError.
"""

from __future__ import annotations

from typing import Protocol

from kernel_imagegen.errors import UnsupportedDistroError
from kernel_imagegen.types import DistroTarget, DistroType

BASE_BEGIN_MARKER = "# BASE"
BASE_END_MARKER = "# END BASE"


class DistroTemplate(Protocol):
    """Capability set a distribution must provide."""

    distro_type: DistroType
    package_prefix: str
    generic_suffix: str

    def base_instructions(self, target: DistroTarget) -> list[str]: ...

    def install_instruction(self, packages: list[str]) -> str: ...

    def discovery_command(self) -> list[str]: ...


class UbuntuTemplate:
    """Template for Ubuntu releases using apt."""

    distro_type = DistroType.UBUNTU
    package_prefix = "linux-image-"
    generic_suffix = "generic"

    def base_instructions(self, target: DistroTarget) -> list[str]:
        return [
            BASE_BEGIN_MARKER,
            f"FROM {target.base_image}",
            "ENV DEBIAN_FRONTEND=noninteractive",
            "RUN apt-get update",
            "RUN apt-get install -y build-essential libelf-dev",
            "RUN apt-get install -y wget git",
            BASE_END_MARKER,
            "",
        ]

    def install_instruction(self, packages: list[str]) -> str:
        return "RUN apt-get install -y " + " ".join(packages)

    def discovery_command(self) -> list[str]:
        return ["bash", "-c", "apt-cache search linux-image | cut -d ' ' -f 1"]


_TEMPLATES: dict[DistroType, DistroTemplate] = {
    DistroType.UBUNTU: UbuntuTemplate(),
}


def get_template(distro_type: DistroType) -> DistroTemplate:
    """Return the template for a distribution.

    Raises:
        UnsupportedDistroError: If no template is registered.
    """
    template = _TEMPLATES.get(distro_type)
    if template is None:
        raise UnsupportedDistroError(distro_type.value)
    return template


def supported_distros() -> list[DistroType]:
    return list(_TEMPLATES)


def headers_package(package: str) -> str:
    """Derive the headers package matching a kernel image package."""
    return package.replace("image", "headers")


__all__ = [
    "BASE_BEGIN_MARKER",
    "BASE_END_MARKER",
    "DistroTemplate",
    "UbuntuTemplate",
    "get_template",
    "headers_package",
    "supported_distros",
]
