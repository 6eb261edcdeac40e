"""Kernel package discovery.

Kernel image packages are discovered by running the distribution's package
index query inside a throwaway container of the target's base image. The
query output format is an assumption about the guest package manager, so
parsing goes through a PackageListParser that can be swapped if the format
changes.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Protocol

from kernel_imagegen.config import get_settings
from kernel_imagegen.engine.runner import get_engine
from kernel_imagegen.errors import PatternError
from kernel_imagegen.images.templates import get_template

if TYPE_CHECKING:
    from kernel_imagegen.config import Settings
    from kernel_imagegen.engine.runner import ContainerEngine
    from kernel_imagegen.types import DistroTarget

logger = logging.getLogger(__name__)


class PackageListParser(Protocol):
    """Turns raw package index output into package names."""

    format_version: int

    def parse(self, output: str) -> list[str]: ...


class LinePackageListParser:
    """Parser for one-package-per-line output.

    Each non-blank line contributes its first whitespace-separated token.
    Output with no such line means no packages, not an error.
    """

    format_version = 1

    def parse(self, output: str) -> list[str]:
        names: list[str] = []
        for line in output.splitlines():
            fields = line.split()
            if fields:
                names.append(fields[0])
        return names


def compile_mask(prefix: str, version_mask: str) -> re.Pattern[str]:
    """Compile the package name pattern for a release mask.

    Raises:
        PatternError: If the mask is not a valid regex fragment.
    """
    try:
        return re.compile(prefix + version_mask)
    except re.error as e:
        raise PatternError(version_mask, str(e)) from e


def filter_packages(
    names: list[str],
    pattern: re.Pattern[str],
    generic_only: bool,
    generic_suffix: str = "generic",
) -> list[str]:
    """Filter package names by pattern and flavour, keeping input order."""
    matched: list[str] = []
    for name in names:
        if pattern.match(name) is None:
            continue
        if generic_only and not name.endswith(generic_suffix):
            continue
        matched.append(name)
    return matched


def resolve_kernel_packages(
    target: DistroTarget,
    version_mask: str,
    generic_only: bool,
    settings: Settings | None = None,
    engine: ContainerEngine | None = None,
    parser: PackageListParser | None = None,
) -> list[str]:
    """List kernel image packages available for a target.

    Args:
        target: Distribution/release target (base image must exist).
        version_mask: Regex fragment appended to the package prefix.
        generic_only: Only keep generic kernel flavours.
        settings: Application settings.
        engine: Container engine (created from settings if not provided).
        parser: Package list parser (line parser by default).

    Returns:
        Matching package names in discovery order. May contain duplicates if
        the package index reports them.

    Raises:
        PatternError: If the mask is not a valid regex fragment.
        UnsupportedDistroError: If the distribution has no template.
        ProcessError: If discovery fails or exceeds the discovery timeout.
    """
    if settings is None:
        settings = get_settings()
    if parser is None:
        parser = LinePackageListParser()

    template = get_template(target.distro_type)
    pattern = compile_mask(template.package_prefix, version_mask)

    if engine is None:
        engine = get_engine(settings.engine, settings.build_timeout)

    output = engine.run(
        target.image_tag,
        *template.discovery_command(),
        remove=True,
        timeout=settings.discovery_timeout,
    )

    names = parser.parse(output)
    packages = filter_packages(names, pattern, generic_only, template.generic_suffix)
    logger.info(
        "Found %d of %d kernel packages matching '%s' for %s",
        len(packages),
        len(names),
        version_mask,
        target,
    )
    return packages


__all__ = [
    "LinePackageListParser",
    "PackageListParser",
    "compile_mask",
    "filter_packages",
    "resolve_kernel_packages",
]
