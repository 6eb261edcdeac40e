"""Kernel installation into cached images.

add_kernel() appends an install instruction for a kernel image package and
its headers to a target's definition, then rebuilds the image under the
same tag. A failed rebuild restores the previous definition bytes, so the
definition on disk always describes the last image that built.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kernel_imagegen.config import get_settings
from kernel_imagegen.engine.runner import get_engine
from kernel_imagegen.errors import ROLLBACK_FAILED, FilesystemError, ProcessError
from kernel_imagegen.images.definition import ImageDefinition
from kernel_imagegen.images.templates import get_template, headers_package

if TYPE_CHECKING:
    from kernel_imagegen.config import Settings
    from kernel_imagegen.engine.runner import ContainerEngine
    from kernel_imagegen.types import DistroTarget

logger = logging.getLogger(__name__)


def add_kernel(
    target: DistroTarget,
    package: str,
    settings: Settings | None = None,
    engine: ContainerEngine | None = None,
) -> bool:
    """Install a kernel package into a target's image.

    Args:
        target: Distribution/release target (base image must exist).
        package: Kernel image package name (e.g., 'linux-image-4.15.0-20-generic').
        settings: Application settings.
        engine: Container engine (created from settings if not provided).

    Returns:
        True if the kernel was appended and the image rebuilt, False if the
        definition already installs it.

    Raises:
        FilesystemError: If the definition cannot be read or written, or if
            restoring it after a failed rebuild fails (code 'rollback_failed').
        UnsupportedDistroError: If the distribution has no template.
        ProcessError: If the rebuild fails. The definition is restored first,
            as it is for any other error raised by the rebuild.
    """
    if settings is None:
        settings = get_settings()

    definition = ImageDefinition.for_target(target, settings.root_dir)

    if definition.has_install_for(package):
        logger.info("Kernel %s for %s already exists", package, target)
        return False

    template = get_template(target.distro_type)
    instruction = template.install_instruction([package, headers_package(package)])

    if engine is None:
        engine = get_engine(settings.engine, settings.build_timeout)

    logger.info("Start adding kernel %s for %s", package, target)
    previous = definition.append(instruction)

    try:
        engine.build(definition.image_tag, definition.context_dir)
    except ProcessError as e:
        _restore(definition, previous)
        logger.error("Add kernel %s for %s error: %s", package, target, e)
        logger.error("%s", e.output)
        raise
    except BaseException:
        _restore(definition, previous)
        raise

    logger.info("Add kernel %s for %s success", package, target)
    return True


def _restore(definition: ImageDefinition, previous: bytes) -> None:
    """Put back the definition bytes of the last image that built.

    Raises:
        FilesystemError: With code 'rollback_failed' if the write fails.
    """
    try:
        definition.write_bytes(previous)
    except FilesystemError as werr:
        logger.critical(
            "Rollback of %s failed after build error: %s", definition.path, werr
        )
        raise FilesystemError(
            f"Failed to restore {definition.path} after build error: {werr}",
            path=definition.path,
            code=ROLLBACK_FAILED,
        ) from werr


__all__ = ["add_kernel"]
