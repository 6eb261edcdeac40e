"""Base image management.

This module provides ensure_base(), which creates the base image definition
for a distribution/release target and builds it once. Later calls find the
definition on disk and return without rebuilding.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from kernel_imagegen.config import get_settings
from kernel_imagegen.engine.runner import get_engine
from kernel_imagegen.errors import ProcessError
from kernel_imagegen.images.definition import ImageDefinition
from kernel_imagegen.images.templates import get_template

if TYPE_CHECKING:
    from kernel_imagegen.config import Settings
    from kernel_imagegen.engine.runner import ContainerEngine
    from kernel_imagegen.types import DistroTarget

logger = logging.getLogger(__name__)


def ensure_base(
    target: DistroTarget,
    settings: Settings | None = None,
    engine: ContainerEngine | None = None,
) -> Path:
    """Ensure the base image for a target has been generated.

    It:
    1. Returns immediately if a definition already exists for the target
    2. Renders the base instructions from the distribution template
    3. Writes the definition and builds the image with the target's tag

    A definition left behind by a failed build is reused on the next call;
    base instructions are fixed per target so replaying them is safe.

    Args:
        target: Distribution/release target.
        settings: Application settings.
        engine: Container engine (created from settings if not provided).

    Returns:
        Build context directory of the definition.

    Raises:
        UnsupportedDistroError: If the distribution has no template.
        FilesystemError: If the definition cannot be written.
        ProcessError: If the image build fails.
    """
    if settings is None:
        settings = get_settings()

    definition = ImageDefinition.for_target(target, settings.root_dir)

    if definition.exists():
        logger.info("Base image for %s found", target)
        return definition.context_dir

    logger.info("Base image for %s not found, start generating", target)

    # Resolve the template before touching the filesystem
    template = get_template(target.distro_type)
    definition.write_instructions(template.base_instructions(target))

    if engine is None:
        engine = get_engine(settings.engine, settings.build_timeout)

    try:
        engine.build(definition.image_tag, definition.context_dir)
    except ProcessError as e:
        logger.error("Base image for %s generating error: %s", target, e)
        logger.error("%s", e.output)
        raise

    logger.info("Base image for %s generating success", target)
    return definition.context_dir


__all__ = ["ensure_base"]
