"""Image definition management.

This module handles:
- On-disk image definitions (Dockerfiles) per distribution/release
- Per-distribution base templates
- Base image generation with caching
- Appending kernel packages with rollback on failed rebuilds
"""

from kernel_imagegen.images.definition import ImageDefinition

__all__ = ["ImageDefinition"]

# Access operations via kernel_imagegen.images.builder, .mutator, etc.
