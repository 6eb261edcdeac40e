"""Kernel discovery and extraction.

This module handles:
- Kernel mask and inventory config files
- Discovering kernel packages inside base images
- Extracting boot files from built images
"""

from kernel_imagegen.kernels.schema import (
    ArtifactConfig,
    KernelConfig,
    KernelInfo,
    KernelMask,
)

__all__ = ["ArtifactConfig", "KernelConfig", "KernelInfo", "KernelMask"]
