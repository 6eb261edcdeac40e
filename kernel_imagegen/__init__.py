"""Kernel Image Generator - versioned kernel environments in container images.

This package builds per-distribution base images, installs kernel packages
matching a release mask into them and extracts the resulting boot files to a
host-side store.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
