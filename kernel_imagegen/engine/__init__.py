"""Container engine command-line wrapper."""

from kernel_imagegen.engine.runner import ContainerEngine, get_engine

__all__ = ["ContainerEngine", "get_engine"]
