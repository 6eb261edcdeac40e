"""Container engine runner.

This module handles:
- Composing container engine commands (build, run, ps, cp)
- Executing them with subprocess, stderr merged into stdout
- Enforcing per-call timeouts
- Turning failures into ProcessError with the captured output
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from kernel_imagegen.errors import (
    EXECUTION_ERROR,
    PROCESS_FAILED,
    PROCESS_TIMEOUT,
    ProcessError,
)

logger = logging.getLogger(__name__)


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class ContainerEngine:
    """Thin wrapper around a docker-compatible command line.

    Every call blocks until the command exits. Output is returned as text
    with stderr interleaved into stdout.

    Attributes:
        binary: Engine executable (e.g., 'docker', 'podman').
        timeout: Default timeout in seconds for calls (None = unbounded).
    """

    def __init__(self, binary: str = "docker", timeout: int | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    def compose(self, *args: str) -> list[str]:
        """Compose a full engine command line."""
        return [self.binary, *args]

    def execute(self, *args: str, timeout: int | None = None) -> str:
        """Run an engine subcommand and return its combined output.

        Args:
            *args: Engine arguments (e.g., 'ps', '-a').
            timeout: Timeout override in seconds.

        Returns:
            Combined stdout/stderr text.

        Raises:
            ProcessError: If the command cannot start, times out or exits
                non-zero.
        """
        cmd = self.compose(*args)
        cmd_str = shlex.join(cmd)
        effective_timeout = timeout if timeout is not None else self.timeout
        logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                timeout=effective_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessError(
                f"{cmd_str} timed out after {effective_timeout}s",
                exit_code=-1,
                output=_decode(e.output),
                code=PROCESS_TIMEOUT,
            ) from e
        except OSError as e:
            raise ProcessError(
                f"Failed to execute {cmd_str}: {e}",
                exit_code=None,
                code=EXECUTION_ERROR,
            ) from e

        output = _decode(result.stdout)
        if result.returncode != 0:
            raise ProcessError(
                f"{cmd_str} failed with exit code {result.returncode}",
                exit_code=result.returncode,
                output=output,
                code=PROCESS_FAILED,
            )
        return output

    def build(self, tag: str, context_dir: Path) -> str:
        """Build an image from a context directory and tag it."""
        return self.execute("build", "-t", tag, str(context_dir))

    def run(
        self,
        image: str,
        *command: str,
        remove: bool = False,
        timeout: int | None = None,
    ) -> str:
        """Run a command in a new container created from an image.

        Args:
            image: Image tag.
            *command: Command and arguments to run inside the container.
            remove: Remove the container when it exits.
            timeout: Timeout override in seconds.

        Returns:
            Combined output of the command.
        """
        args = ["run"]
        if remove:
            args.append("--rm")
        args.append(image)
        args.extend(command)
        return self.execute(*args, timeout=timeout)

    def list_containers(self) -> str:
        """List all containers, running or not, newest first."""
        return self.execute("ps", "-a")

    def copy(self, source: str, destination: Path) -> str:
        """Copy files between a container and the host."""
        return self.execute("cp", source, str(destination))


def get_engine(binary: str = "docker", timeout: int | None = None) -> ContainerEngine:
    """Create a container engine wrapper.

    Args:
        binary: Engine executable.
        timeout: Default timeout in seconds.

    Returns:
        ContainerEngine instance.
    """
    return ContainerEngine(binary=binary, timeout=timeout)


__all__ = ["ContainerEngine", "get_engine"]
