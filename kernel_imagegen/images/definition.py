"""On-disk image definitions.

An image definition is the Dockerfile for one distribution/release target,
stored under ``<root>/<distro_type>/<release>/Dockerfile``. Its instructions
are only ever appended to; the file is replaced atomically so a reader never
observes a partial write.
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from kernel_imagegen.errors import FilesystemError
from kernel_imagegen.types import DistroTarget

DEFINITION_FILENAME = "Dockerfile"

# Matches RUN lines that install packages with apt-get, yum or dnf
INSTALL_INSTRUCTION = re.compile(
    r"^RUN\s+(?:apt-get|apt|yum|dnf)\s+install\b(?P<args>.*)$"
)


def definition_dir(target: DistroTarget, root: Path) -> Path:
    """Return the build context directory for a target."""
    return root / target.distro_type.value / target.release


@dataclass(frozen=True)
class ImageDefinition:
    """Build definition of a cached image.

    Attributes:
        target: Distribution/release the definition belongs to.
        context_dir: Build context directory holding the Dockerfile.
    """

    target: DistroTarget
    context_dir: Path

    @classmethod
    def for_target(cls, target: DistroTarget, root: Path) -> ImageDefinition:
        return cls(target=target, context_dir=definition_dir(target, root))

    @property
    def path(self) -> Path:
        return self.context_dir / DEFINITION_FILENAME

    @property
    def image_tag(self) -> str:
        return self.target.image_tag

    def exists(self) -> bool:
        return self.path.is_file()

    def read_bytes(self) -> bytes:
        """Read the raw definition.

        Raises:
            FilesystemError: If the file is missing or unreadable.
        """
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise FilesystemError(
                f"Cannot read image definition {self.path}: {e}", path=self.path
            ) from e

    def write_bytes(self, data: bytes) -> None:
        """Replace the definition atomically.

        Raises:
            FilesystemError: If the file cannot be written.
        """
        tmp_path: str | None = None
        try:
            self.context_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self.context_dir,
                prefix=f".{DEFINITION_FILENAME}.",
                delete=False,
            ) as f:
                tmp_path = f.name
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise FilesystemError(
                f"Cannot write image definition {self.path}: {e}", path=self.path
            ) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def instructions(self) -> list[str]:
        """Return the definition as an ordered list of lines.

        Raises:
            FilesystemError: If the file is unreadable or not valid UTF-8.
        """
        data = self.read_bytes()
        try:
            return data.decode("utf-8").splitlines()
        except UnicodeDecodeError as e:
            raise FilesystemError(
                f"Image definition {self.path} is not valid UTF-8: {e}", path=self.path
            ) from e

    def write_instructions(self, instructions: list[str]) -> None:
        self.write_bytes(render_instructions(instructions))

    def append(self, instruction: str) -> bytes:
        """Append one instruction and return the previous content.

        Args:
            instruction: Instruction line without trailing newline.

        Returns:
            The bytes on disk before the append, for rollback.
        """
        previous = self.read_bytes()
        data = previous
        if data and not data.endswith(b"\n"):
            data += b"\n"
        self.write_bytes(data + instruction.encode("utf-8") + b"\n")
        return previous

    def has_install_for(self, package: str) -> bool:
        """Check whether an install instruction already names a package."""
        return package_installed(self.instructions(), package)


def render_instructions(instructions: list[str]) -> bytes:
    return ("\n".join(instructions) + "\n").encode("utf-8")


def installed_packages(instructions: list[str]) -> list[str]:
    """Collect package names from install instructions, in order."""
    packages: list[str] = []
    for line in instructions:
        match = INSTALL_INSTRUCTION.match(line.strip())
        if match is None:
            continue
        packages.extend(
            arg for arg in match.group("args").split() if not arg.startswith("-")
        )
    return packages


def package_installed(instructions: list[str], package: str) -> bool:
    return package in installed_packages(instructions)


__all__ = [
    "DEFINITION_FILENAME",
    "ImageDefinition",
    "definition_dir",
    "installed_packages",
    "package_installed",
    "render_instructions",
]
