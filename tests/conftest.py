"""Shared fixtures for kernel_imagegen tests."""

from pathlib import Path

import pytest

from kernel_imagegen.config import Settings
from kernel_imagegen.errors import ProcessError
from kernel_imagegen.types import DistroTarget, DistroType

APT_CACHE_OUTPUT = """\
linux-image-4.15.0-20-generic
linux-image-4.15.0-20-lowlatency
linux-image-4.15.0-22-generic
linux-image-4.18.0-13-generic
linux-image-extra-virtual
linux-image-4.15.0-1009-aws
"""

BOOT_FILES = {
    "vmlinuz-4.15.0-20-generic": b"kernel-20",
    "initrd.img-4.15.0-20-generic": b"initrd-20",
    "System.map-4.15.0-20-generic": b"map-20",
    "config-4.15.0-20-generic": b"config-20",
}


class FakeEngine:
    """In-memory stand-in for ContainerEngine.

    Records every call. Builds fail while ``fail_build`` returns True for
    the current Dockerfile content.
    """

    def __init__(
        self,
        discovery_output: str = APT_CACHE_OUTPUT,
        boot_files: dict[str, bytes] | None = None,
    ) -> None:
        self.discovery_output = discovery_output
        self.boot_files = BOOT_FILES if boot_files is None else boot_files
        self.calls: list[tuple] = []
        self.containers: list[tuple[str, str]] = []
        self.fail_build = lambda dockerfile: False
        self.fail_run: set[str] = set()

    def build(self, tag: str, context_dir: Path) -> str:
        self.calls.append(("build", tag, context_dir))
        dockerfile = (context_dir / "Dockerfile").read_text()
        if self.fail_build(dockerfile):
            raise ProcessError(
                f"build {tag} failed", exit_code=100, output="E: Unable to locate package"
            )
        return "Successfully built"

    def run(self, image: str, *command: str, remove: bool = False, timeout=None) -> str:
        self.calls.append(("run", image, command, remove, timeout))
        if image in self.fail_run:
            raise ProcessError(f"run {image} failed", exit_code=125, output="no such image")
        if not remove:
            self.containers.insert(0, (f"c{len(self.containers):04d}", image))
        if "apt-cache" in " ".join(command):
            return self.discovery_output
        return "bin\nboot\n"

    def list_containers(self) -> str:
        self.calls.append(("ps",))
        lines = ["CONTAINER ID   IMAGE   COMMAND   CREATED   STATUS   PORTS   NAMES"]
        for cid, image in self.containers:
            lines.append(f'{cid}   {image}   "bash -c ls"   1s ago   Exited (0)   name_{cid}')
        return "\n".join(lines) + "\n"

    def copy(self, source: str, destination: Path) -> str:
        self.calls.append(("cp", source, destination))
        for name, data in self.boot_files.items():
            (destination / name).write_bytes(data)
        return ""

    def count(self, kind: str) -> int:
        return sum(1 for c in self.calls if c[0] == kind)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary directory."""
    return Settings(root_dir=tmp_path / "root")


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def ubuntu() -> DistroTarget:
    return DistroTarget(DistroType.UBUNTU, "18.04")


@pytest.fixture
def make_engine():
    """Factory for FakeEngine with custom discovery output or boot files."""
    return FakeEngine
