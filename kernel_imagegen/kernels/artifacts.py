"""Boot artifact extraction and discovery.

This module handles:
- Checking that a kernel image starts
- Locating the newest container created from an image tag
- Copying the container's /boot tree into the host artifact store
- Classifying and hashing the boot files found in the store

Copies only add or overwrite files; nothing in the store is deleted.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from kernel_imagegen.config import get_settings
from kernel_imagegen.engine.runner import get_engine
from kernel_imagegen.errors import FilesystemError, NotFoundError
from kernel_imagegen.types import BootArtifact

if TYPE_CHECKING:
    from kernel_imagegen.config import Settings
    from kernel_imagegen.engine.runner import ContainerEngine

logger = logging.getLogger(__name__)

BOOT_DIR = "/boot"

# Filename prefixes of boot files, in classification order
BOOT_FILE_PREFIXES = [
    ("vmlinuz-", "kernel"),
    ("initrd.img-", "initrd"),
    ("System.map-", "system_map"),
    ("config-", "config"),
]

# Default chunk size for hashing
HASH_CHUNK_SIZE = 64 * 1024  # 64KB


@dataclass
class ExtractionResult:
    """Result of extracting boot files for one image tag.

    Attributes:
        image_tag: Image the files were copied from.
        container_id: Container the files were copied from.
        destination: Artifact store the files were copied into.
        store_artifacts: Snapshot of every boot file in the store after the
            copy, including files supplied by earlier extractions.
    """

    image_tag: str
    container_id: str
    destination: Path
    store_artifacts: list[BootArtifact] = field(default_factory=list)


def classify_boot_file(filename: str) -> tuple[str, str | None]:
    """Classify a boot file by its name.

    Args:
        filename: File name inside /boot (e.g., 'vmlinuz-4.15.0-20-generic').

    Returns:
        Tuple of (kind, kernel release). Unknown files are ('other', None).
    """
    for prefix, kind in BOOT_FILE_PREFIXES:
        if filename.startswith(prefix) and len(filename) > len(prefix):
            return kind, filename[len(prefix) :]
    return "other", None


def compute_file_hash(
    file_path: Path,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute SHA-256 hash of a file."""
    sha256 = hashlib.sha256()
    with file_path.open("rb") as f:
        while chunk := f.read(chunk_size):
            sha256.update(chunk)
    return sha256.hexdigest()


def discover_boot_artifacts(store_dir: Path) -> list[BootArtifact]:
    """Discover boot files in the artifact store.

    Only top-level regular files are considered; subdirectories such as
    grub/ are skipped.

    Args:
        store_dir: Artifact store directory.

    Returns:
        BootArtifact list sorted by filename.
    """
    if not store_dir.exists():
        logger.warning("Artifact store does not exist: %s", store_dir)
        return []

    artifacts: list[BootArtifact] = []
    for path in sorted(store_dir.iterdir()):
        if not path.is_file():
            continue
        kind, kernel_release = classify_boot_file(path.name)
        artifacts.append(
            BootArtifact(
                filename=path.name,
                kind=kind,
                size_bytes=path.stat().st_size,
                sha256=compute_file_hash(path),
                kernel_release=kernel_release,
            )
        )
        logger.debug("Discovered boot file: %s (kind=%s)", path.name, kind)

    return artifacts


def find_latest_container(listing: str, image_tag: str) -> str | None:
    """Find the newest container created from an image tag.

    Args:
        listing: Output of ``ps -a`` (newest container first).
        image_tag: Image tag to look for.

    Returns:
        Container ID, or None if no container uses the tag.
    """
    pattern = re.compile(
        r"(?:^|\s)" + re.escape(image_tag) + r"(?::latest)?(?=\s|$)"
    )
    for line in listing.splitlines():
        if line.startswith("CONTAINER ID"):
            continue
        if pattern.search(line):
            return line.split()[0]
    return None


def extract_kernels(
    image_tag: str,
    settings: Settings | None = None,
    engine: ContainerEngine | None = None,
) -> ExtractionResult:
    """Copy the boot files of an image into the artifact store.

    It:
    1. Runs a trivial command in a new container to check the image starts
    2. Finds the newest container created from the tag
    3. Copies its /boot tree into the artifact store
    4. Takes a snapshot of the boot files now in the store

    Args:
        image_tag: Image tag to extract from.
        settings: Application settings.
        engine: Container engine (created from settings if not provided).

    Returns:
        ExtractionResult with a snapshot of the whole store.

    Raises:
        ProcessError: If the image does not start or a command fails.
        NotFoundError: If no container for the tag can be found.
        FilesystemError: If the artifact store cannot be created.
    """
    if settings is None:
        settings = get_settings()
    if engine is None:
        engine = get_engine(settings.engine, settings.build_timeout)

    engine.run(image_tag, "bash", "-c", "ls")

    container_id = find_latest_container(engine.list_containers(), image_tag)
    if container_id is None:
        raise NotFoundError(f"No container found for image {image_tag}")

    destination = settings.kernels_dir
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(
            f"Cannot create artifact store {destination}: {e}", path=destination
        ) from e

    engine.copy(f"{container_id}:{BOOT_DIR}/.", destination)
    logger.info(
        "Copied %s from container %s (%s) to %s",
        BOOT_DIR,
        container_id,
        image_tag,
        destination,
    )

    store_artifacts = discover_boot_artifacts(destination)
    return ExtractionResult(
        image_tag=image_tag,
        container_id=container_id,
        destination=destination,
        store_artifacts=store_artifacts,
    )


__all__ = [
    "BOOT_DIR",
    "BOOT_FILE_PREFIXES",
    "ExtractionResult",
    "classify_boot_file",
    "compute_file_hash",
    "discover_boot_artifacts",
    "extract_kernels",
    "find_latest_container",
]
