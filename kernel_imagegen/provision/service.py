"""Provisioning service.

This module provides the high-level provisioning API:
- provision_kernels(): Main entry point - build images for a set of masks
- Per-item outcome records instead of aborting on the first failure
- The kernel registry hook run at the end of a provisioning pass

Only malformed masks abort a run. Every other failure is recorded in the
report and the remaining masks and tags are still processed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from kernel_imagegen.config import get_settings
from kernel_imagegen.engine.runner import get_engine
from kernel_imagegen.errors import PROVISIONING_ERROR, ConfigError, ProvisioningError
from kernel_imagegen.images.builder import ensure_base
from kernel_imagegen.images.mutator import add_kernel
from kernel_imagegen.kernels.artifacts import extract_kernels
from kernel_imagegen.kernels.resolver import resolve_kernel_packages
from kernel_imagegen.types import ProvisionOutcome, ProvisionReport, ProvisionStage

if TYPE_CHECKING:
    from kernel_imagegen.config import Settings
    from kernel_imagegen.engine.runner import ContainerEngine
    from kernel_imagegen.kernels.schema import KernelMask

logger = logging.getLogger(__name__)


class KernelRegistryHook(Protocol):
    """Called once after all images have been processed."""

    def __call__(self, report: ProvisionReport, settings: Settings) -> None: ...


class ManualRegistryHook:
    """Registry hook that leaves kernels.toml generation to the operator."""

    def __call__(self, report: ProvisionReport, settings: Settings) -> None:
        logger.info("Currently generation of kernels.toml is not implemented")
        logger.info(
            "Next step is up to you: describe the kernels in %s", settings.kernels_dir
        )


def validate_masks(masks: Sequence[KernelMask]) -> None:
    """Reject masks that cannot be provisioned.

    Raises:
        ConfigError: If any mask has an empty distro_release.
    """
    for index, mask in enumerate(masks):
        if not mask.distro_release:
            raise ConfigError(
                f"Please set distro_release (supported kernel #{index + 1}, "
                f"{mask.distro_type.value})"
            )


def _unexpected(error: Exception) -> bool:
    return not isinstance(error, ProvisioningError)


def _failure(
    stage: ProvisionStage, subject: str, target: str, error: Exception
) -> ProvisionOutcome:
    if isinstance(error, ProvisioningError):
        code = error.code
    else:
        code = PROVISIONING_ERROR
    return ProvisionOutcome(
        stage=stage,
        subject=subject,
        target=target,
        success=False,
        message=str(error) or type(error).__name__,
        code=code,
    )


def provision_mask(
    mask: KernelMask,
    report: ProvisionReport,
    settings: Settings,
    engine: ContainerEngine,
) -> None:
    """Build the base image for a mask and install its matching kernels.

    Failures are appended to the report. The mask's image tag is recorded
    as touched once its kernels have been resolved.
    """
    target = mask.target
    target_id = str(target)

    try:
        ensure_base(target, settings=settings, engine=engine)
    except Exception as e:
        logger.error(
            "Base image for %s: %s", target_id, e, exc_info=_unexpected(e)
        )
        report.outcomes.append(
            _failure(ProvisionStage.BASE, target.image_tag, target_id, e)
        )
        return
    report.outcomes.append(
        ProvisionOutcome(
            stage=ProvisionStage.BASE,
            subject=target.image_tag,
            target=target_id,
            success=True,
        )
    )

    try:
        packages = resolve_kernel_packages(
            target,
            mask.release_mask,
            mask.generic_only,
            settings=settings,
            engine=engine,
        )
    except Exception as e:
        logger.error(
            "Resolve kernels for %s: %s", target_id, e, exc_info=_unexpected(e)
        )
        report.outcomes.append(
            _failure(ProvisionStage.RESOLVE, mask.release_mask, target_id, e)
        )
        return
    report.outcomes.append(
        ProvisionOutcome(
            stage=ProvisionStage.RESOLVE,
            subject=mask.release_mask,
            target=target_id,
            success=True,
            message=f"{len(packages)} package(s)",
        )
    )

    for package in packages:
        try:
            installed = add_kernel(target, package, settings=settings, engine=engine)
        except Exception as e:
            logger.error(
                "Add kernel %s for %s: %s",
                package,
                target_id,
                e,
                exc_info=_unexpected(e),
            )
            report.outcomes.append(
                _failure(ProvisionStage.ADD_KERNEL, package, target_id, e)
            )
            continue
        report.outcomes.append(
            ProvisionOutcome(
                stage=ProvisionStage.ADD_KERNEL,
                subject=package,
                target=target_id,
                success=True,
                installed=installed,
                message="installed" if installed else "already installed",
            )
        )

    if target.image_tag not in report.touched_tags:
        report.touched_tags.append(target.image_tag)


def provision_kernels(
    masks: Sequence[KernelMask],
    settings: Settings | None = None,
    engine: ContainerEngine | None = None,
    registry_hook: KernelRegistryHook | None = None,
) -> ProvisionReport:
    """Provision kernel images for all masks and extract their boot files.

    It:
    1. Validates every mask before any image work
    2. For each mask in order, ensures the base image, resolves matching
       kernel packages and adds each one to the image
    3. Extracts boot files once per distinct image tag
    4. Runs the kernel registry hook

    Args:
        masks: Kernel masks to provision.
        settings: Application settings.
        engine: Container engine (created from settings if not provided).
        registry_hook: Hook run at the end (ManualRegistryHook by default).

    Returns:
        ProvisionReport with one outcome per step and item.

    Raises:
        ConfigError: If any mask is malformed.
    """
    if settings is None:
        settings = get_settings()
    if engine is None:
        engine = get_engine(settings.engine, settings.build_timeout)
    if registry_hook is None:
        registry_hook = ManualRegistryHook()

    validate_masks(masks)

    report = ProvisionReport()

    for mask in masks:
        provision_mask(mask, report, settings, engine)

    for tag in report.touched_tags:
        try:
            result = extract_kernels(tag, settings=settings, engine=engine)
        except Exception as e:
            logger.error(
                "Extract kernels from %s: %s", tag, e, exc_info=_unexpected(e)
            )
            report.outcomes.append(_failure(ProvisionStage.EXTRACT, tag, tag, e))
            continue
        report.outcomes.append(
            ProvisionOutcome(
                stage=ProvisionStage.EXTRACT,
                subject=tag,
                target=tag,
                success=True,
                message=(
                    f"kernel store now holds {len(result.store_artifacts)} file(s)"
                ),
            )
        )

    logger.info(
        "Provisioning finished: %d step(s), %d failure(s)",
        len(report.outcomes),
        len(report.failures),
    )
    registry_hook(report, settings)
    return report


__all__ = [
    "KernelRegistryHook",
    "ManualRegistryHook",
    "provision_kernels",
    "provision_mask",
    "validate_masks",
]
