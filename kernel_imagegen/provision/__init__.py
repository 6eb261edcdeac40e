"""Provisioning orchestration across kernel masks."""

from kernel_imagegen.provision.service import ManualRegistryHook, provision_kernels

__all__ = ["ManualRegistryHook", "provision_kernels"]
