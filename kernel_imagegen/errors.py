"""Error types for kernel_imagegen.

Every error carries a stable ``code`` for programmatic handling and for
per-item outcome records.
"""

from pathlib import Path

PROVISIONING_ERROR = "provisioning_error"
CONFIG_ERROR = "config_error"
UNSUPPORTED_DISTRO = "unsupported_distro"
INVALID_PATTERN = "invalid_pattern"
PROCESS_FAILED = "process_failed"
PROCESS_TIMEOUT = "timeout"
EXECUTION_ERROR = "execution_error"
FILESYSTEM_ERROR = "filesystem_error"
ROLLBACK_FAILED = "rollback_failed"
NOT_FOUND = "not_found"


class ProvisioningError(Exception):
    """Base error for provisioning operations."""

    def __init__(self, message: str, code: str = PROVISIONING_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ConfigError(ProvisioningError):
    """Raised when a kernel mask is malformed or incomplete."""

    def __init__(self, message: str, code: str = CONFIG_ERROR) -> None:
        super().__init__(message, code=code)


class UnsupportedDistroError(ProvisioningError):
    """Raised when a distribution has no base-image template."""

    def __init__(self, distro_type: str, code: str = UNSUPPORTED_DISTRO) -> None:
        super().__init__(f"{distro_type} not yet supported", code=code)
        self.distro_type = distro_type


class PatternError(ProvisioningError):
    """Raised when a release mask is not a valid regular expression."""

    def __init__(self, mask: str, reason: str, code: str = INVALID_PATTERN) -> None:
        super().__init__(f"Invalid release mask '{mask}': {reason}", code=code)
        self.mask = mask


class ProcessError(ProvisioningError):
    """Raised when an external command fails.

    Attributes:
        exit_code: Process exit code (None if it never ran, -1 on timeout).
        output: Combined stdout and stderr captured from the command.
    """

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str = "",
        code: str = PROCESS_FAILED,
    ) -> None:
        super().__init__(message, code=code)
        self.exit_code = exit_code
        self.output = output


class FilesystemError(ProvisioningError):
    """Raised when an image definition cannot be read, written or restored."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        code: str = FILESYSTEM_ERROR,
    ) -> None:
        super().__init__(message, code=code)
        self.path = path


class NotFoundError(ProvisioningError):
    """Raised when an expected container or image cannot be located."""

    def __init__(self, message: str, code: str = NOT_FOUND) -> None:
        super().__init__(message, code=code)


__all__ = [
    "CONFIG_ERROR",
    "EXECUTION_ERROR",
    "FILESYSTEM_ERROR",
    "INVALID_PATTERN",
    "NOT_FOUND",
    "PROCESS_FAILED",
    "PROCESS_TIMEOUT",
    "ROLLBACK_FAILED",
    "UNSUPPORTED_DISTRO",
    "ConfigError",
    "FilesystemError",
    "NotFoundError",
    "PatternError",
    "ProcessError",
    "ProvisioningError",
    "UnsupportedDistroError",
]
