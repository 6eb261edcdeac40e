"""Configuration settings for kernel_imagegen.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_root_dir() -> Path:
    """Return the default root directory for definitions and kernels."""
    return Path.home() / ".out-of-tree"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the KERNEL_IMG_
    prefix. Every pipeline function accepts a Settings instance so the root
    directory can be injected.
    """

    model_config = SettingsConfigDict(
        env_prefix="KERNEL_IMG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    root_dir: Path = Field(
        default_factory=_default_root_dir,
        description="Root directory for image definitions and extracted kernels",
    )

    # Container engine
    engine: str = Field(
        default="docker",
        min_length=1,
        description="Container engine executable",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    discovery_timeout: int = Field(
        default=60,
        ge=1,
        description="Timeout for kernel package discovery inside a container",
    )
    build_timeout: int | None = Field(
        default=None,
        ge=60,
        description="Timeout for image builds, runs and copies (None = unbounded)",
    )

    @property
    def kernels_dir(self) -> Path:
        """Directory accumulating extracted boot files."""
        return self.root_dir / "kernels"


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
