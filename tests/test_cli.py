"""Smoke tests for the CLI.

These tests verify CLI behavior without requiring a container engine.
"""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from kernel_imagegen import __version__
from kernel_imagegen.cli import app
from kernel_imagegen.errors import ConfigError
from kernel_imagegen.types import ProvisionOutcome, ProvisionReport, ProvisionStage

runner = CliRunner()

ARTIFACT_TOML = """\
name = "test"

[[supported_kernels]]
distro_type = "Ubuntu"
distro_release = "18.04"
release_mask = "4.15.*"
"""


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Kernel Image Generator" in result.stdout

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage:" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command(self) -> None:
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Root directory" in result.stdout
        assert "Discovery timeout" in result.stdout
        assert "ubuntu" in result.stdout

    def test_config_json(self) -> None:
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["engine"] == "docker"


class TestKernelsList:
    """Test CLI kernels list command."""

    def test_lists_kernels(self, tmp_path) -> None:
        path = tmp_path / "kernels.toml"
        path.write_text(
            '[[Kernels]]\ndistro_type = "Ubuntu"\ndistro_release = "18.04"\n'
            'kernel_release = "4.15.0-20-generic"\n'
        )
        result = runner.invoke(app, ["kernels", "list", "--config", str(path)])
        assert result.exit_code == 0
        assert "ubuntu 18.04 4.15.0-20-generic" in result.stdout

    def test_empty_inventory(self, tmp_path) -> None:
        path = tmp_path / "kernels.toml"
        path.write_text("")
        result = runner.invoke(app, ["kernels", "list", "--config", str(path)])
        assert result.exit_code == 1
        assert "No kernels found" in result.stdout

    def test_default_path_under_root(self, tmp_path) -> None:
        result = runner.invoke(
            app, ["kernels", "list"], env={"KERNEL_IMG_ROOT_DIR": str(tmp_path)}
        )
        assert result.exit_code == 1
        assert "File not found" in result.stdout


class TestKernelsAutogen:
    """Test CLI kernels autogen command."""

    def _config(self, tmp_path):
        path = tmp_path / ".out-of-tree.toml"
        path.write_text(ARTIFACT_TOML)
        return path

    def test_success(self, tmp_path) -> None:
        report = ProvisionReport(
            outcomes=[
                ProvisionOutcome(
                    ProvisionStage.BASE, "ubuntu-18.04", "ubuntu:18.04", True
                )
            ],
            touched_tags=["ubuntu-18.04"],
        )
        with patch(
            "kernel_imagegen.provision.service.provision_kernels", return_value=report
        ) as mock_provision:
            result = runner.invoke(
                app,
                [
                    "kernels",
                    "autogen",
                    "--config",
                    str(self._config(tmp_path)),
                    "--root",
                    str(tmp_path / "root"),
                ],
            )

        assert result.exit_code == 0
        masks = mock_provision.call_args.args[0]
        assert masks[0].distro_release == "18.04"
        assert mock_provision.call_args.kwargs["settings"].root_dir == tmp_path / "root"
        assert "base:" in result.stdout
        assert "✓ ubuntu-18.04" in result.stdout

    def test_output_grouped_by_stage(self, tmp_path) -> None:
        report = ProvisionReport(
            outcomes=[
                ProvisionOutcome(
                    ProvisionStage.BASE, "ubuntu-16.04", "ubuntu:16.04", True
                ),
                ProvisionOutcome(
                    ProvisionStage.EXTRACT, "ubuntu-16.04", "ubuntu-16.04", True
                ),
                ProvisionOutcome(
                    ProvisionStage.BASE, "ubuntu-18.04", "ubuntu:18.04", True
                ),
            ],
            touched_tags=["ubuntu-16.04"],
        )
        with patch(
            "kernel_imagegen.provision.service.provision_kernels", return_value=report
        ):
            result = runner.invoke(
                app, ["kernels", "autogen", "--config", str(self._config(tmp_path))]
            )

        assert result.exit_code == 0
        out = result.stdout
        assert out.index("base:") < out.index("ubuntu-18.04") < out.index("extract:")
        assert "resolve:" not in out

    def test_failures_exit_nonzero(self, tmp_path) -> None:
        report = ProvisionReport(
            outcomes=[
                ProvisionOutcome(
                    ProvisionStage.ADD_KERNEL,
                    "linux-image-x",
                    "ubuntu:18.04",
                    False,
                    message="build failed",
                    code="process_failed",
                )
            ]
        )
        with patch(
            "kernel_imagegen.provision.service.provision_kernels", return_value=report
        ):
            result = runner.invoke(
                app, ["kernels", "autogen", "--config", str(self._config(tmp_path))]
            )

        assert result.exit_code == 1
        assert "linux-image-x" in result.stdout
        assert "build failed" in result.stdout

    def test_config_error(self, tmp_path) -> None:
        with patch(
            "kernel_imagegen.provision.service.provision_kernels",
            side_effect=ConfigError("Please set distro_release"),
        ):
            result = runner.invoke(
                app, ["kernels", "autogen", "--config", str(self._config(tmp_path))]
            )

        assert result.exit_code == 1
        assert "Please set distro_release" in result.stdout

    def test_missing_config(self, tmp_path) -> None:
        result = runner.invoke(
            app, ["kernels", "autogen", "--config", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "File not found" in result.stdout
