"""Thin CLI wrapper for kernel_imagegen.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from kernel_imagegen import __version__
from kernel_imagegen.config import get_settings, print_settings_json

app = typer.Typer(
    name="kernelgen",
    help="Kernel Image Generator - versioned kernel environments in container images",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"kernel-imagegen version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Kernel Image Generator - versioned kernel environments in container images."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    from kernel_imagegen.images.templates import supported_distros

    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
    else:
        build_timeout_display = (
            str(settings.build_timeout) if settings.build_timeout else "(unbounded)"
        )
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Paths:[/bold]")
        console.print(f"  Root directory:      {settings.root_dir}")
        console.print(f"  Kernels directory:   {settings.kernels_dir}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Container engine:    {settings.engine}")
        console.print(f"  Log level:           {settings.log_level}")
        distros = ", ".join(d.value for d in supported_distros())
        console.print(f"  Supported distros:   {distros}")
        console.print()
        console.print("[bold]Timeouts (seconds):[/bold]")
        console.print(f"  Discovery timeout:   {settings.discovery_timeout}")
        console.print(f"  Build timeout:       {build_timeout_display}")


kernels_app = typer.Typer(help="List and provision kernels")
app.add_typer(kernels_app, name="kernels")


@kernels_app.command("list")
def kernels_list(
    config_path: Annotated[
        str,
        typer.Option("--config", "-c", help="Path to kernel inventory file"),
    ] = "",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List kernels in the kernel inventory."""
    from pydantic import ValidationError

    from kernel_imagegen.kernels.io import KERNEL_CONFIG_FILENAME, load_kernel_config

    settings = get_settings()
    path = (
        Path(config_path) if config_path else settings.root_dir / KERNEL_CONFIG_FILENAME
    )
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(code=1)

    try:
        kcfg = load_kernel_config(path)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid kernel inventory: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if not kcfg.kernels:
        console.print("[red]No kernels found[/red]")
        raise typer.Exit(code=1)

    if json_output:
        output = [k.model_dump(mode="json", exclude_none=True) for k in kcfg.kernels]
        console.print(json.dumps(output, indent=2))
    else:
        for k in kcfg.kernels:
            console.print(
                f"{k.distro_type.value} {k.distro_release} {k.kernel_release}",
                highlight=False,
            )


@kernels_app.command("autogen")
def kernels_autogen(
    config_path: Annotated[
        str,
        typer.Option("--config", "-c", help="Path to project artifact config"),
    ] = "",
    root: Annotated[
        str | None,
        typer.Option("--root", "-r", help="Override root directory"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Build kernel images for the project's supported kernels.

    Failures for individual kernels or images are reported and do not stop
    the remaining ones. A supported kernel without distro_release aborts the
    run before anything is built.
    """
    from pydantic import ValidationError

    from kernel_imagegen.errors import ConfigError
    from kernel_imagegen.kernels.io import ARTIFACT_CONFIG_FILENAME, load_artifact_config
    from kernel_imagegen.provision.service import provision_kernels
    from kernel_imagegen.types import ProvisionStage

    settings = get_settings()
    if root:
        settings = settings.model_copy(update={"root_dir": Path(root)})

    path = Path(config_path) if config_path else Path.cwd() / ARTIFACT_CONFIG_FILENAME
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(code=1)

    try:
        artifact_config = load_artifact_config(path)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid artifact config: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    try:
        report = provision_kernels(artifact_config.supported_kernels, settings=settings)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        output = {
            "success": report.success,
            "touched_tags": report.touched_tags,
            "outcomes": [asdict(o) for o in report.outcomes],
        }
        console.print(json.dumps(output, indent=2, default=str))
    else:
        console.print("[bold]Provisioning Results:[/bold]")
        for stage in ProvisionStage:
            outcomes = report.by_stage(stage)
            if not outcomes:
                continue
            console.print(f"[bold]{stage.value}:[/bold]")
            for o in outcomes:
                if o.success:
                    console.print(
                        f"  [green]✓ {escape(o.subject)}[/green] {escape(o.message)}",
                        highlight=False,
                    )
                else:
                    console.print(
                        f"  [red]✗ {escape(o.subject)} ({o.target})[/red]",
                        highlight=False,
                    )
                    console.print(
                        f"      Error: {escape(o.message)}", highlight=False
                    )
        console.print()
        console.print(
            "[yellow]kernels.toml is not generated automatically; "
            "describe the extracted kernels by hand.[/yellow]"
        )

    if not report.success:
        raise typer.Exit(code=1)


__all__ = ["app"]
