"""
Command-line interface for the atlas packer.
"""

import os
import sys
from pathlib import Path
from typing import Optional, List
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import PackerConfig, ENV_VARS
from .errors import PackerError, ConfigError
from .pipeline import AtlasPipeline, PackResult

app = typer.Typer(
    name="atlas-packer",
    help="Texture atlas packer - Pack directories of images into as few fixed-size atlases as possible",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]atlas-packer pack atlas 2048 2048 5 1 1 images[/cyan]          Pack ./images into atlas1.png, atlas2.png, ...
  [cyan]atlas-packer pack ui 1024 1024 2 0 0 icons fonts[/cyan]        Pack two directories with full paths
  [cyan]atlas-packer pack atlas 512 512 0 0 0 art -o build --format json[/cyan]

[bold]Environment Variables:[/bold]
  Use [cyan]atlas-packer config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()


@app.command()
def pack(
    name: str = typer.Argument(..., help="Base name of the output atlases, numbered from 1"),
    width: int = typer.Argument(..., min=1, help="Atlas width in pixels"),
    height: int = typer.Argument(..., min=1, help="Atlas height in pixels"),
    padding: int = typer.Argument(..., min=0, help="Padding between images in the final texture atlas"),
    ignore_paths: int = typer.Argument(..., min=0, max=1, help="1 writes only the file name, without its path, to the atlas descriptor"),
    unit_coordinates: int = typer.Argument(..., min=0, max=1, help="1 writes coordinates in 0..1 range instead of pixels"),
    directories: List[Path] = typer.Argument(..., help="Directories scanned recursively for images"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    extension: Optional[str] = typer.Option(None, "--extension", "-e", help="Input file extension"),
    descriptor_format: Optional[str] = typer.Option(None, "--format", "-f", help="Descriptor format: txt or json"),
    validate: bool = typer.Option(False, "--validate", help="Validate layouts before writing atlases"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every placement")
):
    """Pack images from one or more directories into texture atlases."""
    try:
        config = _load_config(config_file)
        config.name = name
        config.width = width
        config.height = height
        config.padding = padding
        config.ignore_paths = bool(ignore_paths)
        config.unit_coordinates = bool(unit_coordinates)
        config.directories = [str(d) for d in directories]
        if output_dir is not None:
            config.output_dir = str(output_dir)
        if extension is not None:
            config.extension = extension
        if descriptor_format is not None:
            config.descriptor_format = descriptor_format.lower()
        if validate:
            config.validate_output = True
        if verbose:
            config.log_level = "DEBUG"

        console.print(f"[bold blue]Packing {', '.join(config.directories)} into "
                      f"{width}×{height} atlases...[/bold blue]")
        result = AtlasPipeline(config).run()

    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)
    except PackerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _display_pack_summary(result)

    if not result.success:
        raise typer.Exit(1)


@app.command()
def config(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate: bool = typer.Option(False, "--validate", help="Validate configuration"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage atlas packer configuration."""
    if env_vars:
        _display_env_vars()
        return

    try:
        cfg = _load_config(config_file)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    if show:
        _display_config(cfg)

    if validate:
        errors = cfg.validate()
        if errors:
            console.print("[red]Configuration errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)
        console.print("[green]✓ Configuration is valid[/green]")

    if not show and not validate:
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")


@app.command()
def version():
    """Show atlas packer version information."""
    console.print("[bold]Texture Atlas Packer[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    from importlib import metadata

    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for package in ("Pillow", "numpy", "typer", "rich"):
        try:
            table.add_row("[green]✓[/green]", package, metadata.version(package))
        except metadata.PackageNotFoundError:
            table.add_row("[red]✗[/red]", package, "Not installed")

    console.print("\n[bold]Dependencies:[/bold]")
    console.print(table)


def _load_config(config_file: Optional[Path]) -> PackerConfig:
    """Load configuration from file or use defaults with environment variable support."""
    config = None

    if config_file:
        config = PackerConfig.from_file(config_file)
        console.print(f"[dim]Using configuration: {config_file}[/dim]")
    else:
        for config_path in (Path("atlas_packer.toml"), Path("atlas_packer.json")):
            if config_path.exists():
                console.print(f"[dim]Using configuration: {config_path}[/dim]")
                config = PackerConfig.from_file(config_path)
                break

        if config is None:
            config = PackerConfig()

    config.apply_env_overrides()

    env_vars_used = [key for key in os.environ if key.startswith('ATLAS_PACKER_')]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    return config


def _display_pack_summary(result: PackResult) -> None:
    """Display the atlases of a run in a formatted table."""
    for skipped in result.skipped:
        console.print(f"[yellow]Skipped:[/yellow] {skipped}")

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    for error in result.validation_errors:
        console.print(f"[red]Invalid layout:[/red] {error}")

    table = Table(title="Atlases")
    table.add_column("Atlas", style="cyan")
    table.add_column("Images", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Status")

    for atlas_bin, export in zip(result.bins, result.exports):
        status = "[green]✓ written[/green]" if export.success else f"[red]✗ {export.error}[/red]"
        table.add_row(export.name, str(len(atlas_bin)), f"{atlas_bin.efficiency:.1%}", status)

    console.print(table)
    console.print(f"Found {result.files_found} images, packed {result.images_packed} "
                  f"into {len(result.bins)} atlases in {result.duration:.2f}s")

    if result.failed_exports:
        console.print(f"[red]✗ {len(result.failed_exports)} atlases could not be written[/red]")
    elif result.success:
        console.print("[green]✓ Done[/green]")


def _display_config(config: PackerConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Atlas Packer Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Name", config.name)
    table.add_row("Canvas Size", f"{config.width}×{config.height}")
    table.add_row("Padding", str(config.padding))
    table.add_row("Ignore Paths", str(config.ignore_paths))
    table.add_row("Unit Coordinates", str(config.unit_coordinates))
    table.add_row("Directories", ", ".join(config.directories) or "-")
    table.add_row("Extension", config.extension)
    table.add_row("Descriptor Format", config.descriptor_format)
    table.add_row("Output Directory", config.output_dir)
    table.add_row("Compression Level", str(config.compression_level))
    table.add_row("Validate Output", str(config.validate_output))
    table.add_row("Log Level", config.log_level)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Atlas Packer Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    for var_name, description, example in ENV_VARS:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")


if __name__ == "__main__":
    app()
