"""
skia-binaries CLI - Command-line interface.

Download Skia binaries, generate binary npm packages and run the
post-install hook of a generated package.
"""

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from skia_binaries.artifact_downloader import ArtifactDownloader, DownloadPlanner
from skia_binaries.artifact_models import ArtifactCatalog, Flavor
from skia_binaries.package_generator import PackageGenerator, write_github_output
from skia_binaries.pipeline import ArtifactPipeline
from skia_binaries.postinstall import PostInstaller
from skia_binaries.skia_binaries_config import SkiaBinariesConfig
from skia_binaries.skia_binaries_exceptions import SkiaBinariesException
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger
from skia_binaries.versioning import milestone_to_semver

app = typer.Typer(
    name="skia-binaries",
    help="Download and package prebuilt Skia binaries",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> SkiaBinariesLogger:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    return SkiaBinariesLogger(level=level)


def _describe_error(error: BaseException) -> str:
    message = str(error)
    cause = error.__cause__
    while cause is not None:
        message += f" (caused by: {cause})"
        cause = cause.__cause__
    return message


def _unknown_package(name: str, available: list) -> NoReturn:
    console.print(f"[red]Error:[/red] Unknown platform \"{name}\"")
    console.print(f"Available platforms: {', '.join(available)}")
    raise typer.Exit(1)


@app.command()
def download(
    skia_version: str = typer.Option(..., "--skia-version", help="Skia version, e.g. m144c"),
    platform: Optional[str] = typer.Option(
        None, "--platform", "-p", help="Only download this platform"
    ),
    graphite: bool = typer.Option(False, "--graphite", help="Download Graphite binaries"),
    output_dir: Path = typer.Option(Path("libs"), "--output-dir", "-o", help="Output directory"),
    keep_going: bool = typer.Option(
        False, "--keep-going", help="Continue with remaining artifacts after a failure"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Download Skia binaries from GitHub releases into OUTPUT_DIR/<platform>."""
    logger = _setup_logging(verbose)
    config = SkiaBinariesConfig.load(graphite=graphite or None)
    logger.log(f"Effective configuration: {config}", logging.DEBUG)
    flavor = Flavor.from_graphite(config.graphite)
    catalog = ArtifactCatalog.load()

    planner = DownloadPlanner(catalog, flavor, skia_version, output_dir)
    try:
        planner.create_download_plan(platform)
    except KeyError:
        _unknown_package(platform, catalog.package_names(flavor))

    console.print(f"Downloading {flavor.display_name} binaries...")
    console.print(f"  Skia version: {skia_version}")
    console.print(f"  Output: {output_dir}")

    downloader = ArtifactDownloader(
        planner, ArtifactPipeline(config, logger), logger, fail_fast=not keep_going
    )
    success = asyncio.run(downloader.download_all_pending())

    summary = downloader.get_download_summary()
    table = Table(title="Download summary")
    for column in ("completed", "failed", "skipped", "pending"):
        table.add_column(column.capitalize())
    table.add_row(*(str(summary[c]) for c in ("completed", "failed", "skipped", "pending")))
    console.print(table)

    if not success:
        for key, plan in downloader.get_failed_downloads().items():
            console.print(f"[red]Failed:[/red] {key}: {plan.error_message}")
        raise typer.Exit(1)

    if summary["total"] and summary["skipped"] == summary["total"]:
        console.print("[yellow]Downloads skipped (SKIP_SKIA_DOWNLOAD is set)[/yellow]")
        return

    console.print("[green]All downloads complete![/green]")


@app.command()
def generate(
    skia_version: str = typer.Option(..., "--skia-version", help="Skia milestone, e.g. m144b"),
    npm_version: Optional[str] = typer.Option(
        None, "--npm-version", help="npm version (derived from --skia-version if omitted)"
    ),
    package: Optional[str] = typer.Option(None, "--package", help="Only generate this package"),
    graphite: bool = typer.Option(False, "--graphite", help="Generate Graphite packages"),
    output_dir: Path = typer.Option(Path("dist"), "--output-dir", "-o", help="Output directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Generate the per-platform binary npm packages."""
    logger = _setup_logging(verbose)
    config = SkiaBinariesConfig.load(graphite=graphite or None)
    logger.log(f"Effective configuration: {config}", logging.DEBUG)
    catalog = ArtifactCatalog.load()
    generator = PackageGenerator(catalog, config, logger)

    try:
        generated = generator.generate_all(output_dir, skia_version, npm_version, package)
    except KeyError:
        _unknown_package(package, catalog.package_names(generator.flavor))
    except SkiaBinariesException as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    for path in generated:
        console.print(f"  {path}")
    write_github_output(generated)


@app.command()
def postinstall(
    package_dir: Path = typer.Argument(
        Path("."), help="Generated package directory containing package.json"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Download the binaries of a generated package into its libs/ directory."""
    logger = _setup_logging(verbose)
    config = SkiaBinariesConfig.load(workspace_root=package_dir)
    logger.log(f"Effective configuration: {config}", logging.DEBUG)
    installer = PostInstaller(package_dir, ArtifactPipeline(config, logger), logger)

    try:
        status = asyncio.run(installer.run())
    except Exception as e:
        console.print("[red]Failed to install binaries[/red]")
        console.print(f"   {_describe_error(e)}")
        raise typer.Exit(1)

    console.print(f"Post-install: {status}")


@app.command()
def semver(milestone: str = typer.Argument(..., help="Skia milestone, e.g. m144c")):
    """Print the npm version derived from a Skia milestone."""
    try:
        console.print(milestone_to_semver(milestone))
    except SkiaBinariesException as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """Show skia-binaries version."""
    from skia_binaries import __version__

    console.print(f"skia-binaries v{__version__}")


if __name__ == "__main__":
    app()
