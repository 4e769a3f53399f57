"""
Crucible CLI - Command line interface
"""

import shutil
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from crucible import __version__, accessors
from crucible.accessors import NativeBinaries
from crucible.core import platform
from crucible.core.config import CrucibleConfig, load_config
from crucible.core.exceptions import CrucibleError
from crucible.core.logger import console, log, setup_logging
from crucible.orchestrator import Orchestrator
from crucible.testing import NativeTestRunner


# CLI App
app = typer.Typer(
    name="crucible",
    help="🔥 Crucible - Build native executables into your project's build pipeline",
    add_completion=False,
)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to crucible.toml")


def get_context(config_path: Optional[Path]) -> tuple[CrucibleConfig, Orchestrator]:
    """Loads config and builds the orchestrator for it."""
    try:
        config = load_config(config_path)
    except CrucibleError as e:
        log.error(str(e))
        raise typer.Exit(1)
    return config, Orchestrator(config.paths())


# ============================================================================
# Build Commands
# ============================================================================

@app.command()
def build(
    only: Optional[str] = typer.Option(None, "--only", "-o", help="Only declarations whose name contains this"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Override the build profile"),
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Build every declared native binary and copy it into priv/."""
    setup_logging(verbose=verbose)
    config, orchestrator = get_context(config_path)

    log.header(f"Build {config.project.name} ({config.build_env})")

    table = Table(title="Native Builds")
    table.add_column("Name")
    table.add_column("Builder")
    table.add_column("Profile")
    table.add_column("Outcome")
    table.add_column("Resources", justify="right")

    for decl in config.select(only):
        opts = dict(decl.options)
        if profile:
            opts["profile"] = profile

        try:
            descriptor = orchestrator.compile(decl.app, config.env_options(decl.name), opts)
        except CrucibleError as e:
            log.error(str(e))
            raise typer.Exit(1)

        accessors.register(
            decl.name,
            NativeBinaries.from_descriptor(descriptor, orchestrator.paths.priv_dir(decl.app)),
        )
        table.add_row(
            decl.name,
            descriptor.builder_name,
            descriptor.profile,
            descriptor.outcome.value,
            str(len(descriptor.external_resources)),
        )

    console.print(table)
    log.success("Build finished!")


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def test(
    ctx: typer.Context,
    only: Optional[str] = typer.Option(None, "--only", "-o", help="Only declarations whose name contains this"),
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print test output even on success"),
):
    """Run native test suites (cargo test / ctest). Extra args go to the test runner."""
    setup_logging(verbose=verbose)
    config, orchestrator = get_context(config_path)

    log.header("Native Tests")

    try:
        descriptors = [
            (decl.name, orchestrator.resolve(decl.app, config.env_options(decl.name), decl.options))
            for decl in config.select(only)
        ]
    except CrucibleError as e:
        log.error(str(e))
        raise typer.Exit(1)

    if not descriptors:
        log.info("No native declarations found")
        return

    runner = NativeTestRunner(options_for=orchestrator.builder_options, verbose=verbose)
    summary = runner.run(descriptors, test_args=ctx.args)

    if not summary.success:
        log.error("Native tests failed")
        raise typer.Exit(1)


# ============================================================================
# Utility Commands
# ============================================================================

@app.command(name="platform")
def show_platform(config_path: Optional[Path] = ConfigOption):
    """Show the current platform and which declarations it supports."""
    console.print(f"Current platform: [cyan]{platform.describe()}[/cyan]")

    if config_path is None and not (Path.cwd() / "crucible.toml").exists():
        return

    config, orchestrator = get_context(config_path)
    table = Table(title="Platform Constraints")
    table.add_column("Name")
    table.add_column("Requires")
    table.add_column("Supported")

    for decl in config.natives:
        try:
            descriptor = orchestrator.resolve(decl.app, config.env_options(decl.name), decl.options)
        except CrucibleError as e:
            log.error(str(e))
            raise typer.Exit(1)

        table.add_row(
            decl.name,
            platform.describe_constraints(descriptor.os, descriptor.arch),
            "[green]yes[/green]" if descriptor.platform_supported else "[red]no[/red]",
        )

    console.print(table)


@app.command()
def clean(config_path: Optional[Path] = ConfigOption):
    """Remove native build directories and copied binaries."""
    config, orchestrator = get_context(config_path)
    paths = orchestrator.paths

    log.header("Cleaning Artifacts")

    targets = []
    for decl in config.natives:
        targets.append(paths.native_dir(paths.build_path, decl.app))
        targets.append(paths.priv_dir(decl.app))

    for target in dict.fromkeys(targets):
        if target.exists():
            log.step(f"Removing {paths.relative(target)}")
            shutil.rmtree(target)

    log.success("Clean finished!")


@app.command()
def version():
    """Show Crucible version."""
    console.print(f"🔥 Crucible v{__version__}")


if __name__ == "__main__":
    app()
