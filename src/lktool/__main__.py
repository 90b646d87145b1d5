"""CLI entry point for lktool."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from lktool import __version__
from lktool.build import run_make
from lktool.config import Settings
from lktool.errors import LktoolError
from lktool.modules.lifecycle import OverrideController, OverrideOutcome
from lktool.modules.registry import ModuleClass
from lktool.modules.resolver import ModuleResolver
from lktool.project import create_project

console = Console()


def _fail(error: LktoolError) -> NoReturn:
    """Report a failed command and exit non-zero."""
    console.print(f"[red]✗ {escape(str(error))}[/red]")
    if error.output:
        console.print(Panel(escape(error.output.rstrip()), title=error.kind))
    sys.exit(error.exit_code)


def _project_dir(ctx: click.Context) -> Path:
    return ctx.obj["project_dir"]


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--project-dir",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="LKTOOL_PROJECT_DIR",
    default=None,
    help="Project root (default: current directory)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    help="Log level",
)
@click.pass_context
def cli(ctx: click.Context, project_dir: Path | None, log_level: str):
    """lktool - build helper for component-based kernel projects."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["project_dir"] = project_dir or Path.cwd()
    ctx.obj["settings"] = Settings.from_env()


# ============================================================================
# Project commands
# ============================================================================


@cli.command()
@click.argument("name")
@click.option("--root", required=True, help="Root component of this project")
@click.pass_context
def new(ctx: click.Context, name: str, root: str):
    """Create a new kernel project.

    Example: lktool new hello --root top_early_console
    """
    try:
        project = create_project(
            name, root, parent_dir=_project_dir(ctx), settings=_settings(ctx)
        )
    except LktoolError as e:
        _fail(e)

    console.print(f"[green]✓ Created project {project.name} at {project.path}[/green]")
    console.print(f"  [cyan]Root:[/cyan] {project.root} ({project.root_location})")


@cli.command()
@click.pass_context
def build(ctx: click.Context):
    """Build kernel."""
    try:
        run_make(_project_dir(ctx), settings=_settings(ctx))
    except LktoolError as e:
        _fail(e)
    console.print("[green]✓ Build ok[/green]")


@cli.command()
@click.pass_context
def run(ctx: click.Context):
    """Run kernel."""
    try:
        run_make(_project_dir(ctx), target="run", settings=_settings(ctx))
    except LktoolError as e:
        _fail(e)
    console.print("[green]✓ Run ok[/green]")


@cli.command("list")
@click.option(
    "--class",
    "module_class",
    type=click.Choice([c.value for c in ModuleClass]),
    default=None,
    help="Only list one registry class",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_modules(ctx: click.Context, module_class: str | None, as_json: bool):
    """List modules in the registry."""
    settings = _settings(ctx)
    resolver = ModuleResolver(settings.registry_path(_project_dir(ctx)))
    try:
        registry = resolver.load_registry()
    except LktoolError as e:
        _fail(e)

    entries = registry.entries(ModuleClass(module_class) if module_class else None)

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    table = Table(title=f"Modules ({registry.path.name})")
    table.add_column("Name", style="cyan")
    table.add_column("Class", style="yellow")
    table.add_column("Location")
    table.add_column("Local")

    project_dir = _project_dir(ctx)
    for entry in entries:
        local = (
            "[green]checked out[/green]"
            if (project_dir / entry.container).exists()
            else "[dim]-[/dim]"
        )
        table.add_row(entry.name, entry.module_class.value, entry.location, local)

    console.print(table)


# ============================================================================
# Override commands
# ============================================================================


@cli.command()
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def get(ctx: click.Context, name: str, as_json: bool):
    """Check out a module locally and override it in the manifest."""
    controller = OverrideController.for_project(_project_dir(ctx), _settings(ctx))
    try:
        result = controller.get(name)
    except LktoolError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.outcome == OverrideOutcome.ALREADY_BOUND:
        console.print(f"[yellow]⚠ {result.message}; nothing to do[/yellow]")
    else:
        console.print(f"[green]✓ {result.message}[/green]")
    console.print(f"  [cyan]Container:[/cyan] {result.container}")
    console.print(f"  [cyan]Path:[/cyan] {result.local_path}")
    for warning in result.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")


@cli.command()
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def put(ctx: click.Context, name: str, as_json: bool):
    """Remove a local override once its changes are pushed.

    Refuses while the checkout has uncommitted or unpushed work.
    """
    controller = OverrideController.for_project(_project_dir(ctx), _settings(ctx))
    try:
        result = controller.put(name)
    except LktoolError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.outcome == OverrideOutcome.ALREADY_UNBOUND:
        console.print(f"[yellow]⚠ {result.message}; nothing to do[/yellow]")
        return

    console.print(f"[green]✓ {result.message}[/green]")
    if result.removed:
        console.print(f"  [cyan]Overrides dropped:[/cyan] {', '.join(result.removed)}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, as_json: bool):
    """Show active overrides and whether their checkouts exist."""
    controller = OverrideController.for_project(_project_dir(ctx), _settings(ctx))
    try:
        rows = controller.status()
    except LktoolError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        console.print("[dim]No local overrides.[/dim]")
        return

    table = Table(title="Local Overrides")
    table.add_column("Container", style="cyan")
    table.add_column("Location")
    table.add_column("Modules")
    table.add_column("Status")

    for row in rows:
        if row["consistent"]:
            state = "[green]✓ Bound[/green]"
        elif row["present"]:
            state = "[red]✗ Checkout without override[/red]"
        else:
            state = "[red]✗ Override without checkout[/red]"
        modules = ", ".join(f"{n} → {p}" for n, p in row["bindings"].items())
        table.add_row(row["container"], row["location"], modules or "-", state)

    console.print(table)

    if any(not row["consistent"] for row in rows):
        console.print(
            "\n[yellow]Manifest and disk disagree; reconcile by hand.[/yellow]"
        )
        sys.exit(3)


if __name__ == "__main__":
    cli()
