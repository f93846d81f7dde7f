"""
Converge CLI - Declarative machine setup in Python.
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from .collaborators import Collaborators
from .engine import ConvergenceEngine, validate_resources
from .errors import ConfigurationError, ValidationError
from .formatters import ReportFormatter
from .loader import load_resources
from .settings import get_settings

# Setup
app = typer.Typer(
    name="converge",
    help="Declarative, idempotent machine setup in Python",
    add_completion=False,
)
console = Console()


def configure_logging():
    """Configure logging based on settings."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Configure logging on module import
configure_logging()


def _get_main_file(main_file: Path | None) -> Path:
    """Resolve the declaration file, defaulting to main.py in the current directory.

    Raises:
        SystemExit: If the file is not found
    """
    main_file = main_file or Path.cwd() / "main.py"
    if not main_file.exists():
        console.print(
            f"[bold red]✗ Error:[/bold red] No declaration file found at {main_file}"
        )
        console.print(
            "[dim]Hint: pass a file, or cd into a directory that contains main.py[/dim]"
        )
        raise typer.Exit(code=1)
    return main_file


def _create_command_panel(title: str, color: str, main_file: Path) -> Panel:
    return Panel.fit(
        f"[bold {color}]{title}[/bold {color}]\n"
        f"Declarations: {main_file}",
        border_style=color,
    )


def _print_validation_error(e: ValidationError) -> None:
    console.print("\n[bold red]✗ Invalid declarations:[/bold red]")
    for problem in e.problems:
        console.print(f"  • {problem}")


def _converge(
    main_file: Path | None,
    only: list[str] | None,
    dry_run: bool,
    detailed_exitcode: bool,
    title: str,
    color: str,
) -> None:
    main_file = _get_main_file(main_file)
    console.print(_create_command_panel(title, color, main_file))

    try:
        resources = load_resources(main_file)
    except ConfigurationError as e:
        console.print(f"\n[bold red]✗ Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1)

    collaborators = Collaborators.default()
    try:
        engine = ConvergenceEngine(collaborators, dry_run=dry_run)
        report = engine.run(resources, only=only or None)
    except ValidationError as e:
        _print_validation_error(e)
        raise typer.Exit(code=1)
    finally:
        collaborators.close()

    console.print()
    ReportFormatter(console).print_report(report)

    if not report.success:
        console.print("\n[bold red]✗ Some resources failed[/bold red]")
    elif dry_run:
        console.print("\n[dim]Run 'converge apply' to make these changes.[/dim]")
    elif report.changed:
        console.print("\n[bold green]✓ Machine converged![/bold green]")
    else:
        console.print("\n[bold green]✓ Nothing to do[/bold green]")

    raise typer.Exit(code=report.exit_code(detailed=detailed_exitcode))


@app.command()
def apply(
    main_file: Path = typer.Argument(
        None, help="Declaration file (default: ./main.py)"
    ),
    only: list[str] = typer.Option(
        None, "--only", "-o", help="Run only resources with this name or tag (repeatable)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Check guards only; change nothing"
    ),
    detailed_exitcode: bool = typer.Option(
        False,
        "--detailed-exitcode",
        help="Exit 2 when resources converged, 0 when nothing changed",
    ),
):
    """Apply declarations: converge every resource that is not yet satisfied."""
    _converge(
        main_file,
        only,
        dry_run=dry_run,
        detailed_exitcode=detailed_exitcode,
        title="Converge Apply" if not dry_run else "Converge Plan",
        color="blue" if not dry_run else "cyan",
    )


@app.command()
def plan(
    main_file: Path = typer.Argument(
        None, help="Declaration file (default: ./main.py)"
    ),
    only: list[str] = typer.Option(
        None, "--only", "-o", help="Plan only resources with this name or tag (repeatable)"
    ),
    detailed_exitcode: bool = typer.Option(
        False,
        "--detailed-exitcode",
        help="Exit 2 when resources would converge, 0 when nothing would change",
    ),
):
    """Preview which resources would change without executing anything."""
    _converge(
        main_file,
        only,
        dry_run=True,
        detailed_exitcode=detailed_exitcode,
        title="Converge Plan",
        color="cyan",
    )


@app.command()
def validate(
    main_file: Path = typer.Argument(
        None, help="Declaration file (default: ./main.py)"
    ),
):
    """Validate declarations without probing or changing the machine."""
    main_file = _get_main_file(main_file)
    try:
        resources = load_resources(main_file)
        validate_resources(resources)
    except ValidationError as e:
        _print_validation_error(e)
        raise typer.Exit(code=1)
    except ConfigurationError as e:
        console.print(f"\n[bold red]✗ Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]✓ {len(resources)} resources declared correctly[/bold green]"
    )


@app.command()
def version():
    """Show Converge version."""
    from . import __version__

    console.print(f"Converge version: [bold]{__version__}[/bold]")


if __name__ == "__main__":
    app()
