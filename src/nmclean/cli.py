"""CLI interface for nmclean."""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from nmclean import __version__
from nmclean.config import load_settings
from nmclean.display import console, show_scan_results, show_scanning_progress
from nmclean.events import EventChannel
from nmclean.log import init_logging
from nmclean.models import Settings
from nmclean.scanner import start_scanner
from nmclean.session import Session, consume
from nmclean.sizing import size_calculator

# Create Typer app
app = typer.Typer(
    name="nmclean",
    help="Find node_modules directories and delete them interactively",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"nmclean version {__version__}")
        raise typer.Exit()


def _settings(
    pattern: Optional[list[str]] = None,
    size_method: Optional[str] = None,
    dry_run: bool = False,
    tick_rate: Optional[int] = None,
    workers: Optional[int] = None,
) -> Settings:
    """Settings from the config file with command-line overrides applied."""
    settings = load_settings()
    overrides = {
        "patterns": pattern or None,
        "size_method": size_method,
        "tick_rate_ms": tick_rate,
        "max_workers": workers,
    }
    updates = {key: value for key, value in overrides.items() if value is not None}
    if dry_run:
        updates["dry_run"] = True
    try:
        return Settings.model_validate({**settings.model_dump(), **updates})
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]Error: invalid {field}: {error['msg']}[/red]")
        raise typer.Exit(1)


def _check_root(root: Path) -> Path:
    if not root.is_dir():
        console.print(f"[red]Error: {root} is not a directory[/red]")
        raise typer.Exit(1)
    return root.absolute()


def _check_size_method(settings: Settings) -> None:
    try:
        size_calculator(settings.size_method)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _launch_tui(root: Path, settings: Settings) -> None:
    root = _check_root(root)
    _check_size_method(settings)

    from nmclean.tui import run_tui

    run_tui(root, settings=settings)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """nmclean - find and delete node_modules directories."""
    init_logging(load_settings().log_dir)

    # If no command specified, launch the TUI on the current directory
    if ctx.invoked_subcommand is None:
        _launch_tui(Path("."), _settings())


@app.command()
def tui(
    root: Path = typer.Argument(Path("."), help="Directory to scan"),
    pattern: Optional[list[str]] = typer.Option(
        None, "--pattern", "-p", help="Directory name to look for (repeatable)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate deletion without removing anything"),
    size_method: Optional[str] = typer.Option(
        None, "--size-method", help="How to measure directories: walk or du"
    ),
    tick_rate: Optional[int] = typer.Option(None, "--tick-rate", help="UI tick interval in milliseconds"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Concurrent deletion workers"),
) -> None:
    """Scan ROOT and pick directories to delete (default)."""
    _launch_tui(root, _settings(pattern, size_method, dry_run, tick_rate, workers))


@app.command()
def scan(
    root: Path = typer.Argument(Path("."), help="Directory to scan"),
    pattern: Optional[list[str]] = typer.Option(
        None, "--pattern", "-p", help="Directory name to look for (repeatable)"
    ),
    size_method: Optional[str] = typer.Option(
        None, "--size-method", help="How to measure directories: walk or du"
    ),
) -> None:
    """List matching directories under ROOT without deleting anything."""
    root = _check_root(root)
    settings = _settings(pattern, size_method)
    _check_size_method(settings)

    console.print(f"[bold blue]Scanning {root}...[/bold blue]\n")

    channel = EventChannel()
    session = Session(root)

    with show_scanning_progress() as progress:
        task = progress.add_task("Scanning...", total=None)

        def after(s: Session) -> None:
            progress.update(task, completed=s.scan_visited)
            if s.scan_finished:
                s.quit()

        start_scanner(
            channel,
            root,
            patterns=settings.patterns,
            size_of=size_calculator(settings.size_method),
            progress_every=settings.progress_every,
            skip_directories=settings.skip_directories,
        )
        consume(channel, session, after=after)

    channel.close()
    console.print()
    show_scan_results(session)


if __name__ == "__main__":
    app()
