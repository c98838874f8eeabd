"""Rich terminal display for nmclean."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from nmclean.models import DirectoryEntry, Lifecycle, format_size
from nmclean.session import Session

console = Console()

SPINNER_FRAMES = "|/-\\"


def status_char(session: Session, entry: DirectoryEntry) -> str:
    """Single-character status for an entry row."""
    if entry.lifecycle == Lifecycle.PENDING:
        return "~"
    if entry.lifecycle == Lifecycle.FAILED:
        return "!"
    if entry.lifecycle == Lifecycle.DONE:
        return "✓"
    return "•" if session.list.is_effectively_on(entry) else " "


def status_markup(session: Session, entry: DirectoryEntry) -> str:
    """Styled checkbox for an entry row."""
    char = status_char(session, entry)
    styles = {
        "~": "yellow",
        "!": "red",
        "✓": "green",
        "•": "cyan",
    }
    style = styles.get(char)
    box = escape(f"[{char}]")
    return f"[{style}]{box}[/{style}]" if style else box


def relative_path(session: Session, entry: DirectoryEntry) -> str:
    """Path shown relative to the scan root where possible."""
    try:
        return str(entry.path.relative_to(session.root.absolute()))
    except ValueError:
        return str(entry.path)


def scan_status(session: Session) -> str:
    if session.scanning:
        spinner = SPINNER_FRAMES[session.frame % len(SPINNER_FRAMES)]
        return f"[cyan]{spinner} Scanning...[/cyan] {session.scan_visited} entries"
    if session.scan_finished:
        return (
            f"[green]Scan complete[/green] {session.scan_visited} entries, "
            f"{session.scan_found} found"
        )
    return "[dim]Waiting for scan...[/dim]"


def summary_line(session: Session) -> str:
    """One-line summary of selection and deletion progress."""
    selected = session.selected_summary()
    in_flight = session.in_flight_summary()
    log = session.ledger.log

    parts = [
        f"[bold]{selected.count}[/bold] selected: [cyan]{format_size(selected.total_size)}[/cyan]",
    ]
    if in_flight.count:
        parts.append(
            f"[yellow]deleting {in_flight.count} ({format_size(in_flight.total_size)})[/yellow]"
        )
    if log.history.count:
        parts.append(f"[green]freed {format_size(log.history.total_size)}[/green]")
    if log.failed.count:
        parts.append(f"[red]{log.failed.count} failed[/red]")
    return "  ".join(parts)


def filter_line(session: Session) -> str:
    text = escape(session.list.filter_text or "")
    if session.search_mode:
        return f"[bold]/[/bold]{text}[reverse] [/reverse]"
    if text:
        return f"[dim]filter:[/dim] {text}"
    return ""


def show_scanning_progress() -> Progress:
    """Create spinner for scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed} entries"),
        TimeElapsedColumn(),
        console=console,
    )


def show_scan_results(session: Session) -> None:
    """Display found directories, largest first."""
    entries = sorted(session.list, key=lambda e: e.size_bytes, reverse=True)

    if not entries:
        console.print("[yellow]No matching directories found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Path")

    for entry in entries:
        table.add_row(entry.size_human, escape(relative_path(session, entry)))

    console.print(table)

    total = sum(e.size_bytes for e in entries)
    console.print(
        Panel(
            f"[bold]Directories found:[/bold] {len(entries)}\n"
            f"[bold]Total size:[/bold] {format_size(total)}\n"
            f"[dim]Entries visited: {session.scan_visited}[/dim]",
            title="Summary",
            border_style="blue",
        )
    )
