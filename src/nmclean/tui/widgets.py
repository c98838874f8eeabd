"""Custom widgets for the nmclean TUI."""

from pathlib import Path

from rich.markup import escape
from textual.widgets import DataTable, Static

from nmclean.display import (
    filter_line,
    relative_path,
    scan_status,
    status_markup,
    summary_line,
)
from nmclean.models import DirectoryEntry, Lifecycle
from nmclean.session import Session

COLUMNS = (("", "status"), ("Size", "size"), ("Path", "path"), ("Status", "note"))


class StatusPanel(Static):
    """Scan progress, selection totals and the filter prompt."""

    def __init__(self, session: Session, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session = session

    def render(self) -> str:
        lines = [scan_status(self.session), summary_line(self.session)]
        search = filter_line(self.session)
        if search:
            lines.append(search)
        return "\n".join(lines)


class EntryTable(DataTable):
    """
    The visible entries. Never focused: keys are handled by the app.

    Rows are keyed by path. Single-entry events touch only that entry's row;
    :meth:`sync` diffs the whole table against the visible entries and only
    rebuilds when rows have to appear out of order (a widened filter).
    """

    can_focus = False

    def __init__(self, session: Session, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session = session
        # Row key -> rendered cells, in row order
        self._cells: dict[str, tuple[str, ...]] = {}

    def on_mount(self) -> None:
        self.cursor_type = "row"
        for label, key in COLUMNS:
            self.add_column(label, key=key)

    def _render_cells(self, entry: DirectoryEntry) -> tuple[str, ...]:
        note = ""
        if entry.lifecycle == Lifecycle.PENDING:
            note = "[yellow]deleting[/yellow]"
        elif entry.lifecycle == Lifecycle.FAILED:
            note = f"[red]{escape(entry.error or 'failed')}[/red]"
        return (
            status_markup(self.session, entry),
            entry.size_human,
            escape(relative_path(self.session, entry)),
            note,
        )

    def _put_row(self, key: str, entry: DirectoryEntry) -> None:
        cells = self._render_cells(entry)
        old = self._cells.get(key)
        if old is None:
            self.add_row(*cells, key=key)
        else:
            for (_, column), before, after in zip(COLUMNS, old, cells):
                if before != after:
                    self.update_cell(key, column, after)
        self._cells[key] = cells

    def _drop_row(self, key: str) -> None:
        self.remove_row(key)
        del self._cells[key]

    def _sync_cursor(self) -> None:
        cursor = self.session.list.cursor
        self.show_cursor = cursor is not None
        if cursor is not None:
            self.move_cursor(row=cursor)

    def update_entry(self, path: Path) -> None:
        """Add, redraw or drop the row of a single entry."""
        key = str(path)
        entry = self.session.list.get(path)
        if entry is None or not self.session.list.matches(entry):
            if key in self._cells:
                self._drop_row(key)
                self._sync_cursor()
            return
        # A new entry is always last in discovery order
        self._put_row(key, entry)

    def sync(self) -> None:
        """Bring every row up to date with the session's visible entries."""
        visible = {str(entry.path): entry for entry in self.session.list.visible_items()}

        for key in [key for key in self._cells if key not in visible]:
            self._drop_row(key)

        kept = list(self._cells)
        if kept != list(visible)[: len(kept)]:
            self.clear()
            self._cells = {}

        for key, entry in visible.items():
            self._put_row(key, entry)

        self._sync_cursor()
