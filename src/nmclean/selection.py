"""Filterable, selectable list of discovered directories.

Entries are kept in discovery order in a single map keyed by path. The
visible sequence is derived from that map and the current text filter each
time it is needed, and the cursor is stored as the path of the selected
entry, so it can never point at an entry that has left the list.
"""

from pathlib import Path
from typing import Iterator

from nmclean.models import DirectoryEntry, GroupSelection, Lifecycle


class SelectionModel:
    """Entries plus cursor, text filter and group selection state."""

    def __init__(self, entries: list[DirectoryEntry] | None = None):
        self._entries: dict[Path, DirectoryEntry] = {}
        self._cursor: Path | None = None
        self.filter_text: str | None = None
        self.group_selection: GroupSelection | None = None

        for entry in entries or []:
            self.push(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._entries

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return iter(self._entries.values())

    def get(self, path: Path) -> DirectoryEntry | None:
        return self._entries.get(Path(path))

    def push(self, entry: DirectoryEntry) -> bool:
        """Append an entry. Returns False if its path is already listed."""
        if entry.path in self._entries:
            return False
        self._entries[entry.path] = entry
        return True

    def remove(self, path: Path) -> DirectoryEntry | None:
        """Drop an entry from the list, clearing the cursor if it pointed there."""
        entry = self._entries.pop(Path(path), None)
        if entry is not None and self._cursor == entry.path:
            self.unselect()
        return entry

    # Filtering

    def matches(self, entry: DirectoryEntry) -> bool:
        if not self.filter_text:
            return True
        return self.filter_text.lower() in str(entry.path).lower()

    def visible_items(self) -> list[DirectoryEntry]:
        """Entries surviving the text filter, in discovery order."""
        return [entry for entry in self._entries.values() if self.matches(entry)]

    def set_filter(self, text: str | None) -> None:
        """Apply a filter; a cursor that is no longer visible is cleared."""
        self.filter_text = text or None
        selected = self.selected()
        if selected is not None and not self.matches(selected):
            self.unselect()

    def clear_filter(self) -> None:
        self.set_filter(None)

    # Cursor

    @property
    def cursor(self) -> int | None:
        """Index of the selected entry within the visible sequence."""
        if self._cursor is None:
            return None
        for index, entry in enumerate(self.visible_items()):
            if entry.path == self._cursor:
                return index
        return None

    def selected(self) -> DirectoryEntry | None:
        if self._cursor is None:
            return None
        return self._entries.get(self._cursor)

    def select(self, index: int | None) -> None:
        visible = self.visible_items()
        if index is None or not 0 <= index < len(visible):
            self.unselect()
        else:
            self._cursor = visible[index].path

    def unselect(self) -> None:
        self._cursor = None

    def next(self) -> None:
        visible = self.visible_items()
        if not visible:
            self.unselect()
            return
        index = self.cursor
        self._cursor = visible[0 if index is None else (index + 1) % len(visible)].path

    def previous(self) -> None:
        visible = self.visible_items()
        if not visible:
            self.unselect()
            return
        index = self.cursor
        self._cursor = visible[-1 if index is None else (index - 1) % len(visible)].path

    # Selection

    def is_effectively_on(self, entry: DirectoryEntry) -> bool:
        """Selection state after applying the group override."""
        if self.group_selection == GroupSelection.ALL_ON:
            return True
        if self.group_selection == GroupSelection.ALL_OFF:
            return False
        return entry.is_on

    def toggle_selected(self) -> bool:
        """Flip the cursor entry. Any individual change ends group mode."""
        entry = self.selected()
        if entry is None or not entry.toggle():
            return False
        self.group_selection = None
        return True

    def set_selected(self, is_on: bool) -> bool:
        entry = self.selected()
        if entry is None or not entry.set_is_on(is_on):
            return False
        self.group_selection = None
        return True

    def toggle_group_selection(self) -> GroupSelection | None:
        """
        Cycle the group override.

        Per-item -> all on -> all off -> all on ... except that leaving
        all-off while some visible entry is individually on drops back to
        per-item mode, so those individual choices show again.
        """
        if self.group_selection is None:
            self.group_selection = GroupSelection.ALL_ON
        elif self.group_selection == GroupSelection.ALL_ON:
            self.group_selection = GroupSelection.ALL_OFF
        elif any(entry.is_on for entry in self.visible_items()):
            self.group_selection = None
        else:
            self.group_selection = GroupSelection.ALL_ON
        return self.group_selection

    def items_to_delete(self) -> list[DirectoryEntry]:
        """Visible, idle entries that are effectively selected."""
        if self.group_selection == GroupSelection.ALL_OFF:
            return []
        return [
            entry
            for entry in self.visible_items()
            if entry.lifecycle == Lifecycle.IDLE and self.is_effectively_on(entry)
        ]
