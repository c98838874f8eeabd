"""The UI-thread state machine.

A :class:`Session` owns the selection model and the deletion ledger. It is
only ever touched by the thread consuming the event channel; worker threads
reach it solely through events. Inconsistent or late events are ignored
rather than raised, so the UI loop never crashes on them.
"""

from pathlib import Path
from typing import Callable

from loguru import logger

from nmclean import keys
from nmclean.events import (
    ChannelClosed,
    Deleted,
    DeleteFailed,
    Deleting,
    EntryFound,
    Event,
    EventChannel,
    KeyPressed,
    Resize,
    ScanFinished,
    ScanProgress,
    ScanStarted,
    Tick,
)
from nmclean.ledger import ActionLedger
from nmclean.models import DirectoryEntry, ItemCounter, Lifecycle
from nmclean.selection import SelectionModel

DeleteCallback = Callable[[list[DirectoryEntry]], object]


class Session:
    """Interactive cleanup state: discovered entries, selection and deletions."""

    def __init__(
        self,
        root: Path | None = None,
        on_delete: DeleteCallback | None = None,
        entries: list[DirectoryEntry] | None = None,
    ):
        self.root = Path(root) if root is not None else Path.cwd()
        self.on_delete = on_delete
        self.running = True
        self.list = SelectionModel(entries)
        self.ledger = ActionLedger()
        self.scanning = False
        self.scan_finished = False
        self.scan_visited = 0
        self.scan_found = 0
        self.search_mode = False
        self.frame = 0

    # Event reducer

    _HANDLERS = {
        ScanStarted: "_on_scan_started",
        ScanProgress: "_on_scan_progress",
        EntryFound: "_on_entry_found",
        ScanFinished: "_on_scan_finished",
        Deleting: "_on_deleting",
        Deleted: "_on_deleted",
        DeleteFailed: "_on_delete_failed",
        Tick: "_on_tick",
        KeyPressed: "_on_key",
        Resize: "_on_resize",
    }

    def handle(self, event: Event) -> bool:
        """
        Apply one event to the session.

        Returns:
            True if the event changed state, False if it was ignored
        """
        handler = self._HANDLERS.get(type(event))
        if handler is None:
            logger.debug("Ignoring unknown event {!r}", event)
            return False
        return getattr(self, handler)(event)

    def _on_scan_started(self, event: ScanStarted) -> bool:
        self.scanning = True
        self.scan_finished = False
        return True

    def _on_scan_progress(self, event: ScanProgress) -> bool:
        self.scan_visited = event.visited
        return True

    def _on_entry_found(self, event: EntryFound) -> bool:
        # Deleting a listed parent removes this one too
        if any(parent in self.list for parent in event.path.parents):
            logger.debug("Ignoring {}: inside a listed directory", event.path)
            return False
        added = self.list.push(DirectoryEntry(path=event.path, size_bytes=event.size))
        if added:
            self.scan_found += 1
        return added

    def _on_scan_finished(self, event: ScanFinished) -> bool:
        self.scanning = False
        self.scan_finished = True
        self.scan_visited = event.visited
        self.scan_found = event.found
        return True

    def _on_deleting(self, event: Deleting) -> bool:
        entry = self.list.get(event.path)
        if entry is None or entry.lifecycle not in (Lifecycle.IDLE, Lifecycle.PENDING):
            logger.debug("Ignoring Deleting for {}", event.path)
            return False
        if not self.ledger.start(event.path, event.size):
            logger.debug("Ignoring duplicate Deleting for {}", event.path)
            return False
        entry.lifecycle = Lifecycle.PENDING
        return True

    def _on_deleted(self, event: Deleted) -> bool:
        if not self.ledger.finish(event.path):
            logger.debug("Ignoring Deleted for untracked {}", event.path)
            return False
        entry = self.list.get(event.path)
        if entry is not None:
            entry.lifecycle = Lifecycle.DONE
            self.list.remove(event.path)
        return True

    def _on_delete_failed(self, event: DeleteFailed) -> bool:
        if not self.ledger.fail(event.path, event.error):
            logger.debug("Ignoring DeleteFailed for untracked {}", event.path)
            return False
        entry = self.list.get(event.path)
        if entry is not None:
            entry.lifecycle = Lifecycle.FAILED
            entry.error = event.error
        return True

    def _on_tick(self, event: Tick) -> bool:
        self.frame += 1
        return True

    def _on_key(self, event: KeyPressed) -> bool:
        return keys.handle_key(self, event.key, event.character)

    def _on_resize(self, event: Resize) -> bool:
        return False

    # Actions

    def quit(self) -> None:
        self.running = False

    def toggle_selected_item(self) -> bool:
        return self.list.toggle_selected()

    def set_on_and_next(self) -> None:
        self.list.set_selected(True)
        self.list.next()

    def set_off_and_next(self) -> None:
        self.list.set_selected(False)
        self.list.next()

    def next(self) -> None:
        self.list.next()

    def previous(self) -> None:
        self.list.previous()

    def toggle_group_selection(self) -> None:
        self.list.toggle_group_selection()

    def start_search_entry(self) -> None:
        self.search_mode = True

    def end_search_entry(self) -> None:
        self.search_mode = False

    def append_filter_input(self, character: str) -> None:
        self.list.set_filter((self.list.filter_text or "") + character)

    def delete_filter_input(self) -> None:
        """Remove the last filter character; an emptied filter also ends search mode."""
        if not self.list.filter_text:
            return
        remaining = self.list.filter_text[:-1]
        if remaining:
            self.list.set_filter(remaining)
        else:
            self.list.clear_filter()
            self.search_mode = False

    def commit_delete(self) -> list[DirectoryEntry]:
        """
        Schedule the effective selection for deletion.

        Entries become Pending and are queued in the ledger before they are
        handed to ``on_delete``, so committing again before the workers
        report back cannot schedule the same directory twice.

        Returns:
            The entries handed to the deletion pipeline (possibly empty)
        """
        entries = self.list.items_to_delete()
        if not entries:
            return []

        for entry in entries:
            entry.lifecycle = Lifecycle.PENDING
            self.ledger.queue(entry.path, entry.size_bytes)

        if self.on_delete is not None:
            self.on_delete(entries)
        return entries

    # Views for rendering

    def selected_summary(self) -> ItemCounter:
        """Count and volume of what the next commit would delete."""
        counter = ItemCounter()
        for entry in self.list.items_to_delete():
            counter.add(entry.size_bytes)
        return counter

    def in_flight_summary(self) -> ItemCounter:
        """Queued plus actively deleting."""
        counter = self.ledger.queued_counter
        counter.count += self.ledger.log.current.count
        counter.total_size += self.ledger.log.current.total_size
        return counter


def consume(
    channel: EventChannel,
    session: Session,
    after: Callable[[Session], None] | None = None,
) -> None:
    """
    Run the blocking consumer loop.

    Receives events one at a time and applies them to ``session``, calling
    ``after`` (typically a render pass) after each one. Returns when the
    session quits or the channel is closed.
    """
    while session.running:
        try:
            event = channel.recv()
        except ChannelClosed:
            logger.debug("Consumer stopped: channel closed")
            break
        session.handle(event)
        if after is not None:
            after(session)
