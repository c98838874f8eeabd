"""Main TUI application for nmclean."""

import threading
from pathlib import Path

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Header, Static

from nmclean.cleaner import DeletionPipeline
from nmclean.clock import Clock
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
)
from nmclean.models import Settings
from nmclean.scanner import start_scanner
from nmclean.session import Session
from nmclean.sizing import size_calculator
from nmclean.tui.widgets import EntryTable, StatusPanel

HELP_TEXT = (
    "[dim]space[/dim] toggle  [dim]←/→[/dim] set off/on  [dim]a/tab[/dim] all  "
    "[dim]/[/dim] filter  [dim]enter[/dim] delete  [dim]q[/dim] quit"
)

# Keys bound ahead of textual's own bindings, with the character each one types
KEY_CHARACTERS = {
    "q": "q",
    "a": "a",
    "A": "A",
    "j": "j",
    "k": "k",
    "space": " ",
    "slash": "/",
    "escape": None,
    "enter": None,
    "tab": None,
    "backspace": None,
    "up": None,
    "down": None,
    "left": None,
    "right": None,
    "ctrl+c": None,
}


class NmcleanApp(App):
    """Interactive node_modules cleanup."""

    TITLE = "nmclean"
    SUB_TITLE = "node_modules cleaner"

    CSS_PATH = "styles.tcss"

    BINDINGS = [
        Binding(key, f"press('{key}')", key, show=False, priority=True)
        for key in KEY_CHARACTERS
    ]

    def __init__(self, root: Path, settings: Settings | None = None):
        super().__init__()
        self.settings = settings or Settings()
        self.root = Path(root)
        self.channel = EventChannel()
        self.pipeline = DeletionPipeline(
            self.channel,
            max_workers=self.settings.max_workers,
            dry_run=self.settings.dry_run,
            protected=self.settings.protected_paths,
        )
        self.session = Session(self.root, on_delete=self.pipeline.submit)
        self.clock = Clock(self.channel, tick_rate=self.settings.tick_rate_ms / 1000)
        if self.settings.dry_run:
            self.sub_title = "node_modules cleaner (dry run)"

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-container"):
            yield StatusPanel(self.session, id="status")
            yield EntryTable(self.session, id="entries")
            yield Static(HELP_TEXT, id="help")
        yield Footer()

    def on_mount(self) -> None:
        """Start the workers once the widgets exist."""
        start_scanner(
            self.channel,
            self.root,
            patterns=self.settings.patterns,
            size_of=size_calculator(self.settings.size_method),
            progress_every=self.settings.progress_every,
            skip_directories=self.settings.skip_directories,
        )
        self.clock.start()
        threading.Thread(target=self._pump, name="nmclean-pump", daemon=True).start()
        self.query_one(EntryTable).sync()

    def on_unmount(self) -> None:
        self.clock.stop()
        self.channel.close()
        # Committed deletions still run to completion, unreported
        self.pipeline.shutdown(wait=False)

    def _pump(self) -> None:
        """Hand each channel event to the UI thread, in arrival order."""
        while True:
            try:
                event = self.channel.recv()
            except ChannelClosed:
                return
            try:
                self.call_from_thread(self.apply_event, event)
            except RuntimeError:
                # App already shut down
                return

    def apply_event(self, event: Event) -> None:
        """Apply an event to the session and redraw."""
        if not self.session.running:
            return

        changed = self.session.handle(event)

        if not self.session.running:
            self.exit()
            return

        self.query_one(StatusPanel).refresh()
        if isinstance(event, (EntryFound, Deleting, Deleted, DeleteFailed)):
            if changed:
                self.query_one(EntryTable).update_entry(event.path)
        elif isinstance(event, (KeyPressed, Resize)):
            self.query_one(EntryTable).sync()

    def action_press(self, key: str) -> None:
        self.apply_event(KeyPressed(key=key, character=KEY_CHARACTERS.get(key)))

    def on_key(self, event: events.Key) -> None:
        """Keys without a binding: filter text while searching."""
        event.stop()
        self.apply_event(KeyPressed(key=event.key, character=event.character))

    def on_resize(self, event: events.Resize) -> None:
        # Startup resizes can arrive before the widgets exist
        if self.query(EntryTable):
            self.apply_event(Resize(width=event.size.width, height=event.size.height))


def run_tui(root: Path, settings: Settings | None = None) -> None:
    """Run the interactive TUI.

    Args:
        root: Directory to scan
        settings: Effective settings (defaults if omitted)
    """
    app = NmcleanApp(root, settings=settings)
    app.run()
