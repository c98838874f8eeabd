"""Tests for display module."""

from pathlib import Path
from unittest.mock import patch

from nmclean.display import (
    filter_line,
    format_size,
    relative_path,
    scan_status,
    show_scan_results,
    status_char,
    status_markup,
    summary_line,
)
from nmclean.events import DeleteFailed, Deleting, EntryFound, ScanFinished, ScanStarted
from nmclean.models import GroupSelection, Lifecycle
from nmclean.session import Session

ROOT = Path("/work")


def make_session() -> Session:
    session = Session(ROOT)
    session.handle(EntryFound(path=ROOT / "a" / "node_modules", size=2_500_000))
    session.handle(EntryFound(path=ROOT / "b" / "node_modules", size=500))
    return session


class TestFormatSize:
    def test_bytes(self):
        assert format_size(500) == "500 B"

    def test_kilobytes(self):
        assert format_size(1500) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(2_500_000) == "2.5 MB"

    def test_gigabytes(self):
        assert format_size(3_000_000_000) == "3.0 GB"

    def test_zero(self):
        assert format_size(0) == "0 B"


class TestStatusChar:
    def test_off(self):
        session = make_session()
        assert status_char(session, session.list.get(ROOT / "a" / "node_modules")) == " "

    def test_on(self):
        session = make_session()
        entry = session.list.get(ROOT / "a" / "node_modules")
        entry.is_on = True
        assert status_char(session, entry) == "•"

    def test_group_all_on(self):
        session = make_session()
        session.list.group_selection = GroupSelection.ALL_ON
        assert status_char(session, session.list.get(ROOT / "b" / "node_modules")) == "•"

    def test_pending(self):
        session = make_session()
        entry = session.list.get(ROOT / "a" / "node_modules")
        entry.lifecycle = Lifecycle.PENDING
        assert status_char(session, entry) == "~"

    def test_failed(self):
        session = make_session()
        entry = session.list.get(ROOT / "a" / "node_modules")
        entry.lifecycle = Lifecycle.FAILED
        assert status_char(session, entry) == "!"

    def test_failed_markup(self):
        session = make_session()
        entry = session.list.get(ROOT / "a" / "node_modules")
        entry.lifecycle = Lifecycle.FAILED
        markup = status_markup(session, entry)
        assert "red" in markup
        assert "[!]" in markup


class TestRelativePath:
    def test_inside_root(self):
        session = make_session()
        entry = session.list.get(ROOT / "a" / "node_modules")
        assert relative_path(session, entry) == str(Path("a") / "node_modules")

    def test_outside_root(self):
        session = Session(Path("/other"))
        session.handle(EntryFound(path=ROOT / "a" / "node_modules", size=1))
        entry = session.list.get(ROOT / "a" / "node_modules")
        assert relative_path(session, entry) == str(ROOT / "a" / "node_modules")


class TestScanStatus:
    def test_waiting(self):
        assert "Waiting" in scan_status(Session(ROOT))

    def test_scanning(self):
        session = Session(ROOT)
        session.handle(ScanStarted())
        assert "Scanning" in scan_status(session)

    def test_finished(self):
        session = Session(ROOT)
        session.handle(ScanFinished(visited=42, found=2))
        status = scan_status(session)
        assert "complete" in status
        assert "42 entries" in status
        assert "2 found" in status


class TestSummaryLine:
    def test_selection(self):
        session = make_session()
        session.list.group_selection = GroupSelection.ALL_ON
        line = summary_line(session)
        assert "2" in line
        assert "2.5 MB" in line

    def test_in_flight_and_failed(self):
        session = make_session()
        path = ROOT / "b" / "node_modules"
        session.handle(Deleting(path=ROOT / "a" / "node_modules", size=2_500_000))
        session.handle(Deleting(path=path, size=500))
        session.handle(DeleteFailed(path=path, size=500, error="busy"))

        line = summary_line(session)
        assert "deleting 1" in line
        assert "1 failed" in line


class TestFilterLine:
    def test_empty(self):
        assert filter_line(Session(ROOT)) == ""

    def test_search_mode(self):
        session = Session(ROOT)
        session.start_search_entry()
        session.append_filter_input("[x]")
        line = filter_line(session)
        assert line.startswith("[bold]/[/bold]")
        assert "\\[x]" in line

    def test_applied_filter(self):
        session = Session(ROOT)
        session.list.set_filter("web")
        assert "filter:" in filter_line(session)


class TestShowScanResults:
    @patch("nmclean.display.console")
    def test_no_results(self, mock_console):
        show_scan_results(Session(ROOT))
        message = mock_console.print.call_args[0][0]
        assert "No matching directories" in message

    @patch("nmclean.display.console")
    def test_with_results(self, mock_console):
        show_scan_results(make_session())
        assert mock_console.print.call_count == 2
