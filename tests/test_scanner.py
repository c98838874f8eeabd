"""Tests for the directory scanner."""

import os
import queue
from pathlib import Path
from unittest.mock import patch

import pytest

from nmclean.events import (
    EntryFound,
    EventChannel,
    ScanFinished,
    ScanProgress,
    ScanStarted,
)
from nmclean.scanner import iter_scan, start_scanner


def fake_size(path: Path) -> int:
    return 42


def found_paths(events) -> list[Path]:
    return [e.path for e in events if isinstance(e, EntryFound)]


class TestIterScan:
    def test_started_first_finished_last(self, tmp_path):
        (tmp_path / "project" / "node_modules").mkdir(parents=True)

        events = list(iter_scan(tmp_path, size_of=fake_size))
        assert isinstance(events[0], ScanStarted)
        assert isinstance(events[-1], ScanFinished)
        assert sum(isinstance(e, ScanStarted) for e in events) == 1
        assert sum(isinstance(e, ScanFinished) for e in events) == 1

    def test_finds_matching_directory(self, tmp_path):
        node_modules = tmp_path / "project" / "node_modules"
        node_modules.mkdir(parents=True)
        (node_modules / "package.json").write_text("{}")

        events = list(iter_scan(tmp_path, size_of=fake_size))
        assert found_paths(events) == [node_modules]
        assert events[-1].found == 1

    def test_reports_size(self, tmp_path):
        (tmp_path / "project" / "node_modules").mkdir(parents=True)

        events = list(iter_scan(tmp_path, size_of=lambda p: 1234))
        found = [e for e in events if isinstance(e, EntryFound)]
        assert found[0].size == 1234

    def test_finds_in_traversal_order(self, tmp_path):
        for project in ["project3", "project1", "project2"]:
            (tmp_path / project / "node_modules").mkdir(parents=True)

        paths = found_paths(iter_scan(tmp_path, size_of=fake_size))
        assert paths == [tmp_path / p / "node_modules" for p in ["project1", "project2", "project3"]]

    def test_skips_nested_node_modules(self, tmp_path):
        """Only the outer directory is reported."""
        outer = tmp_path / "a" / "node_modules"
        inner = outer / "x" / "node_modules"
        inner.mkdir(parents=True)

        assert found_paths(iter_scan(tmp_path, size_of=fake_size)) == [outer]

    def test_sibling_with_common_prefix_is_not_nested(self, tmp_path):
        first = tmp_path / "a" / "node_modules"
        second = tmp_path / "a" / "node_modules2" / "node_modules"
        first.mkdir(parents=True)
        second.mkdir(parents=True)

        assert found_paths(iter_scan(tmp_path, size_of=fake_size)) == [first, second]

    def test_size_failure_reports_zero(self, tmp_path):
        (tmp_path / "project" / "node_modules").mkdir(parents=True)

        def broken_size(path):
            raise OSError("du not found")

        events = list(iter_scan(tmp_path, size_of=broken_size))
        found = [e for e in events if isinstance(e, EntryFound)]
        assert len(found) == 1
        assert found[0].size == 0
        assert isinstance(events[-1], ScanFinished)

    def test_does_not_follow_symlinks(self, tmp_path):
        real = tmp_path / "real"
        (real / "node_modules").mkdir(parents=True)
        os.symlink(real, tmp_path / "zlink")

        assert found_paths(iter_scan(tmp_path, size_of=fake_size)) == [real / "node_modules"]

    def test_symlinked_match_is_not_reported(self, tmp_path):
        real = tmp_path / "real_modules"
        real.mkdir()
        project = tmp_path / "project"
        project.mkdir()
        os.symlink(real, project / "node_modules")

        assert found_paths(iter_scan(tmp_path, size_of=fake_size)) == []

    def test_root_itself_is_not_reported(self, tmp_path):
        root = tmp_path / "node_modules"
        (root / "pkg").mkdir(parents=True)

        assert found_paths(iter_scan(root, size_of=fake_size)) == []

    def test_skips_vcs_directories(self, tmp_path):
        (tmp_path / ".git" / "node_modules").mkdir(parents=True)

        assert found_paths(iter_scan(tmp_path, size_of=fake_size)) == []

    def test_multiple_patterns(self, tmp_path):
        (tmp_path / "js" / "node_modules").mkdir(parents=True)
        (tmp_path / "py" / ".venv").mkdir(parents=True)

        paths = found_paths(
            iter_scan(tmp_path, patterns=["node_modules", ".venv"], size_of=fake_size)
        )
        assert paths == [tmp_path / "js" / "node_modules", tmp_path / "py" / ".venv"]

    def test_ignores_files_with_matching_name(self, tmp_path):
        (tmp_path / "node_modules").write_text("not a directory")

        assert found_paths(iter_scan(tmp_path, size_of=fake_size)) == []

    def test_progress_is_throttled(self, tmp_path):
        for name in "abcde":
            (tmp_path / f"{name}.txt").write_text(name)

        events = list(iter_scan(tmp_path, size_of=fake_size, progress_every=2))
        progress = [e.visited for e in events if isinstance(e, ScanProgress)]
        assert progress == [0, 2, 4]
        assert events[-1].visited == 5

    def test_handles_permission_error(self, tmp_path):
        (tmp_path / "project" / "node_modules").mkdir(parents=True)

        with patch("os.scandir", side_effect=PermissionError("Access denied")):
            events = list(iter_scan(tmp_path, size_of=fake_size))

        assert isinstance(events[0], ScanStarted)
        assert events[-1] == ScanFinished(visited=0, found=0)


class TestStartScanner:
    def test_sends_events_to_channel(self, tmp_path):
        node_modules = tmp_path / "project" / "node_modules"
        node_modules.mkdir(parents=True)

        channel = EventChannel()
        thread = start_scanner(channel, tmp_path, size_of=fake_size)

        events = []
        while not events or not isinstance(events[-1], ScanFinished):
            events.append(channel.recv(timeout=5))
        thread.join(timeout=5)

        assert isinstance(events[0], ScanStarted)
        assert found_paths(events) == [node_modules]
        assert not thread.is_alive()

    def test_stops_when_channel_closed(self, tmp_path):
        channel = EventChannel()
        channel.close()

        thread = start_scanner(channel, tmp_path, size_of=fake_size)
        thread.join(timeout=5)
        assert not thread.is_alive()

    def test_scanner_error_still_finishes(self, tmp_path):
        (tmp_path / "project" / "node_modules").mkdir(parents=True)

        def broken_size(path: Path) -> int:
            raise RuntimeError("boom")

        channel = EventChannel()
        thread = start_scanner(channel, tmp_path, size_of=broken_size)
        thread.join(timeout=5)

        events = []
        while True:
            try:
                events.append(channel.recv(timeout=0.01))
            except queue.Empty:
                break
        assert isinstance(events[0], ScanStarted)
        assert isinstance(events[-1], ScanFinished)
        assert not thread.is_alive()


@pytest.fixture
def deep_tree(tmp_path):
    """A chain of nested directories deeper than the recursion limit."""
    levels = []
    current = tmp_path
    for _ in range(1100):
        current = current / "d"
        current.mkdir()
        levels.append(current)
    node_modules = current / "node_modules"
    node_modules.mkdir()

    yield node_modules

    node_modules.rmdir()
    for level in reversed(levels):
        level.rmdir()


class TestDeepTrees:
    def test_finds_match_at_depth(self, tmp_path, deep_tree):
        events = list(iter_scan(tmp_path, size_of=fake_size))

        assert found_paths(events) == [deep_tree]
        assert events[-1] == ScanFinished(visited=1101, found=1)
