"""Background discovery of matching directories.

Walks the tree below a root depth-first and reports every directory whose
name matches one of the configured patterns. Matched directories are not
descended into: a node_modules inside another node_modules is removed with
its parent, so it is never reported on its own.
"""

import os
import subprocess
import threading
from pathlib import Path
from typing import Generator, Iterable

from loguru import logger

from nmclean.events import (
    ChannelClosed,
    EntryFound,
    Event,
    EventChannel,
    ScanFinished,
    ScanProgress,
    ScanStarted,
)
from nmclean.sizing import SizeFunction, get_directory_size

DEFAULT_PATTERNS = ("node_modules",)

# Never descended into (performance); still counted as visited
SKIP_DIRECTORIES = frozenset({".git", ".hg", ".svn"})


def _sorted_entries(directory: Path) -> list[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except (PermissionError, OSError):
        # Skip directories we can't read
        return []


def _walk(
    directory: Path,
    names: frozenset[str],
    skip: frozenset[str],
) -> Generator[tuple[Path, bool], None, None]:
    """
    Yield (path, is_dir) below ``directory`` without following symlinks.

    Pre-order, siblings in name order. Uses an explicit stack so tree depth
    is not limited by the interpreter's recursion limit.
    """
    stack = [iter(_sorted_entries(directory))]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue

        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False

        entry_path = Path(entry.path)
        yield entry_path, is_dir

        if is_dir and entry.name not in names and entry.name not in skip:
            stack.append(iter(_sorted_entries(entry_path)))


def _safe_size(size_of: SizeFunction, path: Path) -> int:
    try:
        return size_of(path)
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        logger.warning("Could not compute size of {}: {}", path, e)
        return 0


def iter_scan(
    root: Path,
    patterns: Iterable[str] = DEFAULT_PATTERNS,
    size_of: SizeFunction = get_directory_size,
    progress_every: int = 100,
    skip_directories: Iterable[str] = SKIP_DIRECTORIES,
) -> Generator[Event, None, None]:
    """
    Scan ``root`` and yield scanner events.

    Always yields exactly one ScanStarted first and one ScanFinished last.
    ScanProgress is yielded every ``progress_every`` visited entries, and one
    EntryFound per matching directory, in traversal order.

    Args:
        root: Directory to start from (the root itself is never reported)
        patterns: Directory names to match
        size_of: Size calculator; failures are reported as size 0
        progress_every: Progress throttle
        skip_directories: Directory names that are never descended into

    Yields:
        Scanner events
    """
    root = Path(root).absolute()
    names = frozenset(patterns)
    skip = frozenset(skip_directories) - names
    visited = 0
    found = 0
    last_found: Path | None = None

    yield ScanStarted()

    for entry_path, is_dir in _walk(root, names, skip):
        if visited % progress_every == 0:
            yield ScanProgress(visited=visited)
        visited += 1

        if not is_dir or entry_path.name not in names:
            continue

        # Already covered by the previous match
        if last_found is not None and entry_path.is_relative_to(last_found):
            continue

        last_found = entry_path
        found += 1
        yield EntryFound(path=entry_path, size=_safe_size(size_of, entry_path))

    yield ScanFinished(visited=visited, found=found)


def start_scanner(channel: EventChannel, root: Path, **scan_options) -> threading.Thread:
    """
    Run :func:`iter_scan` on a daemon thread, sending every event to ``channel``.

    Keyword arguments are passed through to iter_scan. The thread ends
    early if the channel is closed.
    """

    def _run() -> None:
        logger.info("Scanning {}", root)
        visited = 0
        found = 0
        try:
            for event in iter_scan(root, **scan_options):
                channel.send(event)
                if isinstance(event, ScanProgress):
                    visited = event.visited
                elif isinstance(event, EntryFound):
                    found += 1
                elif isinstance(event, ScanFinished):
                    logger.info(
                        "Scan finished: {} entries visited, {} found",
                        event.visited,
                        event.found,
                    )
        except ChannelClosed:
            logger.debug("Scanner stopped: channel closed")
        except Exception:
            logger.exception("Scan of {} aborted", root)
            # Consumers wait for Finished
            try:
                channel.send(ScanFinished(visited=visited, found=found))
            except ChannelClosed:
                logger.debug("Scanner stopped: channel closed")

    thread = threading.Thread(target=_run, name="nmclean-scanner", daemon=True)
    thread.start()
    return thread
