"""Deletion of discovered directories with safety checks."""

import shutil
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

from loguru import logger

from nmclean.config import is_protected
from nmclean.events import (
    ChannelClosed,
    Deleted,
    DeleteFailed,
    Deleting,
    Event,
    EventChannel,
)
from nmclean.models import DirectoryEntry


def is_path_safe(path: Path) -> bool:
    """
    Check if a path is safe to delete.

    The filesystem root and the home directory are never deleted.

    Args:
        path: Path to check

    Returns:
        True if safe to delete, False otherwise
    """
    path = Path(path).absolute()
    if path == Path(path.anchor):
        return False
    if path == Path.home():
        return False
    return True


def remove_directory(
    path: Path,
    dry_run: bool = False,
    protected: Iterable[str] = (),
) -> str | None:
    """
    Recursively remove a directory tree.

    Removal is not transactional: on failure whatever was already removed
    stays removed.

    Args:
        path: Directory to remove
        dry_run: If True, run the checks but delete nothing
        protected: Paths (supports ~) that must never be deleted

    Returns:
        None on success, otherwise an error message
    """
    if not is_path_safe(path):
        return f"Blocked path: {path}"
    if is_protected(path, protected):
        return f"Protected path: {path}"
    if path.is_symlink():
        return f"Refusing to delete symlink: {path}"
    if not path.exists():
        # Already gone
        return None
    if not path.is_dir():
        return f"Not a directory: {path}"

    if dry_run:
        return None

    try:
        shutil.rmtree(path)
    except PermissionError as e:
        return f"Permission denied: {e}"
    except OSError as e:
        return f"OS error: {e}"

    return None


def _report(channel: EventChannel, event: Event) -> None:
    try:
        channel.send(event)
    except ChannelClosed:
        logger.debug("Not reported, channel closed: {!r}", event)


def delete_entry(
    path: Path,
    size: int,
    channel: EventChannel,
    dry_run: bool = False,
    protected: Iterable[str] = (),
) -> bool:
    """
    Delete one directory, reporting progress on ``channel``.

    Sends Deleting first, then exactly one of Deleted or DeleteFailed. A
    closed channel only stops the reporting: once committed, a deletion
    always runs.

    Returns:
        True if the directory was deleted (or would be, in dry-run mode)
    """
    _report(channel, Deleting(path=path, size=size))

    error = remove_directory(path, dry_run=dry_run, protected=protected)

    if error:
        logger.warning("Failed to delete {}: {}", path, error)
        _report(channel, DeleteFailed(path=path, size=size, error=error))
        return False

    logger.info("{} {} ({} bytes)", "Would delete" if dry_run else "Deleted", path, size)
    _report(channel, Deleted(path=path, size=size))
    return True


class DeletionPipeline:
    """
    Runs deletions concurrently on a bounded pool of worker threads.

    Each entry is handled by a single task, so its own Deleting event always
    precedes its terminal event. No ordering holds between entries.
    """

    def __init__(
        self,
        channel: EventChannel,
        max_workers: int = 8,
        dry_run: bool = False,
        protected: Iterable[str] = (),
    ):
        self.channel = channel
        self.dry_run = dry_run
        self.protected = tuple(protected)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="nmclean-delete",
        )

    def submit(self, entries: Iterable[DirectoryEntry]) -> int:
        """
        Schedule ``entries`` for deletion.

        Returns:
            Number of entries scheduled (0 for an empty request, which is a no-op)
        """
        entries = list(entries)
        for entry in entries:
            self._executor.submit(
                delete_entry,
                entry.path,
                entry.size_bytes,
                self.channel,
                dry_run=self.dry_run,
                protected=self.protected,
            )
        if entries:
            logger.info("Scheduled {} directories for deletion", len(entries))
        return len(entries)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
