"""Data models for nmclean."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


class Lifecycle(str, Enum):
    """Deletion lifecycle of a discovered directory."""

    IDLE = "idle"  # Discovered, may be toggled and deleted
    PENDING = "pending"  # Delete scheduled or in flight
    DONE = "done"  # Deleted, about to leave the live set
    FAILED = "failed"  # Delete attempted and did not succeed


class GroupSelection(str, Enum):
    """Group-wide selection override. ``None`` on the model means per-item."""

    ALL_ON = "all_on"
    ALL_OFF = "all_off"


class DirectoryEntry(BaseModel):
    """One discovered directory, identified by its path."""

    path: Path = Field(..., description="Absolute path of the directory")
    size_bytes: int = Field(0, description="Cumulative size computed at discovery")
    is_on: bool = Field(False, description="Individual selection flag")
    lifecycle: Lifecycle = Field(Lifecycle.IDLE, description="Deletion lifecycle")
    error: Optional[str] = Field(None, description="Failure reason when FAILED")

    @property
    def can_toggle(self) -> bool:
        """Only idle entries accept selection changes."""
        return self.lifecycle == Lifecycle.IDLE

    @property
    def size_human(self) -> str:
        """Human-readable size string (decimal units)."""
        return format_size(self.size_bytes)

    def toggle(self) -> bool:
        """Flip the selection flag. Returns False if the entry is not idle."""
        if not self.can_toggle:
            return False
        self.is_on = not self.is_on
        return True

    def set_is_on(self, is_on: bool) -> bool:
        """Set the selection flag. Returns False if the entry is not idle."""
        if not self.can_toggle:
            return False
        self.is_on = is_on
        return True


class ItemCounter(BaseModel):
    """Running (count, bytes) aggregate that never goes negative."""

    count: int = 0
    total_size: int = 0

    def add(self, size: int) -> None:
        self.count += 1
        self.total_size += size

    def remove(self, size: int) -> bool:
        """Remove one item of ``size``; rejected if it would underflow."""
        if self.count < 1 or self.total_size < size:
            return False
        self.count -= 1
        self.total_size -= size
        return True


class DeletionLog(BaseModel):
    """The three deletion aggregates shown to the user."""

    current: ItemCounter = Field(default_factory=ItemCounter)
    history: ItemCounter = Field(default_factory=ItemCounter)
    failed: ItemCounter = Field(default_factory=ItemCounter)

    def started(self, size: int) -> None:
        self.current.add(size)

    def finished(self, size: int) -> bool:
        if self.current.remove(size):
            self.history.add(size)
            return True
        return False

    def failed_with(self, size: int) -> bool:
        if self.current.remove(size):
            self.failed.add(size)
            return True
        return False


class Settings(BaseModel):
    """User configuration, loaded from ~/.nmclean/config.json."""

    patterns: list[str] = Field(
        default_factory=lambda: ["node_modules"],
        description="Directory names to look for",
    )
    skip_directories: list[str] = Field(
        default_factory=lambda: [".git", ".hg", ".svn"],
        description="Directory names never descended into",
    )
    tick_rate_ms: int = Field(250, gt=0, description="UI tick interval in milliseconds")
    progress_every: int = Field(100, gt=0, description="Emit a progress event every N entries")
    size_method: str = Field("walk", description="'walk' (scandir) or 'du'")
    max_workers: int = Field(8, gt=0, description="Concurrent deletion workers")
    dry_run: bool = Field(False, description="Report deletions without removing anything")
    protected_paths: list[str] = Field(
        default_factory=list,
        description="Paths (supports ~) that are never deleted",
    )
    log_dir: str = Field("~/.nmclean/logs", description="Directory for log files")
