"""Directory size calculation for nmclean."""

import os
import subprocess
import sys
from pathlib import Path
from typing import Callable

SizeFunction = Callable[[Path], int]


def get_directory_size(path: Path) -> int:
    """
    Sum the sizes of all regular files below ``path``.

    Uses os.scandir and never follows symlinks. Unreadable entries are
    skipped, so the result is a lower bound when permissions are missing.

    Args:
        path: Directory to measure

    Returns:
        Total size in bytes (0 if the path does not exist)
    """
    total_size = 0
    stack = [path]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total_size += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(Path(entry.path))
                    except (PermissionError, OSError):
                        continue
        except (PermissionError, OSError):
            continue

    return total_size


def get_directory_size_du(path: Path) -> int:
    """
    Ask ``du`` for the disk usage of ``path``.

    Returns:
        Size in bytes

    Raises:
        OSError: du is not installed
        subprocess.SubprocessError: du failed or timed out
        ValueError: du output could not be parsed
    """
    result = subprocess.run(
        ["du", "-sk", str(path)],
        capture_output=True,
        text=True,
        timeout=300,
        check=True,
    )
    fields = result.stdout.split()
    if not fields:
        raise ValueError(f"No output from du for {path}")
    return int(fields[0]) * 1024


SIZE_METHODS: dict[str, SizeFunction] = {
    "walk": get_directory_size,
    "du": get_directory_size_du,
}


def size_calculator(method: str = "walk") -> SizeFunction:
    """Return the size function for ``method`` ('walk' or 'du')."""
    if method not in SIZE_METHODS:
        raise ValueError(f"Unknown size method: {method} (choose from {', '.join(SIZE_METHODS)})")
    if method == "du" and sys.platform == "win32":
        raise ValueError("The 'du' size method is not available on Windows")
    return SIZE_METHODS[method]
