"""Configuration file and path protection for nmclean."""

import json
import os
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from nmclean.models import Settings


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


CONFIG_DIR = expand_path("~/.nmclean")
CONFIG_FILE = CONFIG_DIR / "config.json"


def load_settings(config_file: Path | None = None) -> Settings:
    """
    Load settings from disk.

    Missing, unreadable or invalid configuration falls back to defaults.
    Unknown keys are ignored.
    """
    config_file = config_file or CONFIG_FILE
    if not config_file.exists():
        return Settings()

    try:
        with open(config_file) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return Settings()

    if not isinstance(data, dict):
        return Settings()

    try:
        return Settings.model_validate(data)
    except ValidationError:
        return Settings()


def save_settings(settings: Settings, config_file: Path | None = None) -> bool:
    """Save settings to disk."""
    config_file = config_file or CONFIG_FILE
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w") as f:
            json.dump(settings.model_dump(), f, indent=2)
        return True
    except OSError:
        return False


def is_protected(path: Path, protected_paths: Iterable[str]) -> bool:
    """
    Check if a path is protected from deletion.

    Args:
        path: Path to check
        protected_paths: Protected locations (can contain ~)

    Returns:
        True if the path is a protected path or lies inside one
    """
    path = Path(path).absolute()
    for protected in protected_paths:
        protected_path = expand_path(protected).absolute()
        if path == protected_path or path.is_relative_to(protected_path):
            return True
    return False
