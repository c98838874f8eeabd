"""Shared fixtures."""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Keep tests away from ~/.nmclean."""
    config_file = tmp_path / "nmclean-config" / "config.json"
    with patch("nmclean.config.CONFIG_FILE", config_file), patch("nmclean.cli.init_logging"):
        yield config_file
