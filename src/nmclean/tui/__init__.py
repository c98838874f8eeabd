"""Textual user interface for nmclean."""

from nmclean.tui.app import NmcleanApp, run_tui

__all__ = ["NmcleanApp", "run_tui"]
