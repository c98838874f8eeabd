"""nmclean - find and delete node_modules (and similar) directories interactively."""

__version__ = "0.1.0"
