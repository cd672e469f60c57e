"""Folder Count - live size and item counts for directory trees.

This package computes per-entry size and count summaries for a directory
tree, formats them for display, and keeps them current as the filesystem
changes.
"""

from folder_count.__main__ import main

__all__ = ["main"]
