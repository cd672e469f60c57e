"""Unit tests for decoration text."""

from pathlib import Path

import pytest

from folder_count.core.decorations import Decoration, decorate
from folder_count.types.models import DirectoryResult, FileResult, SkippedDirectoryResult

PATH = Path("/workspace/item")


@pytest.mark.unit
class TestDecorate:
    """Test decoration for each result variant."""

    def test_file(self) -> None:
        assert decorate(FileResult(path=PATH, size_bytes=1536)) == Decoration(
            badge=None,
            label=" 1.5 KB",
            tooltip="Size: 1.5 KB",
        )

    def test_empty_file(self) -> None:
        assert decorate(FileResult(path=PATH, size_bytes=0)).label == " 0 B"

    def test_directory(self) -> None:
        result = DirectoryResult(path=PATH, direct_file_count=3, direct_folder_count=1, total_size_bytes=1048576)

        assert decorate(result) == Decoration(
            badge="4",
            label=" (1 MB)",
            tooltip="Contains: 3 files, 1 folder\nTotal Size: 1 MB",
        )

    def test_directory_without_direct_children_shows_size_only(self) -> None:
        result = DirectoryResult(path=PATH, direct_file_count=0, direct_folder_count=0, total_size_bytes=2048)

        decoration = decorate(result)

        assert decoration.badge == "0"
        assert decoration.tooltip == "Total Size: 2 KB"

    def test_skipped_directory(self) -> None:
        result = SkippedDirectoryResult(path=PATH, direct_file_count=1, direct_folder_count=2)

        assert decorate(result) == Decoration(
            badge="3",
            label=" (3)",
            tooltip="Contains: 1 file, 2 folders (Size calculation skipped)",
        )

    def test_skipped_directory_without_counts(self) -> None:
        result = SkippedDirectoryResult(path=PATH, direct_file_count=0, direct_folder_count=0)

        decoration = decorate(result)

        assert decoration.label == ""
        assert decoration.tooltip == "Size calculation skipped"
