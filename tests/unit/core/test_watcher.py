"""Unit tests for the polling change source."""

import asyncio
from pathlib import Path

import pytest

from folder_count.core.watcher import diff_snapshots, take_snapshot, watch_tree
from folder_count.types.models import EntryKind, StalenessEvent
from tests.fixtures.filesystem import build_tree


@pytest.mark.unit
class TestTakeSnapshot:
    """Test snapshot construction."""

    def test_records_nested_entries(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "root", {"a.txt": 3, "sub": {"b.txt": 5}})

        snapshot = take_snapshot(root)

        assert set(snapshot) == {root / "a.txt", root / "sub", root / "sub" / "b.txt"}
        assert snapshot[root / "a.txt"][:2] == (EntryKind.FILE, 3)
        assert snapshot[root / "sub"][0] is EntryKind.DIRECTORY

    def test_descends_into_excluded_directories(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "root", {".git": {"HEAD": 1}, "node_modules": {"x": {"y.js": 1}}})

        snapshot = take_snapshot(root)

        assert set(snapshot) == {
            root / ".git",
            root / ".git" / "HEAD",
            root / "node_modules",
            root / "node_modules" / "x",
            root / "node_modules" / "x" / "y.js",
        }

    def test_symlinked_directory_not_followed(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "root", {"sub": {"b.txt": 1}})
        (root / "link").symlink_to(root / "sub")

        snapshot = take_snapshot(root)

        assert snapshot[root / "link"][0] is EntryKind.OTHER
        assert root / "link" / "b.txt" not in snapshot

    def test_missing_root_is_empty(self, tmp_path: Path) -> None:
        assert take_snapshot(tmp_path / "missing") == {}


@pytest.mark.unit
class TestDiffSnapshots:
    """Test snapshot comparison."""

    def test_created_deleted_modified(self) -> None:
        base = Path("/w")
        previous = {
            base / "kept": (EntryKind.FILE, 1, 10),
            base / "changed": (EntryKind.FILE, 1, 10),
            base / "removed": (EntryKind.FILE, 1, 10),
        }
        current = {
            base / "kept": (EntryKind.FILE, 1, 10),
            base / "changed": (EntryKind.FILE, 2, 20),
            base / "added": (EntryKind.DIRECTORY, 0, 30),
        }

        events = diff_snapshots(previous, current)

        assert [(event.path.name, event.reason) for event in events] == [
            ("added", "created"),
            ("changed", "modified"),
            ("removed", "deleted"),
        ]

    def test_identical_snapshots_yield_nothing(self) -> None:
        snapshot = {Path("/w/a"): (EntryKind.FILE, 1, 1)}

        assert diff_snapshots(snapshot, dict(snapshot)) == []

    def test_change_deep_inside_excluded_directory(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "root", {"a.txt": 1, "node_modules": {"pkg": {"index.js": 10}}})
        index = root / "node_modules" / "pkg" / "index.js"
        previous = take_snapshot(root)

        _ = index.write_bytes(b"x" * 5000)
        events = diff_snapshots(previous, take_snapshot(root))

        assert (index, "modified") in [(event.path, event.reason) for event in events]


@pytest.mark.unit
class TestWatchTree:
    """Test the async polling generator."""

    @pytest.mark.asyncio
    async def test_yields_events_after_initial_snapshot(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "root", {"a.txt": 1})
        watcher = watch_tree(root, poll_interval=0.01)

        async def first_event() -> StalenessEvent:
            return await anext(watcher)

        pending = asyncio.create_task(first_event())
        await asyncio.sleep(0.2)
        _ = (root / "new.txt").write_bytes(b"data")

        try:
            event = await asyncio.wait_for(pending, timeout=2)
        finally:
            await watcher.aclose()

        assert event.path == root / "new.txt"
        assert event.reason == "created"

    @pytest.mark.asyncio
    async def test_deleted_file(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "root", {"a.txt": 1, "b.txt": 1})
        watcher = watch_tree(root, poll_interval=0.01)

        async def first_event() -> StalenessEvent:
            return await anext(watcher)

        pending = asyncio.create_task(first_event())
        await asyncio.sleep(0.2)
        (root / "b.txt").unlink()

        try:
            event = await asyncio.wait_for(pending, timeout=2)
        finally:
            await watcher.aclose()

        assert (event.path, event.reason) == (root / "b.txt", "deleted")
