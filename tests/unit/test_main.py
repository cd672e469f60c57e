"""Unit tests for the command-line entry point.

Tests cover argument parsing, configuration fallback, output rendering,
and end-to-end runs of the describe and list commands with exit codes.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import yaml

from folder_count.__main__ import (
    DEFAULT_CONFIG_PATH,
    format_listing,
    format_result_line,
    load_config,
    main,
    parse_arguments,
)
from folder_count.core.config import MainConfig
from folder_count.core.listing import ListingRow
from folder_count.types.models import DirectoryResult, FileResult


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def in_empty_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from a directory without a default configuration file."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


def _run(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.mark.unit
class TestParseArguments:
    """Test command-line parsing."""

    def test_describe(self) -> None:
        args = parse_arguments(["describe", "a", "b", "-v"])

        assert args.command == "describe"
        assert args.paths == [Path("a"), Path("b")]
        assert args.verbose is True
        assert args.config is None

    def test_list_options(self) -> None:
        args = parse_arguments(["--log-level", "DEBUG", "list", "src", "--sort", "size", "--desc"])

        assert args.log_level == "DEBUG"
        assert args.path == Path("src")
        assert args.sort == "size"
        assert args.desc is True
        assert args.search == ""

    def test_watch_defaults(self) -> None:
        args = parse_arguments(["--no-syslog", "watch"])

        assert args.root is None
        assert args.interval is None
        assert args.no_syslog is True

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _ = parse_arguments([])

        assert exc_info.value.code == 2

    def test_invalid_sort_key(self) -> None:
        with pytest.raises(SystemExit):
            _ = parse_arguments(["list", "--sort", "owner"])


@pytest.mark.unit
class TestLoadConfig:
    """Test configuration file fallback."""

    def test_defaults_without_file(self, in_empty_dir: Path) -> None:
        assert load_config(None) == MainConfig()

    def test_default_path_used_when_present(self, in_empty_dir: Path) -> None:
        _ = (in_empty_dir / DEFAULT_CONFIG_PATH).write_text(yaml.safe_dump({"cache": {"enabled": True}}))

        assert load_config(None).cache.enabled is True


@pytest.mark.unit
class TestFormatting:
    """Test text rendering of results and listings."""

    def test_no_result(self) -> None:
        assert format_result_line(Path("x"), None) == "x  (no result)"

    def test_file_line(self) -> None:
        assert format_result_line(Path("x.txt"), FileResult(path=Path("x.txt"), size_bytes=1536)) == "x.txt 1.5 KB"

    def test_directory_line_verbose(self) -> None:
        result = DirectoryResult(path=Path("d"), direct_file_count=3, direct_folder_count=1, total_size_bytes=1048576)

        line = format_result_line(Path("d"), result, verbose=True)

        assert line == "d  [4] (1 MB)\n    Contains: 3 files, 1 folder\n    Total Size: 1 MB"

    def test_listing_table(self) -> None:
        rows = [
            ListingRow(name="sub", path=Path("/r/sub"), is_dir=True, size_bytes=0, created=0, modified=0),
            ListingRow(name="a.txt", path=Path("/r/a.txt"), is_dir=False, size_bytes=100, created=0, modified=0),
        ]

        lines = format_listing(Path("/r"), rows).splitlines()

        assert lines[0] == "/r"
        assert lines[1].startswith("Name")
        assert lines[2].split() == ["sub/", "-"]
        assert lines[3].split() == ["a.txt", "100", "B"]


@pytest.mark.unit
class TestMain:
    """Test full command runs and exit codes."""

    def test_describe(self, sample_tree: Path, in_empty_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run(["describe", str(sample_tree), str(sample_tree / "a.txt"), str(sample_tree / "missing")])

        assert code == 0
        assert capsys.readouterr().out.splitlines() == [
            f"{sample_tree}  [2] (300 B)",
            f"{sample_tree / 'a.txt'} 100 B",
            f"{sample_tree / 'missing'}  (no result)",
        ]

    def test_list(self, sample_tree: Path, in_empty_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run(["list", str(sample_tree), "--sort", "size", "--desc"])

        out = capsys.readouterr().out
        assert code == 0
        assert ".git" not in out
        assert out.index("sub/") < out.index("a.txt")

    def test_list_search(self, sample_tree: Path, in_empty_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run(["list", str(sample_tree), "--search", "A.T"])

        out = capsys.readouterr().out
        assert code == 0
        assert "a.txt" in out
        assert "sub/" not in out

    def test_list_unreadable_directory(
        self,
        tmp_path: Path,
        in_empty_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["list", str(tmp_path / "missing")])

        assert code == 1
        assert "Unable to read directory" in capsys.readouterr().err

    def test_missing_config_file(
        self,
        tmp_path: Path,
        in_empty_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["--config", str(tmp_path / "absent.yaml"), "describe", "."])

        assert code == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_config_file(
        self,
        tmp_path: Path,
        in_empty_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        config_path = tmp_path / "config.yaml"
        _ = config_path.write_text(yaml.safe_dump({"watch": {"poll_interval": -1}}))

        code = _run(["--config", str(config_path), "describe", "."])

        err = capsys.readouterr().err
        assert code == 1
        assert "Field: watch → poll_interval" in err
