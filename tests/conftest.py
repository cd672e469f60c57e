"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import HealthCheck, settings

from tests.fixtures.filesystem import build_tree

settings.register_profile("default", deadline=None)
settings.register_profile(
    "thorough",
    max_examples=500,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Workspace with a visible file, an ignored .git folder and a subfolder.

    Layout::

        root/
            a.txt          100 bytes
            .git/objects   9999 bytes
            sub/b.txt      200 bytes
    """
    return build_tree(
        tmp_path / "root",
        {
            "a.txt": 100,
            ".git": {"objects": 9999},
            "sub": {"b.txt": 200},
        },
    )


@pytest.fixture
def sample_config() -> dict[str, object]:
    """Provide a complete configuration mapping for loader tests."""
    return {
        "traversal": {
            "excluded_names": ["node_modules", "__pycache__"],
            "exclude_hidden": True,
            "max_concurrency": 4,
        },
        "watch": {"enabled": True, "poll_interval": 0.5},
        "cache": {"enabled": True},
        "listing": {"sort_key": "size", "descending": True},
        "application": {"log_level": "DEBUG", "syslog_enabled": False},
    }
