"""Shared test fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

SAMPLE_LINES = [
    "2024-01-15T10:30:00Z Server started on port 8080",
    "2024-01-15T10:30:01Z WARN slow response from upstream",
    "2024-01-15 10:30:02.123 ERROR Failed to connect to db",
    '[15/Jan/2024:10:30:04 +0000] "GET /api/health HTTP/1.1" 200 15',
    '[15/Jan/2024:10:30:05 +0000] "GET /missing HTTP/1.1" 404 0',
    "No timestamp here, just plain text",
    "\tindented with a tab",
    "",
]


@pytest.fixture
def sample_log_file(tmp_path: Path) -> Path:
    """Create a temporary log file with sample content."""
    log_file = tmp_path / "test.log"
    log_file.write_text("\n".join(SAMPLE_LINES) + "\n")
    return log_file


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config directory at a temporary location."""
    path = tmp_path / "config"
    monkeypatch.setenv("LOGSCOPE_CONFIG_DIR", str(path))
    return path
