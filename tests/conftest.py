"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

# Configure pytest-asyncio explicitly
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep POLLWATCH_* variables out of tests."""
    for name in ("POLLWATCH_LOG", "POLLWATCH_POLL_INTERVAL", "POLLWATCH_EXTENSIONS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def proj(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "proj"
    root.mkdir()
    return root
