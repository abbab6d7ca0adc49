# tests/gnuplot/conftest.py
"""Pytest configuration and shared fixtures for gnuplot tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure tsgraph package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def basepath(tmp_path: Path) -> Path:
    """Base path for all files of one dump, inside a temp dir."""
    return tmp_path / "graph"
