"""Pytest configuration and fixtures for ccr tests.

This module ensures the ccr package is importable during tests
without requiring installation, and points every test at a private
ccr home and repos directory.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add src directory to path for development testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def ccr_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate CCR_HOME and CCR_REPOS_DIR under tmp_path."""
    home = tmp_path / "ccr-home"
    monkeypatch.setenv("CCR_HOME", str(home))
    monkeypatch.setenv("CCR_REPOS_DIR", str(tmp_path / "repos"))
    monkeypatch.delenv("CCR_AUTH_API", raising=False)
    monkeypatch.delenv("GITEA_TOKEN", raising=False)
    return home
