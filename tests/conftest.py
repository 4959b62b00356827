"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Runtime config rooted in a per-test data directory."""
    from core.config import JtabConfig

    monkeypatch.delenv("JTAB_TARGET_ENCODING", raising=False)
    return replace(JtabConfig.from_env(), data_root=tmp_path / "data")
