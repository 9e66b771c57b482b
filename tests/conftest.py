"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

import safeclean.storage as storage
from safeclean.settings import Settings


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "safeclean_data"
    data_dir.mkdir()
    history_file = data_dir / "history.json"
    monkeypatch.setattr(storage, "HISTORY_FILE", history_file)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return history_file


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Point settings at an empty temp config dir and drop the cached singleton."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setattr(Settings, "_instance", None)
    return config_home / "safeclean" / "settings.json"


def make_file(path: Path, size: int) -> Path:
    """Create a sparse file of exactly *size* bytes, with parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


@pytest.fixture
def fs(tmp_path):
    """Project tree root plus a helper for writing sized files."""
    root = tmp_path / "root"
    root.mkdir()

    def _write(rel: str, size: int = 0) -> Path:
        return make_file(root / rel, size)

    _write.root = root
    return _write


needs_unprivileged = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="permission bits are not enforced for root",
)
