from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def asset_tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Work from ``tmp_path`` with ``assets/a.txt`` and ``assets/b.txt``."""
    monkeypatch.chdir(tmp_path)
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "b.txt").write_bytes(b"world")
    (assets / "a.txt").write_bytes(b"hi")
    return tmp_path
