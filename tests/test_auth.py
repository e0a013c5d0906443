from __future__ import annotations

import os
from pathlib import Path

import pytest

from pytodostore._backends import LocalTreeResolver
from pytodostore.auth import DirectPathAuthGate, ScopedTreeAuthGate, StaticAuthGate


def test_static_gate_can_be_flipped() -> None:
    gate = StaticAuthGate(False)
    assert gate.is_authorized() is False

    gate.authorized = True
    assert gate.is_authorized() is True


def test_direct_gate_accepts_writable_directory(tmp_path: Path) -> None:
    assert DirectPathAuthGate(tmp_path).is_authorized() is True


def test_direct_gate_judges_missing_directory_by_ancestor(tmp_path: Path) -> None:
    assert DirectPathAuthGate(tmp_path / "not" / "yet").is_authorized() is True


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root bypasses permission bits")
def test_direct_gate_rejects_read_only_directory(tmp_path: Path) -> None:
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(0o500)
    try:
        assert DirectPathAuthGate(locked).is_authorized() is False
    finally:
        locked.chmod(0o700)


def test_scoped_gate_follows_tree(tmp_path: Path) -> None:
    root = tmp_path / "tree"
    root.mkdir()
    gate = ScopedTreeAuthGate(LocalTreeResolver(root))

    assert gate.is_authorized() is True
    root.rmdir()
    assert gate.is_authorized() is False
