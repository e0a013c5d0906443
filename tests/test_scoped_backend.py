from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from pytodostore._backends import LocalTreeResolver, ScopedDocumentBackend
from pytodostore.exceptions import BackendUnavailableError
from pytodostore.models.location import DocumentHandle, ScopedLocation, WriteMode

from .fakes import ReadOnlyResolver


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "granted"
    root.mkdir()
    return root


@pytest.fixture()
def backend(tree: Path) -> ScopedDocumentBackend:
    return ScopedDocumentBackend(LocalTreeResolver(tree))


def test_locate_uses_final_path_component(backend: ScopedDocumentBackend) -> None:
    location = backend.locate("/somewhere/else/todo.txt")

    assert location.name == "todo.txt"
    assert location.parent.is_directory
    assert location.handle is None


def test_read_of_absent_document_is_empty(backend: ScopedDocumentBackend) -> None:
    location = backend.locate("todo.txt")

    assert backend.read(location) == ""
    assert backend.last_modified_marker(location) is None


def test_ensure_exists_creates_once(backend: ScopedDocumentBackend, tree: Path) -> None:
    location = backend.locate("todo.txt")

    first = backend.ensure_exists(location)
    second = backend.ensure_exists(backend.locate("todo.txt"))

    assert first is not None and second is not None
    assert first.handle is not None and second.handle is not None
    assert first.handle.uri == second.handle.uri == "tree:todo.txt"
    assert first.handle.mime_type == "text/plain"
    assert [p.name for p in tree.iterdir()] == ["todo.txt"]


def test_write_and_append_through_streams(backend: ScopedDocumentBackend, tree: Path) -> None:
    location = backend.ensure_exists(backend.locate("done.txt"))
    assert location is not None

    backend.write(location, "a\n")
    backend.write(location, "b\n", WriteMode.APPEND)

    assert (tree / "done.txt").read_text(encoding="utf-8") == "a\nb\n"
    assert backend.read(location) == "a\nb\n"


def test_write_without_document_is_unavailable(backend: ScopedDocumentBackend) -> None:
    with pytest.raises(BackendUnavailableError):
        backend.write(backend.locate("todo.txt"), "x\n")


def test_marker_tracks_resolver_timestamp(backend: ScopedDocumentBackend, tree: Path) -> None:
    location = backend.ensure_exists(backend.locate("todo.txt"))
    assert location is not None
    os.utime(tree / "todo.txt", ns=(5_000, 5_000))

    assert backend.last_modified_marker(location) == "5000"


def test_listing_is_disabled(backend: ScopedDocumentBackend, tree: Path) -> None:
    (tree / "todo.txt").write_text("", encoding="utf-8")

    assert backend.list(tree) == []
    assert backend.list("/", txt_only=True) == []


def test_revoked_tree_is_unavailable(backend: ScopedDocumentBackend, tree: Path) -> None:
    shutil.rmtree(tree)

    assert backend.resolver.tree() is None
    with pytest.raises(BackendUnavailableError):
        backend.locate("todo.txt")


def test_resolver_rejects_handles_outside_tree(tree: Path) -> None:
    resolver = LocalTreeResolver(tree)
    escaping = DocumentHandle(uri="tree:../secret.txt", name="secret.txt")
    foreign = DocumentHandle(uri="content://elsewhere/1", name="1")

    with pytest.raises(BackendUnavailableError):
        resolver.open_read(escaping)
    with pytest.raises(BackendUnavailableError):
        resolver.open_read(foreign)


def test_resolver_rejects_unknown_stream_mode(tree: Path) -> None:
    resolver = LocalTreeResolver(tree)
    root = resolver.tree()
    assert root is not None
    handle = resolver.create(root, "text/plain", "todo.txt")
    assert handle is not None

    with pytest.raises(ValueError):
        resolver.open_write(handle, "r")


def test_failed_creation_leaves_read_empty() -> None:
    resolver = ReadOnlyResolver()
    backend = ScopedDocumentBackend(resolver)
    location = backend.locate("todo.txt")

    assert backend.ensure_exists(location) is None
    assert resolver.create_calls == 1
    assert backend.read(location) == ""


def test_existing_document_is_found_by_name() -> None:
    resolver = ReadOnlyResolver(docs={"todo.txt": b"a\nb\n"})
    backend = ScopedDocumentBackend(resolver)

    location = backend.ensure_exists(backend.locate("todo.txt"))

    assert isinstance(location, ScopedLocation)
    assert resolver.create_calls == 0
    assert backend.read(location) == "a\nb\n"
    assert backend.last_modified_marker(location) == "42"
