"""Shared backend contract and line helpers."""

from __future__ import annotations

import abc
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pytodostore.config import BackendKind
from pytodostore.models.location import FileEntry, WriteMode
from pytodostore.models.marker import VersionMarker

TEXT_MIME = "text/plain"


def split_lines(content: str) -> list[str]:
    """Split document text on line feeds.

    A final line feed does not start another (empty) line, and a
    carriage return left over from CRLF documents is dropped.
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def join_lines(lines: Iterable[str], eol: str) -> str:
    """Join lines with ``eol`` and terminate the last one."""
    return eol.join(lines) + eol


class StorageBackend(abc.ABC):
    """Primitive operations against one storage mechanism.

    Implementations raise :class:`~pytodostore.exceptions.StorageIOError`
    or :class:`~pytodostore.exceptions.BackendUnavailableError`; the store
    turns those into safe defaults.
    """

    kind: BackendKind

    @abc.abstractmethod
    def locate(self, path: str | Path) -> Any:
        """Resolve a caller-supplied path into this backend's location type."""

    @abc.abstractmethod
    def read(self, location: Any) -> str:
        """Return the full document text, ``""`` when the document is absent."""

    @abc.abstractmethod
    def write(self, location: Any, content: str, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        """Replace or extend the document text."""

    @abc.abstractmethod
    def ensure_exists(self, location: Any, mime_hint: str = TEXT_MIME) -> Any | None:
        """Return a location whose document is guaranteed to exist, or ``None``."""

    @abc.abstractmethod
    def list(self, directory: str | Path, txt_only: bool = False) -> list[FileEntry]:
        """List a directory for browsing."""

    @abc.abstractmethod
    def last_modified_marker(self, location: Any) -> VersionMarker | None:
        """Marker for the document's current state, ``None`` when absent."""
