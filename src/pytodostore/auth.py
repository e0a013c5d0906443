"""Authorization gates consulted before every store operation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

from pytodostore._backends.scoped import DocumentResolver


class AuthGate(Protocol):
    def is_authorized(self) -> bool: ...


class StaticAuthGate:
    """Gate with a fixed answer that the host flips after a permission prompt."""

    def __init__(self, authorized: bool = True) -> None:
        self.authorized = authorized

    def is_authorized(self) -> bool:
        return self.authorized


class DirectPathAuthGate:
    """Authorized while the process can read and write ``directory``.

    A directory that does not exist yet is judged by its nearest existing
    ancestor, since the first save creates it.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()

    def is_authorized(self) -> bool:
        candidate = self._directory
        while not candidate.exists():
            if candidate.parent == candidate:
                return False
            candidate = candidate.parent
        return os.access(candidate, os.R_OK | os.W_OK)


class ScopedTreeAuthGate:
    """Authorized while the resolver still hands out its tree."""

    def __init__(self, resolver: DocumentResolver) -> None:
        self._resolver = resolver

    def is_authorized(self) -> bool:
        return self._resolver.tree() is not None
