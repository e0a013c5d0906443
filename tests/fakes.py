"""Deterministic stand-ins for the OS notifier and timers."""

from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from pytodostore.models.location import DocumentHandle
from pytodostore.models.watch import EventKind, WatchEvent


@dataclass
class FakeHandle:
    path: Path
    callback: Callable[[WatchEvent], object]
    log: list[str]
    on_cancel: Callable[[], None] | None = None
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True
        self.log.append(f"cancel {self.path}")
        if self.on_cancel is not None:
            self.on_cancel()


@dataclass
class FakeNotifier:
    """Records registrations; ``emit`` also reaches cancelled ones to mimic late OS events."""

    registrations: list[FakeHandle] = field(default_factory=list)
    log: list[str] = field(default_factory=list)
    fail_with: OSError | None = None
    on_cancel: Callable[[], None] | None = None

    def register(self, path: Path, callback: Callable[[WatchEvent], object]) -> FakeHandle:
        if self.fail_with is not None:
            raise self.fail_with
        handle = FakeHandle(path=path, callback=callback, log=self.log, on_cancel=self.on_cancel)
        self.registrations.append(handle)
        self.log.append(f"register {path}")
        return handle

    @property
    def active(self) -> list[FakeHandle]:
        return [h for h in self.registrations if not h.cancelled]

    def emit(self, kind: EventKind, path: Path) -> None:
        for handle in list(self.registrations):
            handle.callback(WatchEvent(kind=kind, path=path))


@dataclass
class FakeTimer:
    delay: float
    fn: Callable[[], None]
    started: bool = False
    cancelled: bool = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        # Fires even when cancelled: a real timer can lose the race with cancel().
        self.fn()


@dataclass
class FakeTimerFactory:
    timers: list[FakeTimer] = field(default_factory=list)

    def __call__(self, delay: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay=delay, fn=fn)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


@dataclass
class ReadOnlyResolver:
    """Document tree whose provider refuses to create or write documents."""

    root: DocumentHandle = field(default_factory=lambda: DocumentHandle(uri="mem:", name="", is_directory=True))
    docs: dict[str, bytes] = field(default_factory=dict)
    create_calls: int = 0
    write_calls: int = 0

    def tree(self) -> DocumentHandle | None:
        return self.root

    def children(self, parent: DocumentHandle) -> list[DocumentHandle]:
        return [DocumentHandle(uri=f"mem:{name}", name=name, mime_type="text/plain") for name in self.docs]

    def create(self, parent: DocumentHandle, mime_type: str, name: str) -> DocumentHandle | None:
        self.create_calls += 1
        return None

    def open_read(self, handle: DocumentHandle) -> IO[bytes] | None:
        return io.BytesIO(self.docs[handle.name])

    def open_write(self, handle: DocumentHandle, mode: str) -> IO[bytes] | None:
        self.write_calls += 1
        return None

    def last_modified(self, handle: DocumentHandle) -> int:
        return 42
