"""Task-list document store with external-change detection."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from pytodostore._backends import (
    DirectPathBackend,
    DocumentResolver,
    LocalTreeResolver,
    ScopedDocumentBackend,
    StorageBackend,
    join_lines,
    split_lines,
)
from pytodostore._watch import ChangeNotifier, TimerFactory, WatchdogNotifier, WatchSubscription, daemon_timer
from pytodostore.auth import AuthGate, DirectPathAuthGate, ScopedTreeAuthGate
from pytodostore.config import BackendKind, StoreConfig
from pytodostore.exceptions import TodoStoreConfigError, TodoStoreError
from pytodostore.models.location import DirectLocation, FileEntry, StorageLocation, WriteMode
from pytodostore.models.marker import NO_OBSERVATION, VersionMarker
from pytodostore.tracker import ChangeTracker

_logger = logging.getLogger(__name__)


def _build_backend(config: StoreConfig, resolver: DocumentResolver | None) -> StorageBackend:
    if config.backend == BackendKind.SCOPED:
        if resolver is None:
            if config.tree_root is None:
                raise TodoStoreConfigError("tree_root is required for the scoped backend")
            resolver = LocalTreeResolver(config.tree_root)
        return ScopedDocumentBackend(resolver)
    return DirectPathBackend(default_dir=config.default_dir)


def _default_auth_gate(config: StoreConfig, backend: StorageBackend) -> AuthGate:
    if isinstance(backend, ScopedDocumentBackend):
        return ScopedTreeAuthGate(backend.resolver)
    return DirectPathAuthGate(config.default_dir)


class TodoStore:
    """Load and save a task-list document that others may edit too.

    Usage::

        with TodoStore(StoreConfig.from_env(), on_external_change=reload) as store:
            lines = store.load(store.default_file())
            ...
            store.save(store.default_file(), lines)

    Every public operation checks the auth gate first. Without access it
    fires ``on_auth_failed`` once and returns an empty result; storage
    errors are logged and likewise turned into empty results.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        backend: StorageBackend | None = None,
        resolver: DocumentResolver | None = None,
        auth_gate: AuthGate | None = None,
        notifier: ChangeNotifier | None = None,
        timer_factory: TimerFactory = daemon_timer,
        on_external_change: Callable[[Path], None] | None = None,
        on_auth_failed: Callable[[], None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        last_seen_marker: VersionMarker | None = NO_OBSERVATION,
    ) -> None:
        self._config = config or StoreConfig()
        self._backend = backend or _build_backend(self._config, resolver)
        self._auth_gate = auth_gate or _default_auth_gate(self._config, self._backend)
        self._notifier = notifier
        self._timer_factory = timer_factory
        self._on_external_change = on_external_change
        self._on_auth_failed = on_auth_failed
        self._loop = loop
        self._tracker = ChangeTracker(last_seen_marker)
        self._watch: WatchSubscription | None = None
        self._io_lock = threading.RLock()
        self._watch_lock = threading.Lock()
        _logger.info("Store created with %s backend", self._backend.kind)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> TodoStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Stop watching; late notifications for the document are dropped."""
        with self._watch_lock:
            watch = self._watch
            self._watch = None
        if watch is not None:
            watch.stop()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def backend_kind(self) -> BackendKind:
        return self._backend.kind

    @property
    def last_seen_marker(self) -> VersionMarker | None:
        """Marker of the last successful load or save, for hosts that persist it."""
        return self._tracker.last_seen

    @property
    def is_watching(self) -> bool:
        watch = self._watch
        return watch is not None and watch.is_watching

    @property
    def watched_path(self) -> Path | None:
        watch = self._watch
        return None if watch is None else watch.watched_path

    def default_file(self) -> Path:
        return self._config.default_file

    def done_file(self) -> Path:
        """Archive document that completed tasks are appended to."""
        return self._config.done_file

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _authorized(self, operation: str) -> bool:
        if self._auth_gate.is_authorized():
            return True
        _logger.warning("%s refused: storage access is not granted", operation)
        callback = self._on_auth_failed
        if callback is not None:
            try:
                callback()
            except Exception:
                _logger.warning("Auth-failed listener raised", exc_info=True)
        return False

    def _ensure(self, location: StorageLocation) -> StorageLocation | None:
        target = self._backend.ensure_exists(location)
        if target is None:
            _logger.warning("Document %s not found and could not be created", location.name)
        return target

    def _write(self, location: StorageLocation, content: str, mode: WriteMode) -> None:
        """Write, keeping the watcher deaf to our own change when it watches ``location``."""
        watch = self._watch
        if (
            watch is None
            or not isinstance(location, DirectLocation)
            or watch.watched_path != location.path
        ):
            self._backend.write(location, content, mode)
            return

        watch.suppress(True)
        try:
            self._backend.write(location, content, mode)
        finally:
            watch.schedule_reenable(self._config.grace_period)

    def _set_watching(self, path: Path) -> None:
        if not self._config.watch_enabled:
            return
        with self._watch_lock:
            if self._watch is None:
                self._watch = WatchSubscription(
                    notifier=self._notifier or WatchdogNotifier(),
                    on_change=self._external_change,
                    timer_factory=self._timer_factory,
                    logger=_logger,
                )
            watch = self._watch
        # Runs without the I/O lock held: re-targeting joins the old observer thread.
        watch.start(path)
        with self._watch_lock:
            closed = self._watch is not watch
        if closed:
            watch.stop()

    def _external_change(self, path: Path) -> None:
        callback = self._on_external_change
        if callback is None:
            _logger.debug("No listener for external change of %s", path)
            return
        loop = self._loop
        if loop is None:
            callback(path)
            return
        try:
            loop.call_soon_threadsafe(callback, path)
        except RuntimeError:
            _logger.debug("Event loop closed, dropping change notification for %s", path)

    # ------------------------------------------------------------------
    # Document operations
    # ------------------------------------------------------------------

    def load(self, path: str | Path) -> list[str]:
        """Read the document as lines and remember its version marker.

        For the direct-path backend the document is watched from here on.
        """
        if not self._authorized("load"):
            return []
        with self._io_lock:
            try:
                location = self._backend.locate(path)
                if self._backend.kind == BackendKind.SCOPED:
                    location = self._ensure(location)
                    if location is None:
                        return []
                # Taken before reading: a write racing the read is then seen as a change.
                marker = self._backend.last_modified_marker(location)
                content = self._backend.read(location)
            except TodoStoreError as exc:
                _logger.warning("Loading %s failed: %s", path, exc, exc_info=True)
                return []

            lines = split_lines(content)
            self._tracker.observe(marker)
            _logger.info("Read %d lines from %s", len(lines), path)

        if isinstance(location, DirectLocation):
            self._set_watching(location.path)
        return lines

    def need_sync(self, path: str | Path) -> bool:
        """Whether the document changed since the last load or save.

        Without storage access this answers ``True`` so the host reloads
        once access comes back.
        """
        if not self._authorized("need_sync"):
            return True
        try:
            location = self._backend.locate(path)
            marker = self._backend.last_modified_marker(location)
        except TodoStoreError as exc:
            _logger.warning("Checking %s failed: %s", path, exc)
            return False
        return self._tracker.need_sync(marker)

    def save(self, path: str | Path, lines: Iterable[str], eol: str = "\n") -> Path:
        """Replace the document with ``lines``, each terminated by ``eol``."""
        target_path = Path(path)
        if not self._authorized("save"):
            return target_path
        content = join_lines(lines, eol)
        with self._io_lock:
            try:
                location = self._backend.locate(path)
                if self._backend.kind == BackendKind.SCOPED:
                    location = self._ensure(location)
                    if location is None:
                        return target_path
                _logger.info("Saving tasks to %s", path)
                self._write(location, content, WriteMode.TRUNCATE)
                marker = self._backend.last_modified_marker(location)
            except TodoStoreError as exc:
                _logger.warning("Saving %s failed: %s", path, exc, exc_info=True)
                return target_path
            self._tracker.observe(marker)
        return target_path

    def append(self, path: str | Path, lines: Iterable[str], eol: str = "\n") -> None:
        """Append ``lines`` to a secondary document such as the done-file."""
        if not self._authorized("append"):
            return
        items = list(lines)
        content = join_lines(items, eol)
        with self._io_lock:
            try:
                location = self._backend.locate(path)
                if self._backend.kind == BackendKind.SCOPED:
                    location = self._ensure(location)
                    if location is None:
                        return
                _logger.info("Appending %d tasks to %s", len(items), path)
                self._write(location, content, WriteMode.APPEND)
            except TodoStoreError as exc:
                _logger.warning("Appending to %s failed: %s", path, exc, exc_info=True)

    def identity_changed(self) -> None:
        """Forget the version marker after the configured document changed."""
        self._tracker.invalidate()

    def read_file(self, path: str | Path) -> str:
        """Return raw document text; ``""`` when absent or unreadable."""
        if not self._authorized("read_file"):
            return ""
        try:
            location = self._backend.locate(path)
            _logger.info("Reading file %s", path)
            return self._backend.read(location)
        except TodoStoreError as exc:
            _logger.warning("Reading %s failed: %s", path, exc, exc_info=True)
            return ""

    def write_file(self, path: str | Path, contents: str) -> None:
        """Replace raw document text without touching the version marker."""
        if not self._authorized("write_file"):
            return
        with self._io_lock:
            try:
                location = self._backend.locate(path)
                if self._backend.kind == BackendKind.SCOPED:
                    location = self._ensure(location)
                    if location is None:
                        return
                _logger.info("Writing file %s", path)
                self._write(location, contents, WriteMode.TRUNCATE)
            except TodoStoreError as exc:
                _logger.warning("Writing %s failed: %s", path, exc, exc_info=True)

    def list_files(self, directory: str | Path, txt_only: bool = False) -> list[FileEntry]:
        """Browse ``directory``; always empty for the scoped backend."""
        if not self._authorized("list_files"):
            return []
        try:
            return self._backend.list(directory, txt_only)
        except TodoStoreError as exc:
            _logger.warning("Listing %s failed: %s", directory, exc)
            return []
