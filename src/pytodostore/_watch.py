"""Filesystem change watching with self-write suppression.

A :class:`WatchSubscription` follows one document. Events arrive on the
notifier's own thread; the subscription filters them down to content
changes of the watched path and drops anything that lands while the
store's own write is in flight (the suppression window).
"""

from __future__ import annotations

import functools
import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from pytodostore.models.watch import CONTENT_EVENTS, EventKind, WatchEvent

EventCallback = Callable[[WatchEvent], None]


class WatchHandle(Protocol):
    def cancel(self) -> None: ...


class ChangeNotifier(Protocol):
    """OS change-notification channel."""

    def register(self, path: Path, callback: EventCallback) -> WatchHandle: ...


class TimerLike(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerLike]


def daemon_timer(delay: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    return timer


# watchdog event_type -> kind; "moved" is split into MOVED_FROM/MOVED_TO.
_WATCHDOG_KINDS: dict[str, EventKind] = {
    "modified": EventKind.MODIFY,
    "closed": EventKind.CLOSE_WRITE,
    "closed_no_write": EventKind.CLOSE_NOWRITE,
    "opened": EventKind.OPEN,
    "created": EventKind.CREATE,
    "deleted": EventKind.DELETE,
}


def _event_path(raw: str | bytes) -> Path:
    return Path(os.fsdecode(raw))


class _EventForwarder(FileSystemEventHandler):
    """Translate watchdog events into :class:`WatchEvent` objects."""

    def __init__(self, callback: EventCallback) -> None:
        super().__init__()
        self._callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type == "moved":
            self._callback(WatchEvent(kind=EventKind.MOVED_FROM, path=_event_path(event.src_path)))
            self._callback(WatchEvent(kind=EventKind.MOVED_TO, path=_event_path(event.dest_path)))
            return
        kind = _WATCHDOG_KINDS.get(event.event_type)
        if kind is None:
            return
        self._callback(WatchEvent(kind=kind, path=_event_path(event.src_path)))


class _ObserverHandle:
    def __init__(self, observer: BaseObserver, join_timeout: float) -> None:
        self._observer = observer
        self._join_timeout = join_timeout

    def cancel(self) -> None:
        self._observer.stop()
        # A listener may re-target the watch from inside the observer thread.
        if threading.current_thread() is not self._observer:
            self._observer.join(timeout=self._join_timeout)


class WatchdogNotifier:
    """:class:`ChangeNotifier` backed by a watchdog observer.

    The parent directory is watched non-recursively, so replacing the
    document with a rename still reports a ``MOVED_TO`` for its path.
    watchdog picks inotify, kqueue, FSEvents or ReadDirectoryChangesW;
    ``polling=True`` forces the stat-polling fallback.
    """

    def __init__(self, *, polling: bool = False, join_timeout: float = 2.0) -> None:
        self._observer_factory: Callable[[], BaseObserver] = PollingObserver if polling else Observer
        self._join_timeout = join_timeout

    def register(self, path: Path, callback: EventCallback) -> WatchHandle:
        observer = self._observer_factory()
        observer.schedule(_EventForwarder(callback), str(path.parent), recursive=False)
        observer.start()
        return _ObserverHandle(observer, self._join_timeout)


class WatchSubscription:
    """Watch one document and report changes made by someone else.

    State is ``Idle`` or ``Watching(path)`` with an orthogonal
    ``suppressed`` flag. All state sits behind one lock because events,
    timers and store calls run on different threads.
    """

    def __init__(
        self,
        *,
        notifier: ChangeNotifier,
        on_change: Callable[[Path], None],
        timer_factory: TimerFactory = daemon_timer,
        logger: logging.Logger | None = None,
    ) -> None:
        self._notifier = notifier
        self._on_change = on_change
        self._timer_factory = timer_factory
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._watched_path: Path | None = None
        self._handle: WatchHandle | None = None
        # Identifies the live registration; events carrying another token are stale.
        self._token: object | None = None
        self._suppressed = False
        self._timer: TimerLike | None = None
        self._timer_token: object | None = None

    @property
    def is_watching(self) -> bool:
        with self._lock:
            return self._token is not None

    @property
    def watched_path(self) -> Path | None:
        with self._lock:
            return self._watched_path

    @property
    def suppressed(self) -> bool:
        with self._lock:
            return self._suppressed

    def start(self, path: str | Path) -> None:
        """Watch ``path``, replacing any registration for another path."""
        target = Path(path)
        with self._lock:
            if self._token is not None and self._watched_path == target:
                self._logger.debug("Observer: already watching %s", target)
                return
            previous = self._handle
            previous_path = self._watched_path
            timer = self._timer
            token = object()
            self._token = token
            self._watched_path = target
            self._handle = None
            self._timer = None
            self._timer_token = None
            self._suppressed = False

        if timer is not None:
            timer.cancel()
        if previous is not None:
            self._logger.info("Observer: already watching different path %s", previous_path)
            previous.cancel()

        self._logger.info("Observer: adding folder watcher on %s", target.parent)
        try:
            handle = self._notifier.register(target, functools.partial(self._deliver, token))
        except OSError as exc:
            self._logger.warning("Observer: cannot watch %s: %s", target, exc)
            with self._lock:
                if self._token is token:
                    self._token = None
                    self._watched_path = None
            return

        with self._lock:
            if self._token is token:
                self._handle = handle
                return
        # Superseded by a concurrent start/stop while registering.
        handle.cancel()

    def stop(self) -> None:
        """Cancel the registration and any pending re-enable."""
        with self._lock:
            handle = self._handle
            path = self._watched_path
            timer = self._timer
            self._handle = None
            self._token = None
            self._watched_path = None
            self._timer = None
            self._timer_token = None

        if timer is not None:
            timer.cancel()
        if handle is not None:
            self._logger.info("Observer: stopped watching %s", path)
            handle.cancel()

    def suppress(self, on: bool) -> None:
        """Set the suppression flag.

        Turning suppression on also drops any pending re-enable, so a timer
        left over from an earlier write cannot lift it mid-write.
        """
        timer = None
        with self._lock:
            self._suppressed = on
            path = self._watched_path
            if on:
                timer = self._timer
                self._timer = None
                self._timer_token = None
        if timer is not None:
            timer.cancel()
        self._logger.info("Observer: ignoring events on %s: %s", path, on)

    def schedule_reenable(self, delay: float) -> None:
        """Clear suppression after ``delay`` seconds.

        A new call replaces the pending timer; suppression is lifted once,
        by the most recent timer only.
        """
        token = object()
        timer = self._timer_factory(delay, functools.partial(self._reenable, token))
        with self._lock:
            previous = self._timer
            self._timer = timer
            self._timer_token = token
        if previous is not None:
            previous.cancel()
        self._logger.debug("Observer: re-enabling events in %.3fs", delay)
        timer.start()

    def _reenable(self, token: object) -> None:
        with self._lock:
            if self._timer_token is not token:
                return
            self._timer = None
            self._timer_token = None
            self._suppressed = False
            path = self._watched_path
        self._logger.info("Observer: delayed enabling events for %s", path)

    def on_event(self, kind: EventKind, path: str | Path) -> bool:
        """Handle one event for the live registration.

        Returns ``True`` when an external-change notification was emitted.
        """
        with self._lock:
            token = self._token
        if token is None:
            return False
        return self._deliver(token, WatchEvent(kind=kind, path=Path(path)))

    def _deliver(self, token: object, event: WatchEvent) -> bool:
        with self._lock:
            if token is not self._token:
                self._logger.debug("Observer: discarding late event %s", event)
                return False
            watched = self._watched_path
            suppressed = self._suppressed

        if watched is None or event.path != watched:
            return False
        self._logger.debug("Observer event: %s:%s", watched, event.kind)
        if not event.is_content_change:
            return False
        if suppressed:
            self._logger.info("Observer: ignored event on %s", watched)
            return False

        self._logger.info("File changed %s", watched)
        try:
            self._on_change(watched)
        except Exception:
            self._logger.warning("External change listener failed", exc_info=True)
        return True
