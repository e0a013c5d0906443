"""Remote-change detection via version markers."""

from __future__ import annotations

import logging
import threading

from pytodostore.models.marker import NO_OBSERVATION, VersionMarker

_logger = logging.getLogger(__name__)


class ChangeTracker:
    """Remember the marker of the last successful load or save.

    ``need_sync`` is a pure comparison against the remembered marker; only
    ``observe`` and ``invalidate`` mutate state. An absent document has no
    marker (``None``), which never equals the unset sentinel, so a fresh
    tracker always reports "needs sync".
    """

    def __init__(self, initial: VersionMarker | None = NO_OBSERVATION) -> None:
        self._lock = threading.Lock()
        self._last_seen: VersionMarker | None = initial

    @property
    def last_seen(self) -> VersionMarker | None:
        with self._lock:
            return self._last_seen

    def need_sync(self, current: VersionMarker | None) -> bool:
        with self._lock:
            return current != self._last_seen

    def observe(self, marker: VersionMarker | None) -> None:
        with self._lock:
            self._last_seen = marker
        _logger.debug("Observed version marker %r", marker)

    def invalidate(self) -> None:
        with self._lock:
            self._last_seen = NO_OBSERVATION
        _logger.debug("Version marker invalidated")
