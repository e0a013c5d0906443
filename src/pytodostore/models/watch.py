"""Change-notification events."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pytodostore.models._base import TodoBaseModel


class EventKind(StrEnum):
    OPEN = "open"
    ACCESS = "access"
    ATTRIB = "attrib"
    CREATE = "create"
    DELETE = "delete"
    MODIFY = "modify"
    CLOSE_WRITE = "close_write"
    CLOSE_NOWRITE = "close_nowrite"
    MOVED_FROM = "moved_from"
    MOVED_TO = "moved_to"


#: Event kinds meaning "new content became readable".
CONTENT_EVENTS: frozenset[EventKind] = frozenset(
    {
        EventKind.CLOSE_WRITE,
        EventKind.MODIFY,
        EventKind.MOVED_TO,
    }
)


class WatchEvent(TodoBaseModel):
    """One notification delivered by the OS change channel."""

    kind: EventKind
    path: Path

    @property
    def is_content_change(self) -> bool:
        return self.kind in CONTENT_EVENTS
