"""Data models for pytodostore."""

from pytodostore.models._base import TodoBaseModel
from pytodostore.models.location import (
    DirectLocation,
    DocumentHandle,
    FileEntry,
    ScopedLocation,
    StorageLocation,
    WriteMode,
)
from pytodostore.models.marker import NO_OBSERVATION, VersionMarker, marker_from_timestamp
from pytodostore.models.watch import CONTENT_EVENTS, EventKind, WatchEvent

__all__ = [
    "CONTENT_EVENTS",
    "DirectLocation",
    "DocumentHandle",
    "EventKind",
    "FileEntry",
    "NO_OBSERVATION",
    "ScopedLocation",
    "StorageLocation",
    "TodoBaseModel",
    "VersionMarker",
    "WatchEvent",
    "WriteMode",
    "marker_from_timestamp",
]
