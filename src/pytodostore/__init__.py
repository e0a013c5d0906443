"""pytodostore - Task-list document store that keeps up with external edits."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytodostore")
except PackageNotFoundError:
    __version__ = "0+local"

from pytodostore._backends import (
    DirectPathBackend,
    DocumentResolver,
    LocalTreeResolver,
    ScopedDocumentBackend,
    StorageBackend,
)
from pytodostore._watch import ChangeNotifier, WatchdogNotifier, WatchSubscription
from pytodostore.auth import AuthGate, DirectPathAuthGate, ScopedTreeAuthGate, StaticAuthGate
from pytodostore.config import BackendKind, StoreConfig
from pytodostore.exceptions import (
    BackendUnavailableError,
    StorageIOError,
    TodoStoreConfigError,
    TodoStoreError,
)
from pytodostore.models import (
    NO_OBSERVATION,
    DirectLocation,
    DocumentHandle,
    EventKind,
    FileEntry,
    ScopedLocation,
    VersionMarker,
    WatchEvent,
    WriteMode,
)
from pytodostore.store import TodoStore
from pytodostore.tracker import ChangeTracker

__all__ = [
    "__version__",
    "AuthGate",
    "BackendKind",
    "BackendUnavailableError",
    "ChangeNotifier",
    "ChangeTracker",
    "DirectLocation",
    "DirectPathAuthGate",
    "DirectPathBackend",
    "DocumentHandle",
    "DocumentResolver",
    "EventKind",
    "FileEntry",
    "LocalTreeResolver",
    "NO_OBSERVATION",
    "ScopedDocumentBackend",
    "ScopedLocation",
    "ScopedTreeAuthGate",
    "StaticAuthGate",
    "StorageBackend",
    "StorageIOError",
    "StoreConfig",
    "TodoStore",
    "TodoStoreConfigError",
    "TodoStoreError",
    "VersionMarker",
    "WatchEvent",
    "WatchSubscription",
    "WatchdogNotifier",
    "WriteMode",
]
