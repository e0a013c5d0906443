"""Storage backends."""

from pytodostore._backends._common import StorageBackend, join_lines, split_lines
from pytodostore._backends.direct import DirectPathBackend
from pytodostore._backends.scoped import DocumentResolver, LocalTreeResolver, ScopedDocumentBackend

__all__ = [
    "DirectPathBackend",
    "DocumentResolver",
    "LocalTreeResolver",
    "ScopedDocumentBackend",
    "StorageBackend",
    "join_lines",
    "split_lines",
]
