"""ScopedDocument backend: permission-scoped document handles.

Documents are addressed by opaque handles handed out by a
:class:`DocumentResolver` rather than by raw paths. The resolver only
exposes the tree the process was granted, so browsing is disabled and
every lookup goes through the parent directory handle.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import IO, Protocol

from pytodostore._backends._common import TEXT_MIME, StorageBackend
from pytodostore.config import BackendKind
from pytodostore.exceptions import BackendUnavailableError, StorageIOError
from pytodostore.models.location import DocumentHandle, FileEntry, ScopedLocation, WriteMode
from pytodostore.models.marker import VersionMarker, marker_from_timestamp

_logger = logging.getLogger(__name__)

DIRECTORY_MIME = "inode/directory"

# Content-resolver style stream modes.
_STREAM_MODES: dict[WriteMode, str] = {
    WriteMode.TRUNCATE: "rwt",
    WriteMode.APPEND: "wa",
}


class DocumentResolver(Protocol):
    """Content stream primitives for a granted document tree."""

    def tree(self) -> DocumentHandle | None:
        """Handle of the granted tree root, ``None`` when access was revoked."""
        ...

    def children(self, parent: DocumentHandle) -> list[DocumentHandle]: ...

    def create(self, parent: DocumentHandle, mime_type: str, name: str) -> DocumentHandle | None: ...

    def open_read(self, handle: DocumentHandle) -> IO[bytes] | None: ...

    def open_write(self, handle: DocumentHandle, mode: str) -> IO[bytes] | None: ...

    def last_modified(self, handle: DocumentHandle) -> int:
        """Modification timestamp, ``0`` when unknown."""
        ...


def child_by_name(
    resolver: DocumentResolver,
    parent: DocumentHandle,
    name: str,
    mime_prefix: str | None = None,
) -> DocumentHandle | None:
    for doc in resolver.children(parent):
        if doc.name != name:
            continue
        if mime_prefix is None or (doc.mime_type or "").startswith(mime_prefix):
            return doc
    return None


class ScopedDocumentBackend(StorageBackend):
    kind = BackendKind.SCOPED

    def __init__(self, resolver: DocumentResolver, *, encoding: str = "utf-8") -> None:
        self._resolver = resolver
        self._encoding = encoding

    @property
    def resolver(self) -> DocumentResolver:
        return self._resolver

    def locate(self, path: str | Path) -> ScopedLocation:
        tree = self._resolver.tree()
        if tree is None:
            raise BackendUnavailableError("Document tree is not available")
        name = Path(path).name
        if not name:
            raise BackendUnavailableError(f"No document name in {path!s}")
        return ScopedLocation(parent=tree, name=name)

    def _find(self, location: ScopedLocation) -> DocumentHandle | None:
        if location.handle is not None:
            return location.handle
        return child_by_name(self._resolver, location.parent, location.name)

    def read(self, location: ScopedLocation) -> str:
        handle = self._find(location)
        if handle is None:
            _logger.debug("Scoped document %s does not exist", location.name)
            return ""
        try:
            stream = self._resolver.open_read(handle)
            if stream is None:
                return ""
            with stream:
                return stream.read().decode(self._encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageIOError(f"Read failed for {handle.uri}: {exc}", location=location) from exc

    def write(self, location: ScopedLocation, content: str, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        handle = self._find(location)
        if handle is None:
            raise BackendUnavailableError(f"Scoped document {location.name} does not exist", location=location)
        try:
            stream = self._resolver.open_write(handle, _STREAM_MODES[mode])
            if stream is None:
                raise StorageIOError(f"No output stream for {handle.uri}", location=location)
            with stream:
                stream.write(content.encode(self._encoding))
                stream.flush()
        except OSError as exc:
            raise StorageIOError(f"Write failed for {handle.uri}: {exc}", location=location) from exc

    def ensure_exists(self, location: ScopedLocation, mime_hint: str = TEXT_MIME) -> ScopedLocation | None:
        existing = self._find(location)
        if existing is not None:
            return location.resolved(existing)
        created = self._resolver.create(location.parent, mime_hint, location.name)
        if created is None:
            _logger.warning("Could not create scoped document %s", location.name)
            return None
        _logger.info("Created scoped document %s", created.uri)
        return location.resolved(created)

    def list(self, directory: str | Path, txt_only: bool = False) -> list[FileEntry]:
        # Handles, not paths, are the addressing unit here.
        _logger.debug("Directory listing is not available for scoped documents")
        return []

    def last_modified_marker(self, location: ScopedLocation) -> VersionMarker | None:
        handle = self._find(location)
        if handle is None:
            return None
        return marker_from_timestamp(self._resolver.last_modified(handle))


class LocalTreeResolver:
    """Resolver over a single directory granted to the process.

    Handles are ``tree:`` URIs relative to the granted root. A handle that
    points outside the root is rejected, as is any access after the root
    disappears.
    """

    SCHEME = "tree:"

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _handle(self, path: Path) -> DocumentHandle:
        relative = path.relative_to(self._root).as_posix()
        is_dir = path.is_dir()
        if is_dir:
            mime_type: str | None = DIRECTORY_MIME
        else:
            mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return DocumentHandle(
            uri=self.SCHEME + ("" if relative == "." else relative),
            name=path.name,
            mime_type=mime_type,
            is_directory=is_dir,
        )

    def _path(self, handle: DocumentHandle) -> Path:
        if not handle.uri.startswith(self.SCHEME):
            raise BackendUnavailableError(f"Foreign document handle: {handle.uri}")
        path = (self._root / handle.uri[len(self.SCHEME) :]).resolve()
        if path != self._root and self._root not in path.parents:
            raise BackendUnavailableError(f"Handle escapes the granted tree: {handle.uri}")
        return path

    def tree(self) -> DocumentHandle | None:
        if not self._root.is_dir():
            return None
        return self._handle(self._root)

    def children(self, parent: DocumentHandle) -> list[DocumentHandle]:
        base = self._path(parent)
        try:
            return [self._handle(child) for child in sorted(base.iterdir())]
        except OSError as exc:
            _logger.warning("Cannot list %s: %s", parent.uri, exc)
            return []

    def create(self, parent: DocumentHandle, mime_type: str, name: str) -> DocumentHandle | None:
        target = self._path(parent) / name
        try:
            with open(target, "xb"):
                pass
        except FileExistsError:
            _logger.debug("Document %s already exists", target)
        except OSError as exc:
            _logger.warning("Cannot create %s (%s): %s", name, mime_type, exc)
            return None
        return self._handle(target)

    def open_read(self, handle: DocumentHandle) -> IO[bytes] | None:
        try:
            return open(self._path(handle), "rb")
        except FileNotFoundError:
            return None

    def open_write(self, handle: DocumentHandle, mode: str) -> IO[bytes] | None:
        if mode == "rwt":
            file_mode = "wb"
        elif mode == "wa":
            file_mode = "ab"
        else:
            raise ValueError(f"Unsupported stream mode: {mode!r}")
        return open(self._path(handle), file_mode)

    def last_modified(self, handle: DocumentHandle) -> int:
        try:
            return self._path(handle).stat().st_mtime_ns
        except OSError:
            return 0
