"""DirectPath backend: plain filesystem paths."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pytodostore._backends._common import TEXT_MIME, StorageBackend
from pytodostore.config import BackendKind
from pytodostore.exceptions import StorageIOError
from pytodostore.models.location import DirectLocation, FileEntry, WriteMode
from pytodostore.models.marker import VersionMarker, marker_from_timestamp

_logger = logging.getLogger(__name__)


class DirectPathBackend(StorageBackend):
    """Read and write documents through direct file I/O.

    Documents are UTF-8 text. Line endings are written exactly as given,
    with no platform newline translation.
    """

    kind = BackendKind.DIRECT

    def __init__(self, *, default_dir: Path | None = None, encoding: str = "utf-8") -> None:
        self._default_dir = default_dir
        self._encoding = encoding

    def locate(self, path: str | Path) -> DirectLocation:
        return DirectLocation(path=Path(path).expanduser().resolve())

    def read(self, location: DirectLocation) -> str:
        try:
            with open(location.path, encoding=self._encoding, newline="") as fh:
                return fh.read()
        except FileNotFoundError:
            _logger.debug("Document %s does not exist yet", location.path)
            return ""
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageIOError(f"Read failed for {location.path}: {exc}", location=location) from exc

    def write(self, location: DirectLocation, content: str, mode: WriteMode = WriteMode.TRUNCATE) -> None:
        file_mode = "a" if mode == WriteMode.APPEND else "w"
        try:
            location.path.parent.mkdir(parents=True, exist_ok=True)
            with open(location.path, file_mode, encoding=self._encoding, newline="") as fh:
                fh.write(content)
        except OSError as exc:
            raise StorageIOError(f"Write failed for {location.path}: {exc}", location=location) from exc

    def ensure_exists(self, location: DirectLocation, mime_hint: str = TEXT_MIME) -> DirectLocation:
        # Files are created by the first write.
        return location

    def list(self, directory: str | Path, txt_only: bool = False) -> list[FileEntry]:
        base = Path(directory).expanduser().resolve()
        result: list[FileEntry] = []

        if base == Path(base.anchor) and self._default_dir is not None:
            result.append(FileEntry(path=self._default_dir, is_directory=True))

        try:
            names = sorted(os.listdir(base))
        except OSError as exc:
            _logger.warning("Cannot list %s: %s", base, exc)
            return result

        for name in names:
            selected = base / name
            if not os.access(selected, os.R_OK):
                continue
            if selected.is_dir():
                result.append(FileEntry(path=Path(name), is_directory=True))
            elif not txt_only or name.lower().endswith(".txt"):
                result.append(FileEntry(path=Path(name), is_directory=False))
        return result

    def last_modified_marker(self, location: DirectLocation) -> VersionMarker | None:
        try:
            return marker_from_timestamp(location.path.stat().st_mtime_ns)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageIOError(f"Stat failed for {location.path}: {exc}", location=location) from exc
