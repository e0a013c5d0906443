"""Storage locations, document handles and directory entries."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import Field, field_validator

from pytodostore.models._base import TodoBaseModel


class WriteMode(StrEnum):
    TRUNCATE = "truncate"
    APPEND = "append"


class DocumentHandle(TodoBaseModel):
    """Opaque address of a document inside a permission-scoped tree."""

    uri: str
    name: str
    mime_type: str | None = None
    is_directory: bool = False


class DirectLocation(TodoBaseModel):
    """A document addressed by a filesystem path."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.name


class ScopedLocation(TodoBaseModel):
    """A document addressed by name within a parent directory handle.

    ``handle`` is ``None`` until the document has been resolved (or
    created) inside ``parent``.
    """

    parent: DocumentHandle
    name: str = Field(..., min_length=1)
    handle: DocumentHandle | None = None

    @field_validator("name")
    @classmethod
    def _plain_name(cls, value: str) -> str:
        if "/" in value:
            raise ValueError("scoped document names cannot contain '/'")
        return value

    def resolved(self, handle: DocumentHandle) -> ScopedLocation:
        return self.model_copy(update={"handle": handle})


StorageLocation = DirectLocation | ScopedLocation


class FileEntry(TodoBaseModel):
    """A directory listing item."""

    path: Path
    is_directory: bool = False
