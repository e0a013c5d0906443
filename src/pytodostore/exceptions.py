"""Custom exception hierarchy for pytodostore."""

from __future__ import annotations

from typing import Any


class TodoStoreError(Exception):
    """Base exception for all pytodostore errors."""


class TodoStoreConfigError(TodoStoreError):
    """Invalid or missing configuration."""


class BackendUnavailableError(TodoStoreError):
    """Target document or its parent cannot be resolved or created."""

    def __init__(
        self,
        message: str,
        *,
        location: Any = None,
    ) -> None:
        self.location = location
        super().__init__(message)


class StorageIOError(BackendUnavailableError):
    """A read or write primitive failed (permission revoked, storage removed)."""
