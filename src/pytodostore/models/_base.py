"""Base model for pytodostore value objects.

Every model inherits from :class:`TodoBaseModel`, which makes instances
immutable and hashable so they can be handed across threads (caller,
notifier, timer) without copying.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TodoBaseModel(BaseModel):
    """Frozen base for locations, handles, entries and events."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
