"""Version markers."""

from __future__ import annotations

from typing import NewType

VersionMarker = NewType("VersionMarker", str)
"""Opaque token for the last known content state of a document.

Markers are compared for equality only; they are never ordered.
"""

NO_OBSERVATION: VersionMarker = VersionMarker("")
"""Reserved marker meaning "nothing has been observed yet"."""


def marker_from_timestamp(value: int | float) -> VersionMarker:
    """Build a marker from a modification timestamp."""
    return VersionMarker(str(value))
