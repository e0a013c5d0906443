from __future__ import annotations

import pytest

from pytodostore.models.marker import NO_OBSERVATION, VersionMarker
from pytodostore.tracker import ChangeTracker

A = VersionMarker("1700000000000000000")
B = VersionMarker("1700000000000000001")


def test_fresh_tracker_always_needs_sync() -> None:
    tracker = ChangeTracker()

    assert tracker.last_seen == NO_OBSERVATION
    assert tracker.need_sync(A) is True
    assert tracker.need_sync(None) is True


@pytest.mark.parametrize(("seen", "current", "expected"), [(A, B, True), (B, A, True), (A, A, False), (B, B, False)])
def test_need_sync_compares_against_observed_marker(
    seen: VersionMarker,
    current: VersionMarker,
    expected: bool,
) -> None:
    tracker = ChangeTracker()
    tracker.observe(seen)

    assert tracker.need_sync(current) is expected


def test_need_sync_does_not_mutate_state() -> None:
    tracker = ChangeTracker()
    tracker.observe(A)

    tracker.need_sync(B)
    tracker.need_sync(B)

    assert tracker.last_seen == A
    assert tracker.need_sync(A) is False


def test_invalidate_resets_to_sentinel() -> None:
    tracker = ChangeTracker()
    tracker.observe(A)

    tracker.invalidate()

    assert tracker.last_seen == NO_OBSERVATION
    assert tracker.need_sync(A) is True


def test_absent_document_stays_in_sync_until_created() -> None:
    tracker = ChangeTracker()
    tracker.observe(None)

    assert tracker.need_sync(None) is False
    assert tracker.need_sync(A) is True


def test_initial_marker_restored_from_host() -> None:
    tracker = ChangeTracker(A)

    assert tracker.need_sync(A) is False
    assert tracker.need_sync(B) is True
