from __future__ import annotations

import pytest

from .fakes import FakeNotifier, FakeTimerFactory


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()
