from __future__ import annotations

import os

# Qt widgets require a platform plugin.  Offscreen avoids display and libGL
# dependencies when running headless.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from storage import LocalStorage


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> None:
        self.now += ms


@pytest.fixture
def store(tmp_path):
    return LocalStorage(str(tmp_path / "storage.json"), quota_bytes=0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
